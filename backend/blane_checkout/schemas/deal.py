"""
Typed definitions for Blane deal payloads.

The front-office API returns deals with loosely typed fields: prices and
percentages as strings or numbers, dates with or without a time part, images
as a URL, a wrapper object or an {"error": ...} placeholder. Everything is
resolved once here so the pricing/availability code never re-checks shapes.
"""
from datetime import date, datetime
import json
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from blane_checkout.core.constants import (
    KIND_ORDER,
    KIND_RESERVATION,
    PAYMENT_CASH,
    PAYMENT_ONLINE,
    PAYMENT_PARTIAL,
)


def parse_day(value: Any) -> date | None:
    """Accept date, datetime, 'YYYY-MM-DD' or 'YYYY-MM-DD HH:MM:SS' / ISO datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    return date.fromisoformat(s[:10])


class ImageUrl(BaseModel):
    kind: Literal["url"] = "url"
    url: str


class ImageMissing(BaseModel):
    kind: Literal["missing"] = "missing"
    reason: str | None = None


ImageRef = Annotated[Union[ImageUrl, ImageMissing], Field(discriminator="kind")]


def resolve_image_ref(raw: Any) -> ImageUrl | ImageMissing:
    """Resolve one wire image (str | {"image_link": ...} | {"url": ...} | {"error": ...}) to a variant."""
    if isinstance(raw, (ImageUrl, ImageMissing)):
        return raw
    if isinstance(raw, str):
        return ImageUrl(url=raw.strip()) if raw.strip() else ImageMissing()
    if isinstance(raw, dict):
        if "error" in raw and not raw.get("image_link") and not raw.get("url"):
            return ImageMissing(reason=str(raw.get("error")))
        link = raw.get("image_link", raw.get("url"))
        if isinstance(link, dict):
            return resolve_image_ref(link)
        if isinstance(link, str) and link.strip():
            return ImageUrl(url=link.strip())
    return ImageMissing()


class TimeSlot(BaseModel):
    """One bookable time of day for a chosen date. Immutable snapshot."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    time: str
    available: bool = True
    max_reservations: int = Field(0, validation_alias=AliasChoices("maxReservations", "max_reservations"))
    current_reservations: int = Field(
        0, validation_alias=AliasChoices("currentReservations", "current_reservations")
    )

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_reservations - self.current_reservations)


class Period(BaseModel):
    """A bookable [start, end] date range, used when the deal's time model is "date"."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    start: date
    end: date
    period_name: str = ""
    available: bool = True
    max_reservations: int = Field(0, validation_alias=AliasChoices("maxReservations", "max_reservations"))
    current_reservations: int = Field(
        0, validation_alias=AliasChoices("currentReservations", "current_reservations")
    )
    days_count: int | None = Field(None, validation_alias=AliasChoices("daysCount", "days_count"))
    is_weekend: bool = Field(False, validation_alias=AliasChoices("isWeekend", "is_weekend"))

    @field_validator("start", "end", mode="before")
    @classmethod
    def _day(cls, v: Any) -> date | None:
        return parse_day(v)

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_reservations - self.current_reservations)

    @property
    def key(self) -> str:
        """Selection key used by the form ("start-end")."""
        return f"{self.start.isoformat()}-{self.end.isoformat()}"


class Deal(BaseModel):
    """A Blane: sellable (order) or reservable (reservation) offer. Read-only."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int | str
    slug: str
    name: str = ""
    kind: Literal["order", "reservation"] = Field(KIND_ORDER, validation_alias=AliasChoices("type", "kind"))
    price_current: float = 0.0
    price_old: float | None = None
    tva: float | None = None
    is_digital: bool = False
    stock: int | None = None
    max_orders: int | None = None
    personnes_prestation: int = 1
    type_time: Literal["time", "date"] | None = None
    jours_creneaux: list[str] = Field(default_factory=list)
    start_date: date | None = None
    expiration_date: date | None = None
    end_date: date | None = None
    cash: bool | None = None
    online: bool | None = None
    partiel: bool | None = None
    partiel_field: float | None = None
    city: str | None = None
    livraison_in_city: float | None = None
    livraison_out_city: float | None = None
    available_periods: list[Period] = Field(default_factory=list)
    images: list[ImageRef] = Field(
        default_factory=list, validation_alias=AliasChoices("images", "blane_images", "blaneImages")
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _kind(cls, v: Any) -> str:
        # Catalogue uses "ecommerce" for shippable deals
        s = str(v or KIND_ORDER).strip().lower()
        return KIND_RESERVATION if s == KIND_RESERVATION else KIND_ORDER

    @field_validator("start_date", "expiration_date", "end_date", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> date | None:
        return parse_day(v)

    @field_validator("jours_creneaux", mode="before")
    @classmethod
    def _weekdays(cls, v: Any) -> list[str]:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                try:
                    v = json.loads(s)
                except json.JSONDecodeError:
                    v = s.strip("[]").split(",")
            else:
                v = s.split(",")
        return [str(d).strip().strip('"').lower() for d in v if str(d).strip()]

    @field_validator("personnes_prestation", mode="before")
    @classmethod
    def _participants(cls, v: Any) -> int:
        return int(v) if v not in (None, "", 0, "0") else 1

    @field_validator("images", mode="before")
    @classmethod
    def _images(cls, v: Any) -> list[dict[str, Any]]:
        if not v:
            return []
        if not isinstance(v, list):
            v = [v]
        return [resolve_image_ref(raw).model_dump() for raw in v]

    @property
    def is_reservation(self) -> bool:
        return self.kind == KIND_RESERVATION

    @property
    def enabled_payment_methods(self) -> tuple[str, ...]:
        """UI payment methods this deal accepts. A deal flagging none accepts cash and online."""
        flags = ((PAYMENT_CASH, self.cash), (PAYMENT_ONLINE, self.online), (PAYMENT_PARTIAL, self.partiel))
        if all(flag is None for _, flag in flags):
            return (PAYMENT_CASH, PAYMENT_ONLINE)
        return tuple(method for method, flag in flags if flag)

    def find_period(self, key: str) -> Period | None:
        return next((p for p in self.available_periods if p.key == key), None)

    @property
    def image_urls(self) -> list[str]:
        return [img.url for img in self.images if isinstance(img, ImageUrl)]
