"""
Transaction draft: the customer's form for one deal, its per-field errors, and submission.

Validation runs again on every submit; a stale is_submittable() answer is never trusted.
Exactly one submission may be in flight per controller. Nothing is retried automatically.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from blane_checkout.config import settings
from blane_checkout.core.constants import (
    KIND_ORDER,
    PAYMENT_METHOD_WIRE,
    PAYMENT_PARTIAL,
    REDIRECT_PAYMENT_METHODS,
    TIME_MODEL_DATE,
    TIME_MODEL_TIME,
)
from blane_checkout.core.errors import (
    MSG_REQUIRED_FIELDS,
    MSG_UNEXPECTED,
    BackendError,
    BackendValidationError,
    FieldValidationError,
    SubmissionCompletedError,
    SubmissionInFlightError,
)
from blane_checkout.schemas import Deal, Period, TimeSlot
from blane_checkout.services import lifecycle
from blane_checkout.services.api import BlaneApiClient
from blane_checkout.services.availability import (
    AvailabilityResolver,
    is_date_available,
    is_period_valid,
    reservation_seats,
)
from blane_checkout.services.lifecycle import SubmissionEvent, SubmissionState, SubmissionStatus
from blane_checkout.services.phone import normalize_phone, validate_international_phone
from blane_checkout.services.pricing import PriceQuote, quote, round2
from blane_checkout.services.redirect import BridgeOutcome, PaymentRedirectBridge, RedirectResult

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3

MSG_NAME_REQUIRED = "Le nom est requis"
MSG_NAME_TOO_SHORT = "Le nom doit contenir au moins 3 caractères"
MSG_EMAIL_REQUIRED = "L'email est requis"
MSG_EMAIL_INVALID = "Format d'email invalide"
MSG_PAYMENT_METHOD = "Veuillez choisir un mode de paiement valide"
MSG_DATE_REQUIRED = "Veuillez choisir une date"
MSG_DATE_UNAVAILABLE = "Cette date n'est pas disponible"
MSG_TIME_REQUIRED = "Veuillez choisir un horaire"
MSG_PERIOD_REQUIRED = "Veuillez choisir une période"
MSG_PERIOD_UNAVAILABLE = "Cette période n'est pas disponible"
MSG_ADDRESS_REQUIRED = "L'adresse de livraison est requise"
MSG_CITY_REQUIRED = "La ville est requise"
MSG_QUANTITY_UNAVAILABLE = "Plus aucune place disponible pour cette sélection"
MSG_QUANTITY_RANGE = "La quantité doit être comprise entre 1 et {max}"

# Draft fields update() accepts; quantity goes through set_quantity()
EDITABLE_FIELDS = (
    "name",
    "email",
    "phone",
    "country_code",
    "delivery_address",
    "city",
    "comments",
    "payment_method",
)


@dataclass
class Draft:
    """Mutable form values. Nothing here is trusted until validate() runs."""

    name: str = ""
    email: str = ""
    phone: str = ""
    country_code: str = field(default_factory=lambda: settings.default_country_code)
    quantity: int = 1
    reservation_date: date | None = None
    selected_time: str | None = None
    selected_period: Period | None = None
    delivery_address: str = ""
    city: str = ""
    comments: str = ""
    payment_method: str = ""


@dataclass
class SubmissionResult:
    """What submit() did. `record` is set whenever the backend created the transaction."""

    state: SubmissionState
    record: dict[str, Any] | None = None
    redirect: RedirectResult | None = None
    notice: str | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def created(self) -> bool:
        return self.record is not None


class TransactionDraftController:
    """
    Owns one draft for one deal. Availability selection goes through the resolver, which
    pushes quantity ceilings back via apply_quantity_ceiling().
    """

    def __init__(
        self,
        deal: Deal,
        client: BlaneApiClient,
        bridge: PaymentRedirectBridge,
        *,
        today: date | None = None,
    ) -> None:
        self.deal = deal
        self.client = client
        self.bridge = bridge
        self.today = today
        self.draft = Draft(city=deal.city or "")
        methods = deal.enabled_payment_methods
        if methods:
            self.draft.payment_method = methods[0]
        self.errors: dict[str, list[str]] = {}
        self.notice: str | None = None
        self.state = SubmissionState()
        self.availability = AvailabilityResolver(
            deal, client, on_ceiling_change=self.apply_quantity_ceiling, today=today
        )
        self.max_quantity = self.availability.ceiling
        self._requested_quantity = 1
        self._apply_quantity()

    @property
    def kind(self) -> str:
        return self.deal.kind

    # ---- editing ------------------------------------------------------------------

    def update(self, **values: Any) -> None:
        for name, value in values.items():
            if name not in EDITABLE_FIELDS:
                raise AttributeError(f"Draft has no editable field {name!r}")
            setattr(self.draft, name, value)
            self.errors.pop(name, None)

    def set_quantity(self, quantity: int) -> int:
        """Explicit user choice; remembered, then held within [1, ceiling]."""
        self._requested_quantity = max(1, int(quantity))
        self.errors.pop("quantity", None)
        return self._apply_quantity()

    def change_quantity(self, delta: int) -> int:
        return self.set_quantity(self.draft.quantity + delta)

    def apply_quantity_ceiling(self, ceiling: int) -> None:
        """New ceiling from availability: clamp down, and never raise past the user's last choice."""
        self.max_quantity = max(0, ceiling)
        before = self.draft.quantity
        after = self._apply_quantity()
        if after != before:
            logger.debug("Quantity for %s clamped %s -> %s (ceiling %s)", self.deal.slug, before, after, ceiling)

    def _apply_quantity(self) -> int:
        self.draft.quantity = min(self._requested_quantity, self.max_quantity)
        return self.draft.quantity

    async def choose_date(self, day: date) -> list[TimeSlot]:
        self.draft.reservation_date = day
        self.draft.selected_time = None
        self.errors.pop("reservation_date", None)
        try:
            return await self.availability.select_date(day)
        except FieldValidationError as e:
            self.draft.reservation_date = None
            self.errors.update(e.errors)
            return []

    def choose_time(self, time: str) -> int:
        self.draft.selected_time = time
        self.errors.pop("selected_time", None)
        return self.availability.select_time(time)

    def choose_period(self, key: str) -> int:
        self.errors.pop("selected_period", None)
        try:
            ceiling = self.availability.select_period(key)
        except FieldValidationError as e:
            self.draft.selected_period = None
            self.errors.update(e.errors)
            return 0
        self.draft.selected_period = self.availability.selected_period
        return ceiling

    # ---- validation ---------------------------------------------------------------

    def validate(self) -> dict[str, list[str]]:
        """Field -> messages for everything that blocks submission. Empty means submittable."""
        d = self.draft
        errors: dict[str, list[str]] = {}

        name = d.name.strip()
        if not name:
            errors["name"] = [MSG_NAME_REQUIRED]
        elif len(name) < MIN_NAME_LENGTH:
            errors["name"] = [MSG_NAME_TOO_SHORT]

        email = d.email.strip()
        if not email:
            errors["email"] = [MSG_EMAIL_REQUIRED]
        else:
            try:
                validate_email(email)
            except (PydanticCustomError, ValueError):
                errors["email"] = [MSG_EMAIL_INVALID]

        phone = validate_international_phone(d.country_code, d.phone)
        if not phone.is_valid:
            errors["phone"] = [phone.error_message or MSG_REQUIRED_FIELDS]

        if d.payment_method not in self.deal.enabled_payment_methods:
            errors["payment_method"] = [MSG_PAYMENT_METHOD]

        if self.deal.is_reservation:
            errors.update(self._validate_schedule())
        elif not self.deal.is_digital:
            if not d.delivery_address.strip():
                errors["delivery_address"] = [MSG_ADDRESS_REQUIRED]
            if not d.city.strip():
                errors["city"] = [MSG_CITY_REQUIRED]

        if self.max_quantity < 1:
            errors["quantity"] = [MSG_QUANTITY_UNAVAILABLE]
        elif not 1 <= d.quantity <= self.max_quantity:
            errors["quantity"] = [MSG_QUANTITY_RANGE.format(max=self.max_quantity)]
        return errors

    def _validate_schedule(self) -> dict[str, list[str]]:
        d = self.draft
        errors: dict[str, list[str]] = {}
        if self.deal.type_time == TIME_MODEL_TIME:
            if d.reservation_date is None:
                errors["reservation_date"] = [MSG_DATE_REQUIRED]
            elif not is_date_available(self.deal, d.reservation_date, self.today):
                errors["reservation_date"] = [MSG_DATE_UNAVAILABLE]
            if not d.selected_time:
                errors["selected_time"] = [MSG_TIME_REQUIRED]
        elif self.deal.type_time == TIME_MODEL_DATE:
            if d.selected_period is None:
                errors["selected_period"] = [MSG_PERIOD_REQUIRED]
            elif not is_period_valid(self.deal, d.selected_period, self.today):
                errors["selected_period"] = [MSG_PERIOD_UNAVAILABLE]
        return errors

    def is_submittable(self) -> bool:
        return not (self.state.in_flight or self.state.terminal) and not self.validate()

    # ---- pricing / payload ----------------------------------------------------------

    def price(self) -> PriceQuote:
        city = None if self.deal.is_digital else self.draft.city
        return quote(self.deal, self.draft.quantity, city)

    def build_payload(self) -> dict[str, Any]:
        """Backend payload for the current draft. Call only after validate() came back empty."""
        d = self.draft
        q = self.price()
        payload: dict[str, Any] = {
            "blane_id": self.deal.id,
            "name": d.name.strip(),
            "email": d.email.strip(),
            "phone": normalize_phone(d.country_code, d.phone),
            "quantity": d.quantity,
            "comments": d.comments.strip(),
            "payment_method": PAYMENT_METHOD_WIRE.get(d.payment_method, d.payment_method),
            "total_price": round2(q.total_price),
        }
        if d.payment_method == PAYMENT_PARTIAL:
            payload["partiel_price"] = q.partial_amount
        if self.kind == KIND_ORDER:
            payload["delivery_fee"] = round2(q.delivery_fee)
            if not self.deal.is_digital:
                payload["delivery_address"] = d.delivery_address.strip()
                payload["city"] = d.city.strip()
        else:
            payload["number_persons"] = reservation_seats(self.deal, d.quantity)
            if d.selected_period is not None:
                payload["date"] = d.selected_period.start.isoformat()
                payload["end_date"] = d.selected_period.end.isoformat()
            elif d.reservation_date is not None:
                payload["date"] = d.reservation_date.isoformat()
            if d.selected_time:
                payload["time"] = d.selected_time
            if d.city.strip():
                payload["city"] = d.city.strip()
        return payload

    # ---- lifecycle --------------------------------------------------------------------

    def _move(self, event: SubmissionEvent, reason: str | None = None) -> None:
        self.state = lifecycle.transition(self.state, event, reason)

    def _fail_validation(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        self.notice = next(iter(errors.values()))[0]
        self._move(SubmissionEvent.VALIDATION_FAILED, lifecycle.REASON_VALIDATION)

    def request_confirmation(self) -> bool:
        """Validate and open the confirmation step. False (state Failed) when the draft has errors."""
        if self.state.in_flight:
            raise SubmissionInFlightError()
        if self.state.terminal:
            raise SubmissionCompletedError()
        self._move(SubmissionEvent.BEGIN_VALIDATION)
        errors = self.validate()
        if errors:
            self._fail_validation(errors)
            return False
        self.errors = {}
        self.notice = None
        self._move(SubmissionEvent.OPEN_CONFIRMATION)
        return True

    def dismiss_confirmation(self) -> None:
        self._move(SubmissionEvent.DISMISS_CONFIRMATION)

    def reset(self) -> None:
        """Back to an editable form after a finished or failed submission; draft values are kept."""
        self._move(SubmissionEvent.RESET)
        self.notice = None

    async def submit(self) -> SubmissionResult:
        """
        Validate, create the order/reservation, then hand the record to the redirect bridge.

        Raises SubmissionInFlightError when called while a submission is pending, and
        SubmissionCompletedError once it has completed or redirected (reset() first).
        Backend failures are reported in the result (and in self.errors / self.notice).
        """
        if self.state.in_flight:
            raise SubmissionInFlightError()
        if self.state.terminal:
            raise SubmissionCompletedError()
        self._move(SubmissionEvent.BEGIN_VALIDATION)
        errors = self.validate()
        if errors:
            self._fail_validation(errors)
            return SubmissionResult(self.state, notice=self.notice, errors=errors)

        self._move(SubmissionEvent.BEGIN_SUBMISSION)
        method = self.draft.payment_method
        q = self.price()
        payload = self.build_payload()
        record: dict[str, Any] | None = None
        try:
            record = await self.client.create_transaction(self.kind, payload)
            logger.info("Created %s for deal %s (method %s)", self.kind, self.deal.slug, method)
            self.errors = {}
            self.notice = None
            if method in REDIRECT_PAYMENT_METHODS:
                self._move(SubmissionEvent.PERSIST_FOR_REDIRECT)
            redirect = await self.bridge.handle(self.deal, self.kind, record, method, q)
        except BackendValidationError as e:
            self.errors = dict(e.field_errors)
            self.notice = e.message
            self._move(SubmissionEvent.SUBMISSION_FAILED, lifecycle.REASON_BACKEND_VALIDATION)
            return SubmissionResult(self.state, notice=self.notice, errors=self.errors)
        except BackendError as e:
            self.notice = e.message
            self._move(SubmissionEvent.SUBMISSION_FAILED, lifecycle.REASON_BACKEND)
            return SubmissionResult(self.state, notice=self.notice)
        except Exception:
            logger.exception("Unexpected error submitting %s for deal %s", self.kind, self.deal.slug)
            self.notice = MSG_UNEXPECTED
            event = (
                SubmissionEvent.PAYMENT_SETUP_FAILED
                if self.state.status is SubmissionStatus.PERSISTING_FOR_REDIRECT
                else SubmissionEvent.SUBMISSION_FAILED
            )
            self._move(event, lifecycle.REASON_UNEXPECTED)
            return SubmissionResult(self.state, record=record, notice=self.notice)

        if redirect.outcome is BridgeOutcome.COMPLETED_IMMEDIATELY:
            self._move(SubmissionEvent.COMPLETE)
        elif redirect.outcome is BridgeOutcome.REDIRECTING:
            self._move(SubmissionEvent.REDIRECT)
        else:
            self.notice = redirect.error
            self._move(SubmissionEvent.PAYMENT_SETUP_FAILED, lifecycle.REASON_PAYMENT_PREPARATION)
        return SubmissionResult(self.state, record=record, redirect=redirect, notice=self.notice)

