"""Persisted transaction and payment-intent shapes."""
import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blane_checkout.core.constants import KIND_ORDER, KIND_RESERVATION

# Human-facing reference per kind (NUM_ORD / NUM_RES), preferred over the numeric id.
_REFERENCE_FIELDS = {KIND_ORDER: "NUM_ORD", KIND_RESERVATION: "NUM_RES"}


def transaction_reference(kind: str, record: dict[str, Any] | None) -> str:
    """NUM_ORD / NUM_RES if present, else the numeric id as string, else ""."""
    if not isinstance(record, dict):
        return ""
    ref = record.get(_REFERENCE_FIELDS.get(kind, ""))
    if ref:
        return str(ref)
    rid = record.get("id")
    return str(rid) if rid not in (None, "") else ""


def _form_value(val: Any) -> str:
    """Text of a gateway form field as JSON wrote it: 230.00 -> "230", true -> "true"."""
    if val is None:
        return ""
    if isinstance(val, str):
        return val
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, float) and val.is_integer() and abs(val) < 1e21:
        val = int(val)
    if isinstance(val, (int, float)):
        return json.dumps(val)
    return str(val)


class PaymentIntent(BaseModel):
    """What amount and method were in flight when control left for the gateway."""

    type: Literal["order", "reservation"]
    id: str
    method: str
    amount: float
    timestamp: str
    status: str


class PaymentInitiation(BaseModel):
    """Opaque gateway hop: where to POST and which fields to carry. Never introspected."""

    model_config = ConfigDict(extra="ignore")

    redirect_url: str
    payment_form_data: dict[str, str] = Field(default_factory=dict)

    @field_validator("payment_form_data", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> dict[str, str]:
        if not v:
            return {}
        return {str(k): _form_value(val) for k, val in dict(v).items()}
