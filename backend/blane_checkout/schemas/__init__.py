from blane_checkout.schemas.deal import (
    Deal,
    ImageMissing,
    ImageRef,
    ImageUrl,
    Period,
    TimeSlot,
    parse_day,
    resolve_image_ref,
)
from blane_checkout.schemas.transaction import PaymentInitiation, PaymentIntent, transaction_reference

__all__ = [
    "Deal",
    "ImageMissing",
    "ImageRef",
    "ImageUrl",
    "PaymentInitiation",
    "PaymentIntent",
    "Period",
    "TimeSlot",
    "parse_day",
    "resolve_image_ref",
    "transaction_reference",
]
