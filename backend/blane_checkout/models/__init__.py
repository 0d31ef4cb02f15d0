from blane_checkout.models.stored_value import StoredValue

__all__ = [
    "StoredValue",
]
