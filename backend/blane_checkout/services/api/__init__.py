"""Blane front-office API client: orders, reservations, time slots, payment initiation."""
from blane_checkout.services.api.client import BlaneApiClient
from blane_checkout.services.api.config import ApiConfig

__all__ = [
    "ApiConfig",
    "BlaneApiClient",
]
