"""Blane API config. Credentials from settings (BLANE_API_URL, BLANE_API_TOKEN) or BlaneApiClient args."""
from blane_checkout.config import settings

# Front-office endpoints (guest API, no customer session)
ORDERS_PATH = "/front/v1/orders"
RESERVATIONS_PATH = "/front/v1/reservations"
TIME_SLOTS_PATH = "/front/v1/blanes/{slug}/available-time-slots"
PAYMENT_INITIATE_PATH = "/front/v1/payment/cmi/initiate"

# Related records embedded in single-transaction lookups
ORDER_INCLUDE = "blane,blane.blaneImages,customer"
RESERVATION_INCLUDE = "blane,blane.blaneImages,customer"


class ApiConfig:
    """API token, base URL and timeout for the Blane backend."""

    __slots__ = ("base_url", "token", "timeout")

    def __init__(
        self,
        *,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.blane_api_url).strip().rstrip("/")
        self.token = (token if token is not None else settings.blane_api_token).strip()
        self.timeout = timeout if timeout is not None else settings.blane_api_timeout

    def headers(self) -> dict[str, str]:
        h = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.token:
            h["X-Auth-Token"] = self.token
        return h
