"""Blane API client: lowest level, sends requests and maps HTTP failures. No form validation."""
import logging
from datetime import date
from typing import Any

import httpx

from blane_checkout.core.constants import KIND_ORDER, KIND_RESERVATION
from blane_checkout.core.errors import (
    MSG_NO_RESPONSE,
    MSG_TIMEOUT,
    MSG_UNEXPECTED,
    BackendError,
    BackendUnavailableError,
    PaymentPreparationError,
    backend_error_from_response,
)
from blane_checkout.schemas import PaymentInitiation, TimeSlot
from blane_checkout.services.api.config import (
    ORDER_INCLUDE,
    ORDERS_PATH,
    PAYMENT_INITIATE_PATH,
    RESERVATION_INCLUDE,
    RESERVATIONS_PATH,
    TIME_SLOTS_PATH,
    ApiConfig,
)
from blane_checkout.services.payment_number import format_payment_number

logger = logging.getLogger(__name__)

_BASE_PATHS = {KIND_ORDER: ORDERS_PATH, KIND_RESERVATION: RESERVATIONS_PATH}
_INCLUDES = {KIND_ORDER: ORDER_INCLUDE, KIND_RESERVATION: RESERVATION_INCLUDE}


def _unwrap(body: Any) -> Any:
    """Most endpoints wrap the payload in {"data": ...}; some return it bare."""
    if isinstance(body, dict) and "data" in body and body["data"] is not None:
        return body["data"]
    return body


def _record(body: Any, what: str) -> dict[str, Any]:
    data = _unwrap(body)
    if not isinstance(data, dict):
        raise BackendError(f"{MSG_UNEXPECTED} ({what})")
    return data


class BlaneApiClient:
    """Orders, reservations, time slots and payment initiation against the front-office API."""

    def __init__(
        self,
        config: ApiConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or ApiConfig()
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._config.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as c:
                r = await c.request(method, url, json=json_body, params=params, headers=self._config.headers())
        except httpx.TimeoutException as e:
            logger.warning("Blane API %s %s timed out: %s", method, path, e)
            raise BackendUnavailableError(MSG_TIMEOUT) from e
        except httpx.HTTPError as e:
            logger.warning("Blane API %s %s failed: %s", method, path, e)
            raise BackendUnavailableError(MSG_NO_RESPONSE) from e
        try:
            body = r.json() if r.content else {}
        except ValueError:
            body = {"_raw_body": r.text[:2000] if r.text else ""}
        if not r.is_success:
            logger.info("Blane API %s %s returned %s", method, path, r.status_code)
            raise backend_error_from_response(r.status_code, body)
        return body

    # ---- orders / reservations ------------------------------------------------

    async def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        return _record(await self._request("POST", ORDERS_PATH, json_body=payload), "order")

    async def get_order(self, order_id: str) -> dict[str, Any]:
        """Single order, with its deal embedded."""
        body = await self._request("GET", f"{ORDERS_PATH}/{order_id}", params={"include": ORDER_INCLUDE})
        return _record(body, "order")

    async def create_reservation(self, payload: dict[str, Any]) -> dict[str, Any]:
        return _record(await self._request("POST", RESERVATIONS_PATH, json_body=payload), "reservation")

    async def get_reservation_by_id(self, reservation_id: str) -> dict[str, Any]:
        """Single reservation, with its deal and images embedded."""
        body = await self._request(
            "GET", f"{RESERVATIONS_PATH}/{reservation_id}", params={"include": RESERVATION_INCLUDE}
        )
        return _record(body, "reservation")

    async def create_transaction(self, kind: str, payload: dict[str, Any]) -> dict[str, Any]:
        if kind == KIND_RESERVATION:
            return await self.create_reservation(payload)
        return await self.create_order(payload)

    async def get_transaction(self, kind: str, transaction_id: str) -> dict[str, Any]:
        if kind == KIND_RESERVATION:
            return await self.get_reservation_by_id(transaction_id)
        return await self.get_order(transaction_id)

    async def update_status(self, kind: str, transaction_id: str, status: str) -> dict[str, Any]:
        path = f"{_BASE_PATHS[kind]}/{transaction_id}/status"
        return _record(await self._request("PATCH", path, json_body={"status": status}), kind)

    async def cancel(self, kind: str, number: str, token: str, timestamp: str) -> dict[str, Any]:
        """Cancel with the token/timestamp pair the backend put in cancellation_data."""
        body = await self._request(
            "POST",
            f"{_BASE_PATHS[kind]}/cancel",
            json_body={"id": number, "token": token, "timestamp": timestamp},
        )
        return body if isinstance(body, dict) else {}

    # ---- availability -----------------------------------------------------------

    async def get_available_time_slots(self, deal_slug: str, day: date | str) -> list[TimeSlot]:
        iso_day = day.isoformat() if isinstance(day, date) else str(day)
        body = await self._request("GET", TIME_SLOTS_PATH.format(slug=deal_slug), params={"date": iso_day})
        raw = _unwrap(body)
        if not isinstance(raw, list):
            return []
        return [TimeSlot.model_validate(s) for s in raw if isinstance(s, dict) and s.get("time")]

    # ---- payment ----------------------------------------------------------------

    async def initiate_payment(self, kind: str, transaction_id: str, payment_type: str) -> PaymentInitiation:
        """Ask the backend for the gateway hop. Raises PaymentPreparationError without a redirect URL."""
        number = format_payment_number(kind, transaction_id)
        body = await self._request(
            "POST", PAYMENT_INITIATE_PATH, json_body={"number": number, "payment_type": payment_type}
        )
        data = _unwrap(body)
        if not isinstance(data, dict):
            raise PaymentPreparationError()
        redirect_url = data.get("payment_url") or data.get("redirect_url")
        if not redirect_url:
            logger.warning("Payment initiation for %s %s returned no redirect URL", kind, number)
            raise PaymentPreparationError()
        return PaymentInitiation(
            redirect_url=redirect_url,
            payment_form_data=data.get("inputs") or data.get("payment_form_data") or {},
        )
