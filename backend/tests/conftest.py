"""Pytest fixtures: deals, in-memory store, recording navigator and a fake Blane backend."""
import json
import re
from datetime import date
from typing import Any

import httpx
import pytest

from blane_checkout.core.constants import KIND_ORDER, KIND_RESERVATION
from blane_checkout.schemas import Deal
from blane_checkout.services.api import ApiConfig, BlaneApiClient
from blane_checkout.services.redirect import PaymentRedirectBridge
from blane_checkout.services.store import InMemoryStore

TODAY = date(2026, 3, 2)  # Monday

_RECORD_PATH = re.compile(r"^/front/v1/(orders|reservations)/([^/]+)$")
_STATUS_PATH = re.compile(r"^/front/v1/(orders|reservations)/([^/]+)/status$")
_SLOTS_PATH = re.compile(r"^/front/v1/blanes/([^/]+)/available-time-slots$")
_KINDS = {"orders": KIND_ORDER, "reservations": KIND_RESERVATION}


class FakeBlaneBackend:
    """Answers like the front-office API and records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.records: dict[str, dict[str, dict[str, Any]]] = {KIND_ORDER: {}, KIND_RESERVATION: {}}
        self.time_slots: dict[str, list[dict[str, Any]]] = {}
        # (method, path) -> (status, body); checked before normal routing
        self.failures: dict[tuple[str, str], tuple[int, Any]] = {}
        self.payment_response: dict[str, Any] = {
            "data": {
                "payment_url": "https://gateway.test/fim/est3Dgate",
                "inputs": {"clientid": "600001", "oid": "ORDER100", "amount": "230.00", "hash": "x+y/z=="},
            }
        }
        self._next_id = 100

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path
        if (method, path) in self.failures:
            status, body = self.failures[(method, path)]
            return httpx.Response(status, json=body)
        body = json.loads(request.content) if request.content else {}

        if method == "POST" and path in ("/front/v1/orders", "/front/v1/reservations"):
            return httpx.Response(201, json={"data": self._create(_KINDS[path.rsplit("/", 1)[1]], body)})
        if method == "POST" and path == "/front/v1/payment/cmi/initiate":
            return httpx.Response(200, json=self.payment_response)
        m = _STATUS_PATH.match(path)
        if method == "PATCH" and m:
            record = self.find(_KINDS[m.group(1)], m.group(2))
            if record is None:
                return httpx.Response(404, json={"message": "Not found"})
            record["status"] = body["status"]
            return httpx.Response(200, json={"data": record})
        m = _RECORD_PATH.match(path)
        if method == "GET" and m:
            record = self.find(_KINDS[m.group(1)], m.group(2))
            if record is None:
                return httpx.Response(404, json={"message": "Not found"})
            return httpx.Response(200, json={"data": record})
        m = _SLOTS_PATH.match(path)
        if method == "GET" and m:
            return httpx.Response(200, json={"data": self.time_slots.get(request.url.params["date"], [])})
        return httpx.Response(404, json={"message": f"No route for {method} {path}"})

    def _create(self, kind: str, body: dict[str, Any]) -> dict[str, Any]:
        rid = self._next_id
        self._next_id += 1
        number_field, prefix = ("NUM_ORD", "ORD-") if kind == KIND_ORDER else ("NUM_RES", "RES-")
        record = {"id": rid, number_field: f"{prefix}{rid}", "status": "pending", **body}
        self.records[kind][str(rid)] = record
        return record

    def find(self, kind: str, ref: str) -> dict[str, Any] | None:
        if ref in self.records[kind]:
            return self.records[kind][ref]
        return next(
            (r for r in self.records[kind].values() if ref in (r.get("NUM_ORD"), r.get("NUM_RES"))),
            None,
        )

    def calls(self, method: str, path_prefix: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(path_prefix)]


class RecordingNavigator:
    """Records gateway hops together with what the store held at that moment."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.submissions: list[tuple[str, dict[str, str], dict[str, str]]] = []

    def submit_payment_form(self, url: str, form_data: dict[str, str]) -> None:
        snapshot = {k: self.store.get(k) for k in self.store.keys()}
        self.submissions.append((url, dict(form_data), snapshot))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def backend() -> FakeBlaneBackend:
    return FakeBlaneBackend()


@pytest.fixture
def client(backend: FakeBlaneBackend) -> BlaneApiClient:
    config = ApiConfig(base_url="https://api.blane.test/", token="test-token", timeout=5)
    return BlaneApiClient(config, transport=httpx.MockTransport(backend.handler))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def navigator(store: InMemoryStore) -> RecordingNavigator:
    return RecordingNavigator(store)


@pytest.fixture
def bridge(client: BlaneApiClient, store: InMemoryStore, navigator: RecordingNavigator) -> PaymentRedirectBridge:
    return PaymentRedirectBridge(client, store, navigator)


def make_deal(**overrides: Any) -> Deal:
    data: dict[str, Any] = {
        "id": 7,
        "slug": "spa-marrakech",
        "name": "Spa Marrakech",
        "type": "order",
        "price_current": 100,
        "tva": 20,
        "is_digital": False,
        "city": "Casablanca",
        "livraison_in_city": 15,
        "livraison_out_city": 30,
        "cash": True,
        "online": True,
        "partiel": True,
    }
    data.update(overrides)
    return Deal.model_validate(data)


@pytest.fixture
def physical_deal() -> Deal:
    return make_deal()


@pytest.fixture
def digital_deal() -> Deal:
    return make_deal(slug="ebook-cuisine", is_digital=True)


@pytest.fixture
def time_deal() -> Deal:
    return make_deal(
        id=8,
        slug="hammam-rabat",
        type="reservation",
        type_time="time",
        price_current=150,
        personnes_prestation=2,
        jours_creneaux=["lundi", "mercredi"],
        start_date="2026-03-01",
        expiration_date="2026-06-30",
    )


@pytest.fixture
def period_deal() -> Deal:
    return make_deal(
        id=9,
        slug="riad-fes",
        type="reservation",
        type_time="date",
        price_current=800,
        jours_creneaux='["lundi","mercredi"]',
        start_date="2026-03-01",
        expiration_date="2026-06-30",
        available_periods=[
            {"start": "2026-03-09", "end": "2026-03-11", "period_name": "Lun-Mer", "maxReservations": 4, "currentReservations": 1},
            {"start": "2026-03-05", "end": "2026-03-09", "period_name": "Jeu-Lun", "maxReservations": 2, "currentReservations": 0},
            {"start": "2026-03-10", "end": "2026-03-10", "period_name": "Mardi", "maxReservations": 3, "currentReservations": 0},
            {"start": "2026-03-16", "end": "2026-03-18", "period_name": "Complet", "maxReservations": 2, "currentReservations": 2},
        ],
    )


def fill_contact(controller: Any, **overrides: Any) -> None:
    values = {
        "name": "Salma Bennani",
        "email": "salma@example.ma",
        "phone": "06 12 34 56 78",
        "country_code": "212",
        "delivery_address": "12 rue des Fleurs",
    }
    values.update(overrides)
    controller.update(**values)
