"""
Slug-scoped persisted transaction state.

One deal's record never leaks into another deal's page: every key carries the
deal slug. Written right after a successful submission and before any redirect,
overwritten by reconciliation, removed only when the customer starts over.
"""
import json
import logging
from typing import Any

from pydantic import ValidationError

from blane_checkout.core.constants import (
    KEY_ORDER_DELIVERY_FEE,
    KEY_PAYMENT_INTENT,
    KEY_SLUG_DELIVERY_FEE,
    KEY_TRANSACTION_DATA,
    KEY_TRANSACTION_ID,
    KIND_ORDER,
    TRANSACTION_KINDS,
)
from blane_checkout.schemas import PaymentIntent, transaction_reference
from blane_checkout.services.store.base import KeyValueStore

logger = logging.getLogger(__name__)


class TransactionStore:
    """Key schema and JSON encoding for one deal slug on top of any KeyValueStore."""

    def __init__(self, store: KeyValueStore, slug: str) -> None:
        if not slug:
            raise ValueError("TransactionStore needs a deal slug")
        self.store = store
        self.slug = slug

    # ---- keys -------------------------------------------------------------------

    def id_key(self, kind: str) -> str:
        return KEY_TRANSACTION_ID.format(slug=self.slug, kind=kind)

    def data_key(self, kind: str) -> str:
        return KEY_TRANSACTION_DATA.format(slug=self.slug, kind=kind)

    @property
    def intent_key(self) -> str:
        return KEY_PAYMENT_INTENT.format(slug=self.slug)

    # ---- writes -----------------------------------------------------------------

    def save_record(self, kind: str, record: dict[str, Any], *, delivery_fee: float | None = None) -> str:
        """Persist id + full record. Orders carry their delivery fee, also under the fallback fee keys."""
        reference = transaction_reference(kind, record)
        data = dict(record)
        if kind == KIND_ORDER and delivery_fee is not None:
            data["delivery_fee"] = delivery_fee
        if reference:
            self.store.set(self.id_key(kind), reference)
        self.store.set(self.data_key(kind), json.dumps(data, default=str))
        if kind == KIND_ORDER and delivery_fee is not None:
            if reference:
                self.store.set(KEY_ORDER_DELIVERY_FEE.format(order_id=reference), str(delivery_fee))
            self.store.set(KEY_SLUG_DELIVERY_FEE.format(slug=self.slug), str(delivery_fee))
        logger.debug("Persisted %s %s for deal %s", kind, reference or "?", self.slug)
        return reference

    def update_record(self, kind: str, record: dict[str, Any]) -> None:
        """Overwrite the cached record with a fresher one, keeping a previously embedded delivery fee."""
        data = dict(record)
        if kind == KIND_ORDER and "delivery_fee" not in data:
            previous = self.load_record(kind)
            if previous and "delivery_fee" in previous:
                data["delivery_fee"] = previous["delivery_fee"]
        self.store.set(self.data_key(kind), json.dumps(data, default=str))

    def save_payment_intent(self, intent: PaymentIntent) -> None:
        self.store.set(self.intent_key, intent.model_dump_json())

    def drop_id(self, kind: str) -> None:
        self.store.remove(self.id_key(kind))

    def clear(self, kind: str | None = None) -> None:
        """Forget the transaction for this slug (customer starts a new one)."""
        for k in (kind,) if kind else TRANSACTION_KINDS:
            self.store.remove(self.id_key(k))
            self.store.remove(self.data_key(k))
        self.store.remove(self.intent_key)
        logger.info("Cleared persisted transaction for deal %s", self.slug)

    # ---- reads ------------------------------------------------------------------

    def load_id(self, kind: str) -> str | None:
        value = self.store.get(self.id_key(kind))
        return value.strip() if value and value.strip() else None

    def load_record(self, kind: str) -> dict[str, Any] | None:
        """Cached record, or None. A corrupt record is removed so it is not retried forever."""
        raw = self.store.get(self.data_key(kind))
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            data = None
        if not isinstance(data, dict):
            logger.warning("Dropping corrupt %s record for deal %s", kind, self.slug)
            self.store.remove(self.data_key(kind))
            return None
        return data

    def load_payment_intent(self) -> PaymentIntent | None:
        raw = self.store.get(self.intent_key)
        if not raw:
            return None
        try:
            return PaymentIntent.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable payment intent for deal %s", self.slug)
            return None

    def delivery_fee(self, order_id: str | None = None) -> float | None:
        """Fee fallback for pages reloaded after the gateway: per-order key, per-slug key, then the record."""
        candidates = []
        if order_id:
            candidates.append(self.store.get(KEY_ORDER_DELIVERY_FEE.format(order_id=order_id)))
        candidates.append(self.store.get(KEY_SLUG_DELIVERY_FEE.format(slug=self.slug)))
        for raw in candidates:
            if raw is None:
                continue
            try:
                return float(raw)
            except ValueError:
                continue
        record = self.load_record(KIND_ORDER)
        if record and record.get("delivery_fee") is not None:
            try:
                return float(record["delivery_fee"])
            except (TypeError, ValueError):
                return None
        return None
