"""
Transaction reconciliation: recover a deal's persisted order/reservation when its page is
(re)entered, and refresh its status once from the backend. Not a polling loop.

Recovery order per kind (reservation first, then order):
  cached record -> used as-is, then one refresh
  only an id    -> fetched by id (that fetch is the refresh); a failed fetch drops the id
  nothing       -> no transaction; the caller renders a fresh draft
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError

from blane_checkout.core.constants import (
    DEFAULT_TRANSACTION_STATUS,
    KIND_ORDER,
    KIND_RESERVATION,
    STATUS_FAILED,
)
from blane_checkout.core.errors import BackendError, PersistenceError
from blane_checkout.schemas import Deal, PaymentIntent, transaction_reference
from blane_checkout.services.api import BlaneApiClient
from blane_checkout.services.store import KeyValueStore, TransactionStore

logger = logging.getLogger(__name__)

RECOVERY_ORDER = (KIND_RESERVATION, KIND_ORDER)

# Gateway return outcomes that mean the payment did not go through
FAILED_OUTCOMES = frozenset({"failed", "failure", "fail", "error", "cancelled", "canceled"})


class RecoverySource(str, Enum):
    CACHE = "cache"
    BACKEND = "backend"


@dataclass
class ReconciledTransaction:
    kind: str
    reference: str
    record: dict[str, Any]
    source: RecoverySource
    payment_intent: PaymentIntent | None = None
    delivery_fee: float | None = None
    refreshed: bool = False

    @property
    def status(self) -> str:
        return str(self.record.get("status") or DEFAULT_TRANSACTION_STATUS)

    @property
    def backend_id(self) -> str:
        """Id to fetch by: the record's own id when known, else the persisted reference."""
        rid = self.record.get("id")
        return str(rid) if rid not in (None, "") else self.reference

    @property
    def deal(self) -> Deal | None:
        """The deal embedded by the include= query, parsed; None when absent or unreadable."""
        raw = self.record.get("blane")
        if isinstance(raw, dict) and "data" in raw:
            raw = raw["data"]
        if not isinstance(raw, dict):
            return None
        try:
            return Deal.model_validate(raw)
        except ValidationError:
            logger.debug("Embedded deal on %s %s is not readable", self.kind, self.reference)
            return None


class TransactionReconciler:
    def __init__(self, client: BlaneApiClient, store: KeyValueStore) -> None:
        self.client = client
        self.store = store

    def _scoped(self, slug: str) -> TransactionStore:
        return TransactionStore(self.store, slug)

    def _result(
        self,
        scoped: TransactionStore,
        kind: str,
        record: dict[str, Any],
        source: RecoverySource,
        reference: str,
    ) -> ReconciledTransaction:
        tx = ReconciledTransaction(
            kind=kind,
            reference=reference or transaction_reference(kind, record),
            record=record,
            source=source,
        )
        try:
            tx.payment_intent = scoped.load_payment_intent()
            if kind == KIND_ORDER:
                tx.delivery_fee = self._delivery_fee(scoped, record, tx.reference)
        except PersistenceError as e:
            logger.warning("Could not read payment details for %s %s: %s", kind, tx.reference, e.message)
        return tx

    @staticmethod
    def _delivery_fee(scoped: TransactionStore, record: dict[str, Any], reference: str) -> float | None:
        fee = record.get("delivery_fee")
        try:
            return float(fee) if fee is not None else scoped.delivery_fee(reference)
        except (TypeError, ValueError):
            return scoped.delivery_fee(reference)

    @staticmethod
    def _write_back(scoped: TransactionStore, kind: str, fetched: dict[str, Any]) -> dict[str, Any]:
        """Cache a fetched record; the fetched copy stands when the store cannot be written or read."""
        try:
            scoped.update_record(kind, fetched)
            return scoped.load_record(kind) or fetched
        except PersistenceError as e:
            logger.warning("Could not cache %s for deal %s: %s", kind, scoped.slug, e.message)
            return fetched

    async def recover(self, slug: str) -> ReconciledTransaction | None:
        """Persisted transaction for this deal, fetching by id only when the record itself is gone."""
        scoped = self._scoped(slug)
        for kind in RECOVERY_ORDER:
            try:
                record = scoped.load_record(kind)
                reference = scoped.load_id(kind)
            except PersistenceError as e:
                logger.warning("Could not read persisted %s for deal %s: %s", kind, slug, e.message)
                continue
            if record is not None:
                logger.debug("Recovered cached %s for deal %s", kind, slug)
                return self._result(scoped, kind, record, RecoverySource.CACHE, reference or "")
            if not reference:
                continue
            try:
                fetched = await self.client.get_transaction(kind, reference)
            except BackendError as e:
                logger.warning("Dropping stale %s id %s for deal %s: %s", kind, reference, slug, e.message)
                try:
                    scoped.drop_id(kind)
                except PersistenceError as pe:
                    logger.warning("Could not drop %s id for deal %s: %s", kind, slug, pe.message)
                continue
            record = self._write_back(scoped, kind, fetched)
            logger.info("Recovered %s %s for deal %s from backend", kind, reference, slug)
            tx = self._result(scoped, kind, record, RecoverySource.BACKEND, reference)
            tx.refreshed = True
            return tx
        return None

    async def refresh(self, slug: str, tx: ReconciledTransaction) -> ReconciledTransaction:
        """One best-effort status refresh. On failure the cached record stays authoritative."""
        try:
            fetched = await self.client.get_transaction(tx.kind, tx.backend_id)
        except BackendError as e:
            logger.warning("Status refresh for %s %s failed: %s", tx.kind, tx.reference, e.message)
            return tx
        tx.record = self._write_back(self._scoped(slug), tx.kind, fetched)
        tx.refreshed = True
        logger.debug("Refreshed %s %s for deal %s: status %s", tx.kind, tx.reference, slug, tx.status)
        return tx

    async def reconcile(self, slug: str) -> ReconciledTransaction | None:
        """Recover, then refresh once if the record came from cache. Safe to call repeatedly."""
        tx = await self.recover(slug)
        if tx is None:
            logger.debug("No persisted transaction for deal %s", slug)
            return None
        if not tx.refreshed:
            tx = await self.refresh(slug, tx)
        return tx

    async def apply_gateway_return(self, slug: str, outcome: str) -> ReconciledTransaction | None:
        """
        Customer came back from the payment gateway. A failed outcome is reported to the
        backend (status -> failed) unless already recorded; success only refreshes, since
        the gateway callback to the backend is what marks a payment as paid.
        """
        tx = await self.recover(slug)
        if tx is None:
            logger.warning("Gateway return for deal %s without a persisted transaction", slug)
            return None
        if (outcome or "").strip().lower() in FAILED_OUTCOMES and tx.status != STATUS_FAILED:
            try:
                await self.client.update_status(tx.kind, tx.backend_id, STATUS_FAILED)
                logger.info("Marked %s %s as failed after gateway return", tx.kind, tx.reference)
            except BackendError as e:
                logger.warning("Could not mark %s %s as failed: %s", tx.kind, tx.reference, e.message)
            tx.refreshed = False
        if not tx.refreshed:
            tx = await self.refresh(slug, tx)
        return tx

    def start_new(self, slug: str, kind: str | None = None) -> None:
        """Forget this deal's persisted transaction so a fresh draft can be submitted."""
        self._scoped(slug).clear(kind)
