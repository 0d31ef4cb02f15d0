"""
Payment redirect bridge: what happens to a freshly created order/reservation.

    Created -> CompletedImmediately                 (cash)
    Created -> PersistedPending -> Redirecting      (online / partial)
    Created -> PersistedPending -> PaymentFailed    (initiation failed; the transaction still exists)

The persisted record and payment intent are written before any navigation: the gateway
hop unloads the page and only persisted state survives the round-trip.
"""
import html
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Protocol

from blane_checkout.core.constants import (
    DEFAULT_TRANSACTION_STATUS,
    PAYMENT_PARTIAL,
    PAYMENT_TYPE_FULL,
    PAYMENT_TYPE_PARTIAL,
    REDIRECT_PAYMENT_METHODS,
)
from blane_checkout.core.errors import (
    MSG_PAYMENT_PREPARATION,
    BackendError,
    PaymentPreparationError,
    PersistenceError,
)
from blane_checkout.schemas import Deal, PaymentInitiation, PaymentIntent
from blane_checkout.services.api import BlaneApiClient
from blane_checkout.services.pricing import PriceQuote
from blane_checkout.services.store import KeyValueStore, TransactionStore

logger = logging.getLogger(__name__)


class PaymentNavigator(Protocol):
    """Hands control to the gateway with a POST-style navigation. Control does not come back."""

    def submit_payment_form(self, url: str, form_data: dict[str, str]) -> None:
        ...


def render_auto_submit_form(url: str, form_data: dict[str, str]) -> str:
    """HTML page that POSTs exactly `form_data` to `url` as soon as it loads."""
    inputs = "\n".join(
        f'    <input type="hidden" name="{html.escape(k, quote=True)}" value="{html.escape(v, quote=True)}">'
        for k, v in form_data.items()
    )
    return (
        "<!DOCTYPE html>\n<html>\n<body onload=\"document.forms[0].submit()\">\n"
        f'  <form method="POST" action="{html.escape(url, quote=True)}">\n'
        f"{inputs}\n"
        "  </form>\n</body>\n</html>\n"
    )


class HtmlFormNavigator:
    """Navigator for server-rendered pages: writes the auto-submit form to `sink` (e.g. a response body)."""

    def __init__(self, sink: Callable[[str], Any]) -> None:
        self._sink = sink

    def submit_payment_form(self, url: str, form_data: dict[str, str]) -> None:
        self._sink(render_auto_submit_form(url, form_data))


class BridgeOutcome(str, Enum):
    COMPLETED_IMMEDIATELY = "completed_immediately"
    REDIRECTING = "redirecting"
    PAYMENT_FAILED = "payment_failed"


@dataclass
class RedirectResult:
    outcome: BridgeOutcome
    kind: str
    reference: str
    record: dict[str, Any]
    # Last status the backend reported for the transaction; never upgraded locally
    status: str
    persisted: bool = False
    intent: PaymentIntent | None = None
    initiation: PaymentInitiation | None = None
    error: str | None = None


def payment_type_for(method: str) -> str:
    return PAYMENT_TYPE_PARTIAL if method == PAYMENT_PARTIAL else PAYMENT_TYPE_FULL


class PaymentRedirectBridge:
    def __init__(self, client: BlaneApiClient, store: KeyValueStore, navigator: PaymentNavigator) -> None:
        self.client = client
        self.store = store
        self.navigator = navigator

    async def handle(
        self,
        deal: Deal,
        kind: str,
        record: dict[str, Any],
        method: str,
        price: PriceQuote,
    ) -> RedirectResult:
        """Persist the created transaction and, for online/partial, send the customer to the gateway."""
        scoped = TransactionStore(self.store, deal.slug)
        status = str(record.get("status") or DEFAULT_TRANSACTION_STATUS)
        fee = price.delivery_fee if not deal.is_reservation else None

        if method not in REDIRECT_PAYMENT_METHODS:
            result = RedirectResult(BridgeOutcome.COMPLETED_IMMEDIATELY, kind, "", record, status)
            try:
                result.reference = scoped.save_record(kind, record, delivery_fee=fee)
                result.persisted = True
            except PersistenceError as e:
                logger.warning("Could not persist cash %s for deal %s: %s", kind, deal.slug, e.message)
            logger.info("Cash %s %s for deal %s completed", kind, result.reference or "?", deal.slug)
            return result

        result = RedirectResult(BridgeOutcome.PAYMENT_FAILED, kind, "", record, status)
        try:
            result.reference = scoped.save_record(kind, record, delivery_fee=fee)
            result.intent = PaymentIntent(
                type=kind,
                id=result.reference,
                method=method,
                amount=price.amount_due_now(method),
                timestamp=datetime.now(timezone.utc).isoformat(),
                status=status,
            )
            scoped.save_payment_intent(result.intent)
            result.persisted = True
        except PersistenceError as e:
            # Nothing durable to come back to after the gateway: do not navigate
            logger.warning("Could not persist %s for deal %s before redirect: %s", kind, deal.slug, e.message)
            result.error = MSG_PAYMENT_PREPARATION
            return result

        try:
            result.initiation = await self.client.initiate_payment(kind, result.reference, payment_type_for(method))
        except (BackendError, PaymentPreparationError) as e:
            logger.warning("Payment preparation failed for %s %s: %s", kind, result.reference, e.message)
            result.error = MSG_PAYMENT_PREPARATION
            return result

        logger.info("Redirecting %s %s to payment gateway", kind, result.reference)
        self.navigator.submit_payment_form(result.initiation.redirect_url, result.initiation.payment_form_data)
        result.outcome = BridgeOutcome.REDIRECTING
        return result
