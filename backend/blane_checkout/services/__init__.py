"""
Checkout core: pricing, availability, the draft form, the payment redirect hop and
reconciliation after the customer comes back.
"""
from blane_checkout.services.availability import AvailabilityResolver
from blane_checkout.services.draft import SubmissionResult, TransactionDraftController
from blane_checkout.services.reconcile import ReconciledTransaction, TransactionReconciler
from blane_checkout.services.redirect import HtmlFormNavigator, PaymentNavigator, PaymentRedirectBridge

__all__ = [
    "AvailabilityResolver",
    "HtmlFormNavigator",
    "PaymentNavigator",
    "PaymentRedirectBridge",
    "ReconciledTransaction",
    "SubmissionResult",
    "TransactionDraftController",
    "TransactionReconciler",
]
