"""Checkout client: places an order through the API, Firestore or a local file."""

from .models import BillingInfo, CheckoutDraft, CheckoutError, CheckoutLine, CheckoutReceipt, ManualPaymentForm
from .orchestrator import CheckoutOrchestrator, build_orchestrator
from .tiers import ApiCheckoutTier, FirestoreCheckoutTier, LocalCheckoutTier

__all__ = [
    "BillingInfo",
    "CheckoutDraft",
    "CheckoutError",
    "CheckoutLine",
    "CheckoutReceipt",
    "ManualPaymentForm",
    "CheckoutOrchestrator",
    "build_orchestrator",
    "ApiCheckoutTier",
    "FirestoreCheckoutTier",
    "LocalCheckoutTier",
]
