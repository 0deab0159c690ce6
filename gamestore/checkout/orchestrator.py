"""Best-effort checkout across persistence tiers, first success wins."""

from __future__ import annotations

from typing import List, Sequence

from ..common.services.logging import log_event
from ..config import StoreConfig
from ..services.identity import initialize_identity_app
from ..services.local_order_repository import LocalOrderRepository
from .models import CheckoutDraft, CheckoutError, CheckoutReceipt
from .tiers import ApiCheckoutTier, FirestoreCheckoutTier, LocalCheckoutTier

SUCCESS_MESSAGE = "Order placed successfully!"


class CheckoutOrchestrator:
    """Try each tier in order until one stores both the order and the payment.

    A tier failure is logged and the next tier is tried. The caller sees the
    same success message whichever tier took the order; ``receipt.tier``
    tells them apart.
    """

    def __init__(self, tiers: Sequence) -> None:
        if not tiers:
            raise ValueError("At least one checkout tier is required")
        self._tiers = list(tiers)

    @property
    def tier_names(self) -> List[str]:
        return [tier.name for tier in self._tiers]

    def place_order(self, draft: CheckoutDraft) -> CheckoutReceipt:
        draft.validate()
        failures: List[str] = []
        for tier in self._tiers:
            try:
                order = tier.create_order(draft)
                tier.create_payment(order, draft)
            except Exception as exc:  # any tier failure moves on to the next tier
                failures.append(f"{tier.name}: {exc}")
                log_event("warning", "checkout.tier_failed", tier=tier.name, error=str(exc))
                continue
            log_event(
                "info",
                "checkout.placed",
                tier=tier.name,
                order_id=order.get("id"),
                order_number=order.get("orderNumber"),
                fallbacks=len(failures),
            )
            return CheckoutReceipt(tier=tier.name, order=order, message=SUCCESS_MESSAGE, failures=failures)
        log_event("error", "checkout.all_tiers_failed", failures=failures)
        raise CheckoutError("Something went wrong. Please try again.")


def build_orchestrator(config: StoreConfig, *, firestore_client=None) -> CheckoutOrchestrator:
    """API first, then Firestore when the identity app is available, then the local file."""
    tiers: List = [ApiCheckoutTier(config.api_base_url)]
    if firestore_client is not None:
        tiers.append(FirestoreCheckoutTier(firestore_client))
    else:
        app = initialize_identity_app(config)
        if app is not None:
            tiers.append(FirestoreCheckoutTier.from_app(app))
    tiers.append(LocalCheckoutTier(LocalOrderRepository(config.local_orders_file)))
    return CheckoutOrchestrator(tiers)
