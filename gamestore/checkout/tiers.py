"""Order persistence tiers tried in turn by the checkout orchestrator.

Each tier owns its own id space. Nothing reconciles an order written to
Firestore or the local file with the API store afterwards.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import requests
from firebase_admin import firestore

from ..common.errors import UpstreamError
from ..common.services.logging import log_event
from ..services.local_order_repository import LocalOrderRepository
from .models import CheckoutDraft


def _millis(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ApiCheckoutTier:
    """Places the order and the manual payment through the storefront REST API."""

    name = "api"

    def __init__(self, base_url: str, *, session: Optional[requests.Session] = None, timeout: int = 15) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def _post(self, path: str, payload: Dict[str, Any], id_token: Optional[str], failure: str) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if id_token:
            headers["Authorization"] = f"Bearer {id_token}"
        try:
            response = self._session.post(
                f"{self._base_url}{path}", json=payload, headers=headers, timeout=self._timeout
            )
        except requests.exceptions.RequestException as exc:
            raise UpstreamError(f"{failure}: {exc}") from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamError(f"{failure}: HTTP {response.status_code}") from exc
        if response.status_code >= 400 or not body.get("success"):
            raise UpstreamError(body.get("message") or failure)
        return body.get("data") or {}

    def create_order(self, draft: CheckoutDraft) -> Dict[str, Any]:
        path = "/orders" if draft.id_token else "/orders/guest"
        payload = {
            "billingInfo": draft.billing.to_dict(),
            "paymentMethod": draft.payment.method,
            "items": draft.order_items(),
        }
        if draft.notes:
            payload["notes"] = draft.notes
        data = self._post(path, payload, draft.id_token, "Order creation failed")
        order = data.get("order")
        if not order:
            raise UpstreamError("Order creation failed")
        return order

    def create_payment(self, order: Dict[str, Any], draft: CheckoutDraft) -> Dict[str, Any]:
        payload = {
            "orderId": order["id"],
            "paymentMethod": draft.payment.method,
            "senderNumber": draft.payment.sender_number,
            "transactionId": draft.payment.transaction_id,
            "amount": float(draft.total),
            "senderName": draft.payment.sender_name,
        }
        data = self._post("/payments/manual", payload, draft.id_token, "Payment submission failed")
        return data.get("payment") or {}


class FirestoreCheckoutTier:
    """Writes to the ``orders`` and ``payments`` collections with lower-case statuses."""

    name = "firestore"

    def __init__(self, client, *, clock: Callable[[], float] = time.time) -> None:
        self._client = client
        self._clock = clock

    @classmethod
    def from_app(cls, app) -> "FirestoreCheckoutTier":
        return cls(firestore.client(app))

    def create_order(self, draft: CheckoutDraft) -> Dict[str, Any]:
        data = {
            "userId": draft.user_id or "guest",
            "userName": draft.billing.full_name,
            "userEmail": draft.billing.email,
            "orderNumber": f"ORD-{_millis(self._clock)}",
            "items": [
                {
                    "productId": line.product_id,
                    "productName": line.name or "Unknown Product",
                    "quantity": line.quantity,
                    "price": float(line.price),
                }
                for line in draft.lines
            ],
            "totalAmount": float(draft.total),
            "paymentMethod": draft.payment.method,
            "status": "pending",
            "paymentStatus": "pending",
            "shippingInfo": {
                "name": draft.billing.full_name,
                "email": draft.billing.email,
                "phone": draft.billing.phone,
                "address": draft.payment.game_uid or "N/A",
            },
        }
        _, ref = self._client.collection("orders").add(
            dict(data, createdAt=firestore.SERVER_TIMESTAMP, updatedAt=firestore.SERVER_TIMESTAMP)
        )
        now = _iso_now()
        return dict(data, id=ref.id, createdAt=now, updatedAt=now)

    def create_payment(self, order: Dict[str, Any], draft: CheckoutDraft) -> Dict[str, Any]:
        data = {
            "orderId": order["id"],
            "userId": draft.user_id or "guest",
            "amount": float(draft.total),
            "method": draft.payment.method,
            "transactionId": draft.payment.transaction_id,
            "status": "pending",
            "paymentDetails": {
                "senderNumber": draft.payment.sender_number,
                "senderName": draft.payment.sender_name,
                "gameUid": draft.payment.game_uid,
                "playerId": draft.payment.player_id,
            },
        }
        _, ref = self._client.collection("payments").add(
            dict(data, createdAt=firestore.SERVER_TIMESTAMP, updatedAt=firestore.SERVER_TIMESTAMP)
        )
        return dict(data, id=ref.id)


class LocalCheckoutTier:
    """Last resort: a demo order appended to a JSON file on this machine."""

    name = "local"

    def __init__(self, repository: LocalOrderRepository, *, clock: Callable[[], float] = time.time) -> None:
        self._repository = repository
        self._clock = clock

    def create_order(self, draft: CheckoutDraft) -> Dict[str, Any]:
        millis = _millis(self._clock)
        now = _iso_now()
        record = {
            "id": f"demo-{millis}",
            "orderNumber": f"ORD-{millis}",
            "items": draft.order_items(),
            "totalAmount": float(draft.total),
            "status": "PENDING",
            "paymentStatus": "PENDING",
            "paymentMethod": draft.payment.method,
            "billingInfo": draft.billing.to_dict(),
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            self._repository.add_order(record)
        except (ValueError, OSError) as exc:
            # a failed write does not fail the checkout
            log_event("error", "checkout.local_store_failed", order_id=record["id"], error=str(exc))
        return record

    def create_payment(self, order: Dict[str, Any], draft: CheckoutDraft) -> Dict[str, Any]:
        # the demo record is the whole receipt
        return {}
