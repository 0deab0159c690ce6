"""Payment submission endpoints. Card is a placeholder; bKash and Nagad await manual review."""

from __future__ import annotations

from flask import Blueprint, g

from ..common.models.status import MANUAL_PAYMENT_METHODS
from ..common.utils.validators import ensure_decimal, optional_str, require_choice, require_str
from .gate import components, is_admin, json_body, ok, require_auth


payments_bp = Blueprint("gamestore_payments", __name__, url_prefix="/api/payments")


def _payments():
    return components()["payment_service"]


@payments_bp.post("/manual")
@require_auth
def submit_manual_payment():
    payload = json_body()
    payment = _payments().submit_manual_payment(
        order_id=require_str(payload, "orderId"),
        payment_method=require_choice(payload, "paymentMethod", MANUAL_PAYMENT_METHODS),
        sender_number=require_str(payload, "senderNumber"),
        transaction_id=require_str(payload, "transactionId"),
        amount=ensure_decimal(payload.get("amount"), "amount", minimum=0),
        sender_name=optional_str(payload, "senderName"),
        caller_uid=g.user["uid"],
    )
    return ok({"payment": payment}, "Payment submitted successfully. We will verify and process your order shortly.", 201)


@payments_bp.post("/card")
@require_auth
def submit_card_payment():
    payload = json_body()
    result = _payments().submit_card_payment(order_id=require_str(payload, "orderId"), caller_uid=g.user["uid"])
    return ok(result, "Card payment initiated")


@payments_bp.get("/order/<order_id>")
@require_auth
def payment_status(order_id: str):
    result = _payments().payment_status(order_id=order_id, caller_uid=g.user["uid"], is_admin=is_admin())
    return ok(result)
