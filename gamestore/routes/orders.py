"""Order placement and lookup."""

from __future__ import annotations

from typing import Dict, List

from flask import Blueprint, g, request

from ..common.errors import ValidationError
from ..common.models.status import OrderStatus, PaymentMethod
from ..common.utils.validators import (
    optional_choice,
    optional_str,
    require_choice,
    require_email,
    require_object,
    require_str,
)
from .gate import components, json_body, ok, require_auth


orders_bp = Blueprint("gamestore_orders", __name__, url_prefix="/api/orders")


def _orders():
    return components()["order_service"]


def parse_order_payload(payload: Dict) -> Dict:
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("Validation failed", errors=[{"field": "items", "message": "items must be a non-empty list"}])
    lines: List[Dict] = []
    for index, item in enumerate(items):
        field = f"items[{index}]"
        item = require_object(item, field)
        lines.append(
            {
                "productId": require_str(item, "productId", label=f"{field}.productId"),
                "denominationId": require_str(item, "denominationId", label=f"{field}.denominationId"),
                "quantity": item.get("quantity"),
                "gameUid": optional_str(item, "gameUid"),
                "server": optional_str(item, "server"),
                "playerId": optional_str(item, "playerId"),
            }
        )
    billing = require_object(payload.get("billingInfo"), "billingInfo")
    return {
        "items": lines,
        "billing_info": {
            "fullName": require_str(billing, "fullName", label="billingInfo.fullName"),
            "email": require_email(billing, "email", label="billingInfo.email"),
            "phone": require_str(billing, "phone", label="billingInfo.phone"),
        },
        "payment_method": require_choice(payload, "paymentMethod", [m.value for m in PaymentMethod]),
        "notes": optional_str(payload, "notes"),
    }


@orders_bp.get("")
@require_auth
def list_orders():
    result = _orders().list_orders(
        user_id=g.user["uid"],
        status=optional_choice(request.args, "status", [s.value for s in OrderStatus]),
        page=request.args.get("page"),
        limit=request.args.get("limit"),
    )
    return ok(result)


@orders_bp.get("/<order_id>")
@require_auth
def get_order(order_id: str):
    return ok({"order": _orders().get_order(order_id, user_id=g.user["uid"])})


@orders_bp.post("")
@require_auth
def create_order():
    order = _orders().create_order(user_id=g.user["uid"], **parse_order_payload(json_body()))
    return ok({"order": order}, "Order created successfully", 201)


@orders_bp.post("/guest")
def create_guest_order():
    order = _orders().create_order(user_id=None, **parse_order_payload(json_body()))
    return ok({"order": order}, "Order created successfully", 201)


@orders_bp.get("/number/<order_number>")
def get_order_by_number(order_number: str):
    return ok({"order": _orders().get_by_number(order_number)})
