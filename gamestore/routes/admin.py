"""Admin API: order and payment handling, catalog maintenance, user roles."""

from __future__ import annotations

from flask import Blueprint, request

from ..common.errors import AuthorizationError, ValidationError
from ..common.models.status import OrderStatus, PaymentStatus, UserRole
from ..common.utils.validators import (
    optional_choice,
    optional_str,
    require_choice,
)
from .gate import authenticate, components, is_admin, json_body, ok


admin_bp = Blueprint("gamestore_admin", __name__, url_prefix="/api/admin")


@admin_bp.before_request
def guard_admin_routes():
    authenticate()
    if not is_admin():
        raise AuthorizationError("Admin access required")
    return None


@admin_bp.get("/orders")
def list_orders():
    args = request.args
    result = components()["order_service"].list_orders(
        status=optional_choice(args, "status", [s.value for s in OrderStatus]),
        payment_status=optional_choice(args, "paymentStatus", [s.value for s in PaymentStatus]),
        page=args.get("page"),
        limit=args.get("limit"),
        default_limit=20,
        max_limit=100,
    )
    return ok(result)


@admin_bp.patch("/orders/<order_id>")
def update_order(order_id: str):
    payload = json_body()
    order = components()["order_service"].update_order(
        order_id,
        status=optional_choice(payload, "status", [s.value for s in OrderStatus]),
        payment_status=optional_choice(payload, "paymentStatus", [s.value for s in PaymentStatus]),
        notes=optional_str(payload, "notes", None),
    )
    return ok({"order": order}, "Order updated successfully")


@admin_bp.post("/orders/<order_id>/complete")
def complete_order(order_id: str):
    order = components()["order_service"].complete_order(order_id)
    return ok({"order": order}, "Order marked as completed")


@admin_bp.post("/orders/<order_id>/cancel")
def cancel_order(order_id: str):
    payload = json_body()
    order = components()["order_service"].cancel_order(order_id, optional_str(payload, "reason", None))
    return ok({"order": order}, "Order cancelled")


@admin_bp.get("/products")
def list_products():
    result = components()["catalog_service"].admin_list_products(
        page=request.args.get("page"), limit=request.args.get("limit")
    )
    return ok(result)


@admin_bp.post("/products/<product_id>/denominations")
def add_denomination(product_id: str):
    denomination = components()["catalog_service"].add_denomination(product_id, json_body())
    return ok({"denomination": denomination}, "Denomination added successfully", 201)


@admin_bp.get("/denominations/<denomination_id>")
def get_denomination(denomination_id: str):
    return ok({"denomination": components()["catalog_service"].get_denomination(denomination_id)})


@admin_bp.put("/denominations/<denomination_id>")
def update_denomination(denomination_id: str):
    denomination = components()["catalog_service"].update_denomination(denomination_id, json_body())
    return ok({"denomination": denomination}, "Denomination updated successfully")


@admin_bp.get("/payments")
def list_payments():
    result = components()["payment_service"].list_payments(
        status=optional_choice(request.args, "status", [s.value for s in PaymentStatus]),
        page=request.args.get("page"),
        limit=request.args.get("limit"),
    )
    return ok(result)


@admin_bp.post("/payments/<payment_id>/review")
def review_payment(payment_id: str):
    payload = json_body()
    approved = payload.get("approved")
    if not isinstance(approved, bool):
        raise ValidationError("Validation failed", errors=[{"field": "approved", "message": "approved must be a boolean"}])
    result = components()["payment_service"].review_payment(
        payment_id, approved=approved, notes=optional_str(payload, "notes", None)
    )
    return ok(result, "Payment approved" if approved else "Payment rejected")


@admin_bp.get("/users")
def list_users():
    result = components()["user_service"].list_users(
        page=request.args.get("page"), limit=request.args.get("limit")
    )
    return ok(result)


@admin_bp.patch("/users/<uid>/role")
def set_user_role(uid: str):
    role = require_choice(json_body(), "role", [r.value for r in UserRole])
    return ok({"user": components()["user_service"].set_role(uid, role)}, "Role updated")
