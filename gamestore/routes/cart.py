"""Per-user cart endpoints."""

from __future__ import annotations

from flask import Blueprint, g

from ..common.utils.validators import optional_str
from .gate import components, json_body, ok, require_auth


cart_bp = Blueprint("gamestore_cart", __name__, url_prefix="/api/cart")


def _carts():
    return components()["cart_service"]


@cart_bp.get("")
@require_auth
def get_cart():
    return ok(_carts().get_cart(user_id=g.user["uid"]))


@cart_bp.post("")
@require_auth
def add_to_cart():
    payload = json_body()
    _carts().add_item(
        user_id=g.user["uid"],
        product_id=optional_str(payload, "productId"),
        denomination_id=optional_str(payload, "denominationId"),
        quantity=payload.get("quantity"),
        game_uid=optional_str(payload, "gameUid"),
        server=optional_str(payload, "server"),
        player_id=optional_str(payload, "playerId"),
    )
    return ok(_carts().get_cart(user_id=g.user["uid"]), "Item added to cart")


@cart_bp.put("/<item_id>")
@require_auth
def update_cart_item(item_id: str):
    payload = json_body()
    result = _carts().update_item(
        user_id=g.user["uid"],
        item_id=item_id,
        quantity=payload.get("quantity"),
        game_uid=optional_str(payload, "gameUid", None),
        server=optional_str(payload, "server", None),
        player_id=optional_str(payload, "playerId", None),
    )
    message = "Item removed from cart" if result["status"] == "removed" else "Cart updated"
    return ok(_carts().get_cart(user_id=g.user["uid"]), message)


@cart_bp.delete("/<item_id>")
@require_auth
def remove_cart_item(item_id: str):
    _carts().remove_item(user_id=g.user["uid"], item_id=item_id)
    return ok(_carts().get_cart(user_id=g.user["uid"]), "Item removed from cart")


@cart_bp.delete("")
@require_auth
def clear_cart():
    _carts().clear_cart(user_id=g.user["uid"])
    return ok(message="Cart cleared")
