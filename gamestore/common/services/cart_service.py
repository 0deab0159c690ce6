from decimal import Decimal
from typing import Dict, Optional
from uuid import uuid4

from ..errors import NotFoundError, ValidationError
from ..models.cart import Cart, CartItem
from ..models.denomination import Denomination
from ..models.product import Product
from ..utils.validators import ensure_int


class CartService:
    """Cart operations backed by DB.

    The cart stores references only. Prices come from the live denomination
    every time the cart is read, and lines whose denomination is missing or
    inactive are left out of the response without touching storage.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    @staticmethod
    def _empty() -> Dict:
        return {"items": [], "totalItems": 0, "totalPrice": 0}

    def get_cart(self, *, user_id: str) -> Dict:
        with self._session_factory() as session:
            cart = session.query(Cart).filter(Cart.user_id == user_id).first()
            if not cart:
                return {"cart": self._empty()}
            denom_ids = {it.denomination_id for it in cart.items}
            product_ids = {it.product_id for it in cart.items}
            denominations = {
                d.id: d for d in session.query(Denomination).filter(Denomination.id.in_(denom_ids)).all()
            } if denom_ids else {}
            products = {
                p.id: p for p in session.query(Product).filter(Product.id.in_(product_ids)).all()
            } if product_ids else {}

            total = Decimal("0")
            items = []
            for it in cart.items:
                denomination = denominations.get(it.denomination_id)
                if not denomination or not denomination.is_active:
                    continue
                line_total = Decimal(str(denomination.price)) * it.quantity
                total += line_total
                product = products.get(it.product_id)
                items.append(
                    {
                        "id": it.id,
                        "productId": it.product_id,
                        "product": product.to_summary() if product else None,
                        "denominationId": it.denomination_id,
                        "denomination": denomination.to_summary(),
                        "quantity": it.quantity,
                        "gameUid": it.game_uid,
                        "server": it.server,
                        "playerId": it.player_id,
                        "totalPrice": float(line_total),
                    }
                )
            return {
                "cart": {
                    "id": cart.id,
                    "userId": cart.user_id,
                    "items": items,
                    "totalItems": len(items),
                    "totalPrice": float(total),
                }
            }

    def add_item(
        self,
        *,
        user_id: str,
        product_id: str,
        denomination_id: str,
        quantity=1,
        game_uid: str = "",
        server: str = "",
        player_id: str = "",
    ) -> Dict:
        if not product_id:
            raise ValidationError("Validation failed", errors=[{"field": "productId", "message": "productId is required"}])
        if not denomination_id:
            raise ValidationError(
                "Validation failed", errors=[{"field": "denominationId", "message": "denominationId is required"}]
            )
        qnty = ensure_int(1 if quantity is None else quantity, "quantity", minimum=1)
        game_uid = game_uid or ""
        with self._session_factory() as session:
            product = session.get(Product, product_id)
            if not product or not product.is_active:
                raise ValidationError("Product not found")
            denomination = session.get(Denomination, denomination_id)
            if not denomination or not denomination.is_active or denomination.product_id != product.id:
                raise ValidationError("Denomination not found")

            cart = session.query(Cart).filter(Cart.user_id == user_id).first()
            if not cart:
                cart = Cart(id=str(uuid4()), user_id=user_id)
                session.add(cart)

            # Try merge with existing same product + denomination + game uid
            existing = next(
                (it for it in cart.items if it.same_line(product_id, denomination_id, game_uid)),
                None,
            )
            if existing:
                existing.quantity += qnty
                item_id = existing.id
            else:
                item = CartItem(
                    id=str(uuid4()),
                    product_id=product_id,
                    denomination_id=denomination_id,
                    quantity=qnty,
                    game_uid=game_uid,
                    server=server or "",
                    player_id=player_id or "",
                    position=max((it.position for it in cart.items), default=-1) + 1,
                )
                cart.items.append(item)
                item_id = item.id
            session.flush()
            return {"cartId": cart.id, "itemId": item_id}

    def _find_line(self, session, user_id: str, item_id: str):
        cart = session.query(Cart).filter(Cart.user_id == user_id).first()
        if not cart:
            raise NotFoundError("Cart not found")
        item = next((it for it in cart.items if it.id == item_id), None)
        if not item:
            raise NotFoundError("Cart item not found")
        return cart, item

    def update_item(
        self,
        *,
        user_id: str,
        item_id: str,
        quantity,
        game_uid: Optional[str] = None,
        server: Optional[str] = None,
        player_id: Optional[str] = None,
    ) -> Dict:
        qnty = ensure_int(quantity, "quantity", minimum=0)
        with self._session_factory() as session:
            cart, item = self._find_line(session, user_id, item_id)
            if qnty == 0:
                cart.items.remove(item)
                session.flush()
                return {"status": "removed", "itemId": item_id}
            if game_uid is not None and (game_uid or "") != (item.game_uid or ""):
                # the edited line now matches another one: fold it in
                other = next(
                    (
                        it
                        for it in cart.items
                        if it.id != item.id and it.same_line(item.product_id, item.denomination_id, game_uid)
                    ),
                    None,
                )
                if other:
                    other.quantity += qnty
                    if server is not None:
                        other.server = server
                    if player_id is not None:
                        other.player_id = player_id
                    cart.items.remove(item)
                    session.flush()
                    return {"status": "merged", "itemId": other.id}
            item.quantity = qnty
            if game_uid is not None:
                item.game_uid = game_uid
            if server is not None:
                item.server = server
            if player_id is not None:
                item.player_id = player_id
            session.flush()
            return {"status": "updated", "itemId": item_id}

    def remove_item(self, *, user_id: str, item_id: str) -> None:
        with self._session_factory() as session:
            cart, item = self._find_line(session, user_id, item_id)
            cart.items.remove(item)
            session.flush()

    def clear_cart(self, *, user_id: str) -> None:
        with self._session_factory() as session:
            cart = session.query(Cart).filter(Cart.user_id == user_id).first()
            if cart:
                session.delete(cart)
                session.flush()
