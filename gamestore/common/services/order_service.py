import secrets
import string
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.denomination import Denomination
from ..models.order import Order
from ..models.product import Product
from ..models.status import (
    GUEST_USER_ID,
    ORDER_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    can_transition,
)
from ..utils.pagination import normalize_paging, pagination_meta
from ..utils.validators import ensure_int
from .logging import log_event

ORDER_NUMBER_ALPHABET = string.digits + string.ascii_uppercase
ORDER_NUMBER_ATTEMPTS = 5


def generate_order_number(created_at: datetime) -> str:
    """ORD-YYMMDD-XXXXXX where the suffix is six random base36 characters."""
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(6))
    return f"ORD-{created_at:%y%m%d}-{suffix}"


class OrderService:
    """Order creation, lookup and admin status changes backed by DB."""

    def __init__(self, session_factory, clock: Callable[[], datetime] = datetime.now):
        self._session_factory = session_factory
        self._clock = clock

    def create_order(
        self,
        *,
        items: List[Dict],
        billing_info: Dict[str, str],
        payment_method: str,
        user_id: Optional[str] = None,
        notes: str = "",
    ) -> Dict:
        """Validate every line, snapshot prices, then write one order row.

        A bad line aborts the whole order before anything is added to the
        session, so no partial order can be persisted.
        """
        if payment_method not in {m.value for m in PaymentMethod}:
            raise ValidationError(
                "Validation failed", errors=[{"field": "paymentMethod", "message": "unsupported payment method"}]
            )
        if not items:
            raise ValidationError("Validation failed", errors=[{"field": "items", "message": "items must not be empty"}])
        owner = user_id or GUEST_USER_ID
        with self._session_factory() as session:
            snapshot = []
            total = Decimal("0")
            for index, item in enumerate(items):
                quantity = ensure_int(
                    1 if item.get("quantity") is None else item.get("quantity"),
                    f"items[{index}].quantity",
                    minimum=1,
                )
                product = session.get(Product, item.get("productId") or "")
                if not product or not product.is_active:
                    raise ValidationError(f"Product not found: {item.get('productId')}")
                denomination = session.get(Denomination, item.get("denominationId") or "")
                if not denomination or not denomination.is_active:
                    raise ValidationError(f"Denomination not found: {item.get('denominationId')}")
                if denomination.product_id != product.id:
                    raise ValidationError(
                        f"Denomination {denomination.id} does not belong to product {product.id}"
                    )
                unit_price = Decimal(str(denomination.price))
                line_total = unit_price * quantity
                total += line_total
                snapshot.append(
                    {
                        "productId": product.id,
                        "denominationId": denomination.id,
                        "productName": product.name,
                        "denominationAmount": denomination.amount,
                        "quantity": quantity,
                        "unitPrice": float(unit_price),
                        "totalPrice": float(line_total),
                        "gameUid": item.get("gameUid") or "",
                        "server": item.get("server") or "",
                        "playerId": item.get("playerId") or "",
                    }
                )

            created_at = self._clock()
            order = Order(
                id=str(uuid4()),
                order_number=self._unique_order_number(session, created_at),
                user_id=owner,
                items=snapshot,
                total_amount=total,
                status=OrderStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                payment_method=payment_method,
                billing_info={
                    "fullName": billing_info.get("fullName", ""),
                    "email": billing_info.get("email", ""),
                    "phone": billing_info.get("phone", ""),
                },
                notes=notes or "",
                created_at=created_at,
                updated_at=created_at,
            )
            session.add(order)
            session.flush()
            log_event(
                "info",
                "order.created",
                order_id=order.id,
                order_number=order.order_number,
                guest=owner == GUEST_USER_ID,
                items=len(snapshot),
                total=float(total),
            )
            return order.to_dict()

    def _unique_order_number(self, session, created_at: datetime) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number(created_at)
            if not session.query(Order.id).filter(Order.order_number == candidate).first():
                return candidate
            log_event("warning", "order.number_collision", order_number=candidate)
        # the unique index rejects the insert if this one collides too
        return generate_order_number(created_at)

    def get_order(self, order_id: str, *, user_id: Optional[str] = None) -> Dict:
        """Owner-scoped when ``user_id`` is given, unscoped otherwise (admin)."""
        with self._session_factory() as session:
            q = session.query(Order).filter(Order.id == order_id)
            if user_id is not None:
                q = q.filter(Order.user_id == user_id)
            order = q.first()
            if not order:
                raise NotFoundError("Order not found")
            return order.to_dict()

    def get_by_number(self, order_number: str) -> Dict:
        with self._session_factory() as session:
            order = session.query(Order).filter(Order.order_number == order_number).first()
            if not order:
                raise NotFoundError("Order not found")
            return order.to_dict()

    def list_orders(
        self,
        *,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        page=1,
        limit=10,
        default_limit: int = 10,
        max_limit: int = 50,
    ) -> Dict:
        p, lim = normalize_paging(page, limit, default_limit=default_limit, max_limit=max_limit)
        with self._session_factory() as session:
            q = session.query(Order)
            if user_id is not None:
                q = q.filter(Order.user_id == user_id)
            if status:
                q = q.filter(Order.status == status)
            if payment_status:
                q = q.filter(Order.payment_status == payment_status)
            total = q.count()
            rows = q.order_by(Order.created_at.desc()).offset((p - 1) * lim).limit(lim).all()
            return {"orders": [o.to_dict() for o in rows], "pagination": pagination_meta(p, lim, total)}

    # ------------------------------------------------------------ admin status

    @staticmethod
    def _transition(order: Order, *, status: Optional[str] = None, payment_status: Optional[str] = None) -> None:
        if status is not None:
            if not can_transition(ORDER_TRANSITIONS, order.status, status):
                raise ValidationError(f"Cannot change order status from {order.status} to {status}")
            order.status = status
        if payment_status is not None:
            if not can_transition(PAYMENT_TRANSITIONS, order.payment_status, payment_status):
                raise ValidationError(
                    f"Cannot change payment status from {order.payment_status} to {payment_status}"
                )
            order.payment_status = payment_status

    def _load(self, session, order_id: str) -> Order:
        order = session.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def update_order(
        self,
        order_id: str,
        *,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict:
        with self._session_factory() as session:
            order = self._load(session, order_id)
            self._transition(order, status=status, payment_status=payment_status)
            if notes is not None:
                order.notes = notes
            session.flush()
            log_event("info", "order.updated", order_id=order_id, status=order.status, payment_status=order.payment_status)
            return order.to_dict()

    def complete_order(self, order_id: str) -> Dict:
        with self._session_factory() as session:
            order = self._load(session, order_id)
            self._transition(order, status=OrderStatus.COMPLETED.value)
            if order.payment_status == PaymentStatus.PENDING.value:
                self._transition(order, payment_status=PaymentStatus.PROCESSING.value)
            self._transition(order, payment_status=PaymentStatus.COMPLETED.value)
            session.flush()
            log_event("info", "order.completed", order_id=order_id)
            return order.to_dict()

    def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Dict:
        with self._session_factory() as session:
            order = self._load(session, order_id)
            self._transition(order, status=OrderStatus.CANCELLED.value)
            order.notes = reason or "Cancelled by admin"
            session.flush()
            log_event("info", "order.cancelled", order_id=order_id)
            return order.to_dict()


def ensure_order_access(order: Order, caller_uid: Optional[str], *, is_admin: bool = False) -> None:
    """Guest orders are open to any holder of the order id."""
    if is_admin or order.user_id == GUEST_USER_ID:
        return
    if order.user_id != caller_uid:
        raise AuthorizationError("Not authorized")
