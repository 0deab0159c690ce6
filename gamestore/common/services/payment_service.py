import time
from decimal import Decimal
from typing import Dict, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.order import Order
from ..models.payment import Payment
from ..models.status import (
    MANUAL_PAYMENT_METHODS,
    PAYMENT_TRANSITIONS,
    PaymentMethod,
    PaymentStatus,
    can_transition,
)
from ..utils.pagination import normalize_paging, pagination_meta
from .logging import log_event
from .order_service import ensure_order_access

AMOUNT_TOLERANCE = Decimal("1")


class PaymentService:
    """Manual bKash/Nagad payment submission and admin review.

    Submissions never settle an order on their own: the order moves to
    PROCESSING and waits for a reviewer.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def submit_manual_payment(
        self,
        *,
        order_id: str,
        payment_method: str,
        sender_number: str,
        transaction_id: str,
        amount: Decimal,
        caller_uid: Optional[str],
        sender_name: str = "",
    ) -> Dict:
        if payment_method not in MANUAL_PAYMENT_METHODS:
            raise ValidationError(
                "Validation failed", errors=[{"field": "paymentMethod", "message": "must be BKASH or NAGAD"}]
            )
        try:
            with self._session_factory() as session:
                order = session.get(Order, order_id)
                if not order:
                    raise NotFoundError("Order not found")
                ensure_order_access(order, caller_uid)
                if abs(Decimal(str(amount)) - Decimal(str(order.total_amount))) > AMOUNT_TOLERANCE:
                    raise ValidationError("Amount does not match order total")
                if session.query(Payment.id).filter(Payment.transaction_id == transaction_id).first():
                    raise ConflictError("This transaction ID has already been used")
                self._advance_order(order)
                payment = Payment(
                    id=str(uuid4()),
                    order_id=order.id,
                    amount=Decimal(str(amount)),
                    payment_method=payment_method,
                    transaction_id=transaction_id,
                    sender_number=sender_number,
                    sender_name=sender_name or "",
                    status=PaymentStatus.PENDING.value,
                )
                session.add(payment)
                session.flush()
                session.refresh(payment)
                log_event(
                    "info",
                    "payment.submitted",
                    order_id=order.id,
                    payment_id=payment.id,
                    method=payment_method,
                    amount=float(payment.amount),
                )
                return payment.to_dict()
        except IntegrityError as exc:
            # concurrent submission of the same transaction id
            raise ConflictError("This transaction ID has already been used") from exc

    def submit_card_payment(self, *, order_id: str, caller_uid: Optional[str]) -> Dict:
        """Placeholder until a card processor is integrated."""
        try:
            with self._session_factory() as session:
                order = session.get(Order, order_id)
                if not order:
                    raise NotFoundError("Order not found")
                ensure_order_access(order, caller_uid)
                self._advance_order(order)
                payment = Payment(
                    id=str(uuid4()),
                    order_id=order.id,
                    amount=order.total_amount,
                    payment_method=PaymentMethod.CARD.value,
                    transaction_id=f"CARD-{int(time.time() * 1000)}",
                    sender_number="",
                    status=PaymentStatus.PENDING.value,
                )
                session.add(payment)
                session.flush()
                log_event("info", "payment.card_initiated", order_id=order.id, payment_id=payment.id)
                return {"orderId": order.id, "amount": float(order.total_amount), "status": "processing"}
        except IntegrityError as exc:
            # another card payment took the same millisecond id
            log_event("warning", "payment.card_id_collision", order_id=order_id)
            raise ConflictError("Card payment could not be started, please try again") from exc

    @staticmethod
    def _advance_order(order: Order) -> None:
        if not can_transition(PAYMENT_TRANSITIONS, order.payment_status, PaymentStatus.PROCESSING.value):
            raise ValidationError(f"Order payment is already {order.payment_status}")
        order.payment_status = PaymentStatus.PROCESSING.value

    def payment_status(self, *, order_id: str, caller_uid: Optional[str], is_admin: bool = False) -> Dict:
        with self._session_factory() as session:
            order = session.get(Order, order_id)
            if not order:
                raise NotFoundError("Order not found")
            ensure_order_access(order, caller_uid, is_admin=is_admin)
            payment = (
                session.query(Payment)
                .filter(Payment.order_id == order.id)
                .order_by(Payment.created_at.desc())
                .first()
            )
            return {"order": order.to_summary(), "payment": payment.to_dict() if payment else None}

    def list_payments(self, *, status: Optional[str] = None, page=1, limit=20) -> Dict:
        p, lim = normalize_paging(page, limit, default_limit=20)
        with self._session_factory() as session:
            q = session.query(Payment)
            if status:
                q = q.filter(Payment.status == status)
            total = q.count()
            rows = q.order_by(Payment.created_at.desc()).offset((p - 1) * lim).limit(lim).all()
            return {"payments": [r.to_dict() for r in rows], "pagination": pagination_meta(p, lim, total)}

    def review_payment(self, payment_id: str, *, approved: bool, notes: Optional[str] = None) -> Dict:
        """Approve or reject a pending payment and settle the order's payment status."""
        with self._session_factory() as session:
            payment = session.get(Payment, payment_id)
            if not payment:
                raise NotFoundError("Payment not found")
            if payment.status != PaymentStatus.PENDING.value:
                raise ValidationError(f"Payment already reviewed ({payment.status})")
            order = session.get(Order, payment.order_id)
            outcome = PaymentStatus.COMPLETED.value if approved else PaymentStatus.FAILED.value
            if not can_transition(PAYMENT_TRANSITIONS, order.payment_status, outcome):
                raise ValidationError(f"Cannot change payment status from {order.payment_status} to {outcome}")
            payment.status = outcome
            order.payment_status = outcome
            if notes is not None:
                payment.notes = notes
            session.flush()
            log_event("info", "payment.reviewed", payment_id=payment_id, order_id=order.id, outcome=outcome)
            return {"payment": payment.to_dict(), "order": order.to_summary()}
