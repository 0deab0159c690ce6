"""Enumerations and state machines for orders, payments and users."""

from enum import Enum
from typing import Dict, FrozenSet


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CARD = "CARD"
    BKASH = "BKASH"
    NAGAD = "NAGAD"


MANUAL_PAYMENT_METHODS = frozenset({PaymentMethod.BKASH.value, PaymentMethod.NAGAD.value})


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


GUEST_USER_ID = "GUEST"


ORDER_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    OrderStatus.PENDING.value: frozenset(
        {OrderStatus.PROCESSING.value, OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value, OrderStatus.FAILED.value}
    ),
    OrderStatus.PROCESSING.value: frozenset(
        {OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value, OrderStatus.FAILED.value}
    ),
    OrderStatus.COMPLETED.value: frozenset(),
    OrderStatus.CANCELLED.value: frozenset(),
    OrderStatus.FAILED.value: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    PaymentStatus.PENDING.value: frozenset({PaymentStatus.PROCESSING.value}),
    PaymentStatus.PROCESSING.value: frozenset(
        {PaymentStatus.COMPLETED.value, PaymentStatus.FAILED.value, PaymentStatus.REFUNDED.value}
    ),
    PaymentStatus.COMPLETED.value: frozenset(),
    PaymentStatus.FAILED.value: frozenset(),
    PaymentStatus.REFUNDED.value: frozenset(),
}


def can_transition(table: Dict[str, FrozenSet[str]], current: str, target: str) -> bool:
    """Same-state writes are allowed; everything else must be in ``table``."""
    if current == target:
        return True
    return target in table.get(current, frozenset())


def is_terminal(table: Dict[str, FrozenSet[str]], state: str) -> bool:
    return not table.get(state)
