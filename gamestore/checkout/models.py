"""Client-side checkout data and the checks run before any tier is tried."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

GIFT_CARD_CATEGORY = "gift-card"


class CheckoutError(Exception):
    """Raised when a draft is incomplete or no tier could take the order."""


@dataclass
class CheckoutLine:
    product_id: str
    denomination_id: str
    name: str
    price: Decimal
    quantity: int = 1
    category: str = ""
    server: str = ""

    @property
    def total(self) -> Decimal:
        return Decimal(str(self.price)) * self.quantity

    @property
    def needs_game_uid(self) -> bool:
        return self.category != GIFT_CARD_CATEGORY


@dataclass
class BillingInfo:
    full_name: str
    email: str
    phone: str

    def to_dict(self) -> Dict[str, str]:
        return {"fullName": self.full_name, "email": self.email, "phone": self.phone}


@dataclass
class ManualPaymentForm:
    method: str
    sender_number: str
    transaction_id: str
    sender_name: str = ""
    game_uid: str = ""
    player_id: str = ""


@dataclass
class CheckoutDraft:
    lines: List[CheckoutLine]
    billing: BillingInfo
    payment: ManualPaymentForm
    id_token: Optional[str] = None
    user_id: Optional[str] = None
    notes: str = ""

    @property
    def total(self) -> Decimal:
        return sum((line.total for line in self.lines), Decimal("0"))

    def validate(self) -> None:
        if not self.lines:
            raise CheckoutError("Your cart is empty")
        if any(line.needs_game_uid for line in self.lines) and not self.payment.game_uid.strip():
            raise CheckoutError("Please enter your Game UID for game items")
        if not self.payment.sender_number.strip() or not self.payment.transaction_id.strip():
            raise CheckoutError("Please fill in payment details")

    def order_items(self) -> List[Dict[str, Any]]:
        items = []
        for line in self.lines:
            item: Dict[str, Any] = {
                "productId": line.product_id,
                "denominationId": line.denomination_id,
                "gameUid": self.payment.game_uid,
                "quantity": line.quantity,
            }
            if self.payment.player_id:
                item["playerId"] = self.payment.player_id
            if line.server:
                item["server"] = line.server
            items.append(item)
        return items


@dataclass
class CheckoutReceipt:
    tier: str
    order: Dict[str, Any]
    message: str = "Order placed successfully!"
    failures: List[str] = field(default_factory=list)
