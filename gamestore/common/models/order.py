from sqlalchemy import Column, DateTime, JSON, Numeric, String, Text, func
from .base import Base


class Order(Base):
    """Checkout snapshot. ``items`` is frozen at creation and never re-priced."""

    __tablename__ = "order"

    id = Column(String(36), primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)  # uid or "GUEST"
    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(32), nullable=False, default="PENDING", index=True)
    payment_status = Column(String(32), nullable=False, default="PENDING")
    payment_method = Column(String(16), nullable=False)
    billing_info = Column(JSON, nullable=False)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def to_summary(self):
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "status": self.status,
            "paymentStatus": self.payment_status,
            "totalAmount": float(self.total_amount or 0),
        }

    def to_dict(self):
        data = self.to_summary()
        data.update(
            {
                "userId": self.user_id,
                "items": [dict(item) for item in (self.items or [])],
                "paymentMethod": self.payment_method,
                "billingInfo": dict(self.billing_info or {}),
                "notes": self.notes or "",
                "createdAt": self.created_at.isoformat() if self.created_at else None,
                "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            }
        )
        return data
