from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text, func
from .base import Base


class Payment(Base):
    """Manual transfer attestation awaiting admin review."""

    __tablename__ = "payment"

    id = Column(String(36), primary_key=True)
    order_id = Column(String(36), ForeignKey("order.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(16), nullable=False)
    transaction_id = Column(String(128), nullable=False, unique=True)
    sender_number = Column(String(32), nullable=False, default="")
    sender_name = Column(String(255), nullable=False, default="")
    status = Column(String(32), nullable=False, default="PENDING", index=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "amount": float(self.amount or 0),
            "paymentMethod": self.payment_method,
            "transactionId": self.transaction_id,
            "senderNumber": self.sender_number,
            "senderName": self.sender_name,
            "status": self.status,
            "notes": self.notes or "",
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
