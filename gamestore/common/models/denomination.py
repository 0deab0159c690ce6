from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, func
from .base import Base


class Denomination(Base):
    """A purchasable quantity of a product, e.g. 60 UC for 99 BDT."""

    __tablename__ = "denomination"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # game currency units
    price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Integer, nullable=False, default=0)  # percent, 0-100
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def to_summary(self):
        return {
            "id": self.id,
            "amount": self.amount,
            "price": float(self.price or 0),
            "discount": self.discount or 0,
        }

    def to_dict(self):
        data = self.to_summary()
        data.update(
            {
                "productId": self.product_id,
                "isActive": self.is_active,
                "createdAt": self.created_at.isoformat() if self.created_at else None,
                "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            }
        )
        return data
