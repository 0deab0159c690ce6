"""Per-user cart. Items carry no price; pricing happens at read time."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship
from .base import Base


class Cart(Base):
    __tablename__ = "cart"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, unique=True, index=True)  # external identity uid
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
    )


class CartItem(Base):
    __tablename__ = "cart_item"

    id = Column(String(36), primary_key=True)
    cart_id = Column(String(36), ForeignKey("cart.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(36), nullable=False)
    denomination_id = Column(String(36), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    game_uid = Column(String(128), nullable=False, default="")
    server = Column(String(128), nullable=False, default="")
    player_id = Column(String(128), nullable=False, default="")
    position = Column(Integer, nullable=False, default=0)
    added_at = Column(DateTime, nullable=False, server_default=func.now())

    cart = relationship("Cart", back_populates="items")

    def same_line(self, product_id: str, denomination_id: str, game_uid: str) -> bool:
        return (
            self.product_id == product_id
            and self.denomination_id == denomination_id
            and (self.game_uid or "") == (game_uid or "")
        )
