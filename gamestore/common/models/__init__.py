from .base import Base
from .cart import Cart, CartItem
from .category import Category
from .denomination import Denomination
from .order import Order
from .payment import Payment
from .product import Product
from .user import User

__all__ = [
    "Base",
    "Cart",
    "CartItem",
    "Category",
    "Denomination",
    "Order",
    "Payment",
    "Product",
    "User",
]
