from .cart_service import CartService
from .catalog_service import CatalogService
from .order_service import OrderService
from .payment_service import PaymentService
from .user_service import UserService

__all__ = [
    "CartService",
    "CatalogService",
    "OrderService",
    "PaymentService",
    "UserService",
]
