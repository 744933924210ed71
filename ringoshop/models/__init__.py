# ringoshop/models/__init__.py
from .user import User
from .product import Product
from .order import Order, OrderStatus
from .order_item import OrderItem
from .payment import Payment, PaymentStatus

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderStatus",
    "OrderItem",
    "Payment",
    "PaymentStatus",
]
