# Models
from .product import Product
from .order import Order, OrderItem, OrderStatus

__all__ = [
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
]
