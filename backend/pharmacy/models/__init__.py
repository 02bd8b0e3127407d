from .auth import User
from .catalog import Category, Product
from .orders import Order, OrderItem

__all__ = [
    'User',
    'Category', 'Product',
    'Order', 'OrderItem',
]
