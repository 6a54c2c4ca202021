from .auth import User
from .catalog import Category, Product
from .inventory import StockMovement

__all__ = [
    'User',
    'Category', 'Product',
    'StockMovement',
]
