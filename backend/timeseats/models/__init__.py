from .catalog import Product
from .slots import SalesSlot, ProductInventory
from .orders import Order, OrderItem, OrderTicket

__all__ = [
    'Product',
    'SalesSlot', 'ProductInventory',
    'Order', 'OrderItem', 'OrderTicket',
]
