from .catalog import Product, ProductVariant
from .clients import Client
from .orders import Order, OrderItem, PaymentProof
from .finance import Expense, SearchLog

__all__ = [
    'Product', 'ProductVariant',
    'Client',
    'Order', 'OrderItem', 'PaymentProof',
    'Expense', 'SearchLog',
]
