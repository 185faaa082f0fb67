from .cart import Cart, CartEngine, CartLine
from .discovery import DiscoveryRanker, DiscoveryFilters
from .order import Order, OrderLifecycle, OrderLineSnapshot
from .session import SessionManager

__all__ = [
    'Cart', 'CartEngine', 'CartLine',
    'DiscoveryRanker', 'DiscoveryFilters',
    'Order', 'OrderLifecycle', 'OrderLineSnapshot',
    'SessionManager',
]
