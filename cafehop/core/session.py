from datetime import datetime, timedelta
from typing import Callable, Dict, Optional
import logging

from cafehop.core.cart import Cart

logger = logging.getLogger(__name__)


class SessionManager:
    """Holds the latest cart per customer, dropping idle sessions"""

    def __init__(self, timeout=timedelta(minutes=30), clock: Callable[[], datetime] = datetime.now):
        self.sessions: Dict[str, Dict] = {}
        self.timeout = timeout
        self.clock = clock

    def create_session(self, customer_id: str, cafe_id: Optional[str] = None):
        """Create a new session with an empty cart"""
        self.sessions[customer_id] = {
            'cart': Cart(cafe_id=cafe_id),
            'last_activity': self.clock(),
        }
        logger.info(f"New cart session for {customer_id}")
        return self.sessions[customer_id]

    def get_cart(self, customer_id: str) -> Cart:
        """Get current cart, or an empty one if the session is missing or expired"""
        session = self.sessions.get(customer_id)
        if session is None:
            return Cart()

        if (self.clock() - session['last_activity']) > self.timeout:
            logger.info(f"Cart session for {customer_id} expired")
            del self.sessions[customer_id]
            return Cart()

        return session['cart']

    def save_cart(self, customer_id: str, cart: Cart):
        """Store cart as the latest for the customer"""
        if customer_id not in self.sessions:
            self.create_session(customer_id, cart.cafe_id)

        self.sessions[customer_id]['cart'] = cart
        self.sessions[customer_id]['last_activity'] = self.clock()

    def end_session(self, customer_id: str):
        self.sessions.pop(customer_id, None)
