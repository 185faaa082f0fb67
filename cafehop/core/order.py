from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
import logging
import uuid

from cafehop.core.enums import OrderStatus
from cafehop.core.errors import IllegalTransitionError, InvalidOrderError
from cafehop.utils.money import Rate, apply_rate, to_decimal, to_rate

logger = logging.getLogger(__name__)

# Forward chain; cancellation is handled separately
FORWARD = {
    OrderStatus.NEW: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.COMPLETED,
}

ALLOWED_TRANSITIONS = {
    OrderStatus.NEW: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


@dataclass(frozen=True)
class OrderLineSnapshot:
    item_id: str
    name: str
    unit_price: int  # cents, customizations included
    quantity: int
    customizations: Tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    id: str
    cafe_id: str
    lines: Tuple[OrderLineSnapshot, ...]
    subtotal: int
    tax: int
    total: int
    created_at: datetime
    pickup_offset_minutes: int
    status: OrderStatus = OrderStatus.NEW
    note: Optional[str] = None
    customer_id: Optional[str] = None

    @property
    def pickup_time(self) -> datetime:
        return self.created_at + timedelta(minutes=self.pickup_offset_minutes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'cafe_id': self.cafe_id,
            'status': self.status.value,
            'items': [
                {
                    'item_id': line.item_id,
                    'name': line.name,
                    'unit_price': str(to_decimal(line.unit_price)),
                    'quantity': line.quantity,
                    'customizations': list(line.customizations),
                }
                for line in self.lines
            ],
            'subtotal': str(to_decimal(self.subtotal)),
            'tax': str(to_decimal(self.tax)),
            'total': str(to_decimal(self.total)),
            'created_at': self.created_at.isoformat(),
            'pickup_time': self.pickup_time.strftime('%I:%M %p'),
            'note': self.note,
            'customer_id': self.customer_id,
        }


def generate_order_id(now: datetime) -> str:
    """Order id of the form order_<epochMillis>_<suffix>"""
    millis = int(now.timestamp() * 1000)
    return f"order_{millis}_{uuid.uuid4().hex[:8]}"


class OrderLifecycle:
    """Order creation and the status state machine"""

    def create_order(self, order_id: str, cafe_id: str, lines: Sequence[OrderLineSnapshot],
                     tax_rate: Rate, pickup_offset_minutes: int, now: datetime,
                     note: Optional[str] = None, customer_id: Optional[str] = None) -> Order:
        """Price the snapshot lines and open an order in the 'new' state"""
        if not lines:
            raise InvalidOrderError("Cannot place an empty order")
        for line in lines:
            if line.quantity <= 0:
                raise InvalidOrderError(f"Quantity for {line.name} must be positive, got {line.quantity}")
        try:
            rate = to_rate(tax_rate)
        except (TypeError, ValueError):
            raise InvalidOrderError(f"Tax rate is not a number: {tax_rate!r}")
        if rate < 0:
            raise InvalidOrderError(f"Tax rate cannot be negative: {tax_rate}")
        if pickup_offset_minutes < 0:
            raise InvalidOrderError(f"Pickup offset cannot be negative: {pickup_offset_minutes}")
        if note is not None and not isinstance(note, str):
            raise InvalidOrderError("Order note must be text")

        subtotal = sum(line.total for line in lines)
        tax = apply_rate(subtotal, rate)
        note = note.strip() if note else None

        order = Order(
            id=order_id,
            cafe_id=cafe_id,
            lines=tuple(lines),
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
            created_at=now,
            pickup_offset_minutes=pickup_offset_minutes,
            note=note or None,
            customer_id=customer_id,
        )
        logger.info(f"Order {order.id} created for cafe {cafe_id}: total {order.total} cents")
        return order

    def transition(self, order: Order, target: OrderStatus, now: datetime) -> Order:
        """Move order to target, or raise IllegalTransitionError"""
        if target not in ALLOWED_TRANSITIONS[order.status]:
            logger.warning(f"Rejected transition for order {order.id}: {order.status.value} -> {target.value}")
            raise IllegalTransitionError(order.status, target)

        logger.info(f"Order {order.id} status {order.status.value} -> {target.value} at {now.isoformat()}")
        return replace(order, status=target)

    def next_status(self, current: OrderStatus) -> Optional[OrderStatus]:
        """Single forward step used by the admin 'advance' button"""
        return FORWARD.get(current)

    def advance(self, order: Order, now: datetime) -> Order:
        target = self.next_status(order.status)
        if target is None:
            logger.warning(f"Rejected advance for order {order.id}: already {order.status.value}")
            raise IllegalTransitionError(order.status)
        return self.transition(order, target, now)


def filter_orders(orders: Iterable[Order], status: Optional[Union[str, OrderStatus]] = None,
                  query: Optional[str] = None) -> List[Order]:
    """Admin order list filter by status and search text"""
    if isinstance(status, str):
        status = None if status == 'all' else OrderStatus(status)
    query = (query or '').strip().lower()

    results = []
    for order in orders:
        if status is not None and order.status != status:
            continue
        if query and query not in order.id.lower() and not any(query in line.name.lower() for line in order.lines):
            continue
        results.append(order)
    return results


def customer_history(orders: Iterable[Order], customer_id: str) -> Tuple[List[Order], List[Order]]:
    """Split a customer's orders into (current, past), newest first.

    Past orders are the ones in a terminal state (completed or cancelled).
    """
    mine = sorted((o for o in orders if o.customer_id == customer_id),
                  key=lambda o: o.created_at, reverse=True)
    current = [o for o in mine if not o.status.is_terminal]
    past = [o for o in mine if o.status.is_terminal]
    return current, past
