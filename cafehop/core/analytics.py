"""Sales figures for the cafe admin dashboard, computed from order snapshots"""
from collections import Counter, OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from cafehop.core.enums import OrderStatus
from cafehop.core.order import Order
from cafehop.utils.money import divide, to_decimal


@dataclass(frozen=True)
class SalesOverview:
    total_sales: int  # cents
    total_orders: int
    average_order_value: int  # cents

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_sales': str(to_decimal(self.total_sales)),
            'total_orders': self.total_orders,
            'average_order_value': str(to_decimal(self.average_order_value)),
        }


@dataclass(frozen=True)
class ProductSales:
    name: str
    quantity: int
    revenue: int  # cents

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'quantity': self.quantity, 'revenue': str(to_decimal(self.revenue))}


def _billable(orders: Iterable[Order]) -> List[Order]:
    return [order for order in orders if order.status != OrderStatus.CANCELLED]


def sales_overview(orders: Iterable[Order]) -> SalesOverview:
    orders = _billable(orders)
    total = sum(order.total for order in orders)
    return SalesOverview(
        total_sales=total,
        total_orders=len(orders),
        average_order_value=divide(total, len(orders)),
    )


def top_products(orders: Iterable[Order], limit: int = 5) -> List[ProductSales]:
    """Best sellers by quantity; ties keep first-seen order"""
    totals = OrderedDict()
    for order in _billable(orders):
        for line in order.lines:
            quantity, revenue = totals.get(line.name, (0, 0))
            totals[line.name] = (quantity + line.quantity, revenue + line.total)

    products = [ProductSales(name, q, r) for name, (q, r) in totals.items()]
    products.sort(key=lambda p: -p.quantity)
    return products[:limit]


def orders_by_hour(orders: Iterable[Order]) -> Dict[str, int]:
    """Order counts keyed by 'HH:00' of creation time"""
    counts = Counter(order.created_at.strftime('%H:00') for order in _billable(orders))
    return dict(sorted(counts.items()))
