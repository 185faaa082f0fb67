from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from fractions import Fraction
import re

import pytest

from cafehop.core.enums import OrderStatus
from cafehop.core.errors import IllegalTransitionError, InvalidOrderError
from cafehop.core.order import (ALLOWED_TRANSITIONS, OrderLineSnapshot, customer_history, filter_orders,
                                 generate_order_id)

LATTE = OrderLineSnapshot(item_id='latte', name='Latte', unit_price=500, quantity=2)
MUFFIN = OrderLineSnapshot(item_id='muffin', name='Muffin', unit_price=300, quantity=1)


def make_order(lifecycle, now, status=OrderStatus.NEW, order_id='order_1'):
    order = lifecycle.create_order(order_id, 'cafe-1', [LATTE], '0.10', 15, now)
    return replace(order, status=status)


def test_subtotal_tax_and_total(lifecycle, now):
    order = lifecycle.create_order('order_1', 'cafe-1', [LATTE], Decimal('0.10'), 15, now)

    assert order.subtotal == 1000
    assert order.tax == 100
    assert order.total == 1100
    assert order.status == OrderStatus.NEW
    assert order.to_dict()['total'] == '11.00'


@pytest.mark.parametrize('unit_price,quantity,rate', [
    (333, 1, '0.10'),
    (125, 3, '0.0825'),
    (5, 1, '0.5'),
    (999, 7, '0.07'),
    (100, 1, '0'),
])
def test_total_is_subtotal_plus_tax(lifecycle, now, unit_price, quantity, rate):
    line = OrderLineSnapshot('x', 'X', unit_price, quantity)
    order = lifecycle.create_order('order_1', 'cafe-1', [line, MUFFIN], rate, 0, now)

    assert order.total == order.subtotal + order.tax


def test_tax_rounds_half_up(lifecycle, now):
    # 5 cents * 0.5 = 2.5 cents
    line = OrderLineSnapshot('x', 'X', 5, 1)
    order = lifecycle.create_order('order_1', 'cafe-1', [line], '0.5', 0, now)
    assert order.tax == 3


def test_empty_order_rejected(lifecycle, now):
    with pytest.raises(InvalidOrderError):
        lifecycle.create_order('order_1', 'cafe-1', [], '0.10', 15, now)


@pytest.mark.parametrize('quantity', [0, -1])
def test_non_positive_quantity_rejected(lifecycle, now, quantity):
    line = OrderLineSnapshot('x', 'X', 100, quantity)
    with pytest.raises(InvalidOrderError):
        lifecycle.create_order('order_1', 'cafe-1', [MUFFIN, line], '0.10', 15, now)


def test_negative_tax_or_pickup_rejected(lifecycle, now):
    with pytest.raises(InvalidOrderError):
        lifecycle.create_order('order_1', 'cafe-1', [MUFFIN], '-0.01', 15, now)
    with pytest.raises(InvalidOrderError):
        lifecycle.create_order('order_1', 'cafe-1', [MUFFIN], '0.10', -5, now)


def test_fractional_tax_rate_is_exact(lifecycle, now):
    order = lifecycle.create_order('order_1', 'cafe-1', [LATTE], Fraction(1, 10), 15, now)
    assert order.tax == 100
    assert order.total == 1100

    # 1000 cents * 1/8 = 125 exactly
    assert lifecycle.create_order('order_1', 'cafe-1', [LATTE], Fraction(1, 8), 15, now).tax == 125
    assert lifecycle.create_order('order_1', 'cafe-1', [LATTE], 0.1, 15, now).tax == 100


@pytest.mark.parametrize('rate', ['abc', '', None, 'NaN', Decimal('NaN'), Decimal('Infinity'), float('inf')])
def test_unusable_tax_rate_rejected(lifecycle, now, rate):
    with pytest.raises(InvalidOrderError):
        lifecycle.create_order('order_1', 'cafe-1', [MUFFIN], rate, 15, now)


def test_non_text_note_rejected(lifecycle, now):
    with pytest.raises(InvalidOrderError):
        lifecycle.create_order('order_1', 'cafe-1', [MUFFIN], '0.10', 15, now, note=['no lid'])


def test_pickup_time_and_note(lifecycle, now):
    order = lifecycle.create_order('order_1', 'cafe-1', [MUFFIN], '0.10', 20, now, note='  no lid ')
    assert order.pickup_time == datetime(2024, 3, 15, 9, 50)
    assert order.note == 'no lid'


def test_forward_chain(lifecycle, now):
    order = make_order(lifecycle, now)
    for target in (OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED):
        order = lifecycle.transition(order, target, now)
        assert order.status == target


@pytest.mark.parametrize('status', [OrderStatus.NEW, OrderStatus.PREPARING, OrderStatus.READY])
def test_cancel_from_any_open_state(lifecycle, now, status):
    order = lifecycle.transition(make_order(lifecycle, now, status), OrderStatus.CANCELLED, now)
    assert order.status == OrderStatus.CANCELLED


def test_ready_back_to_new_is_illegal(lifecycle, now):
    order = make_order(lifecycle, now, OrderStatus.READY)

    with pytest.raises(IllegalTransitionError) as exc_info:
        lifecycle.transition(order, OrderStatus.NEW, now)

    assert exc_info.value.current == OrderStatus.READY
    assert exc_info.value.requested == OrderStatus.NEW
    assert order.status == OrderStatus.READY


FORBIDDEN = [
    (current, target)
    for current in OrderStatus
    for target in OrderStatus
    if target not in ALLOWED_TRANSITIONS[current]
]


@pytest.mark.parametrize('current,target', FORBIDDEN)
def test_every_forbidden_edge_fails(lifecycle, now, current, target):
    order = make_order(lifecycle, now, current)
    with pytest.raises(IllegalTransitionError):
        lifecycle.transition(order, target, now)
    assert order.status == current


def test_forbidden_edges_include_skips_and_self_loops():
    assert (OrderStatus.NEW, OrderStatus.READY) in FORBIDDEN
    assert (OrderStatus.NEW, OrderStatus.COMPLETED) in FORBIDDEN
    assert (OrderStatus.PREPARING, OrderStatus.PREPARING) in FORBIDDEN
    assert (OrderStatus.CANCELLED, OrderStatus.NEW) in FORBIDDEN
    assert (OrderStatus.COMPLETED, OrderStatus.CANCELLED) in FORBIDDEN


def test_next_status(lifecycle):
    assert lifecycle.next_status(OrderStatus.NEW) == OrderStatus.PREPARING
    assert lifecycle.next_status(OrderStatus.PREPARING) == OrderStatus.READY
    assert lifecycle.next_status(OrderStatus.READY) == OrderStatus.COMPLETED
    assert lifecycle.next_status(OrderStatus.COMPLETED) is None
    assert lifecycle.next_status(OrderStatus.CANCELLED) is None


def test_advance(lifecycle, now):
    order = lifecycle.advance(make_order(lifecycle, now), now)
    assert order.status == OrderStatus.PREPARING

    with pytest.raises(IllegalTransitionError) as exc_info:
        lifecycle.advance(make_order(lifecycle, now, OrderStatus.COMPLETED), now)

    assert exc_info.value.current == OrderStatus.COMPLETED
    assert exc_info.value.requested is None
    assert str(exc_info.value) == "Order is already 'completed' and has no next status"


def test_generate_order_id(now):
    order_id = generate_order_id(now)
    assert re.fullmatch(r'order_\d+_[0-9a-f]{8}', order_id)
    assert generate_order_id(now) != order_id


def test_filter_orders(lifecycle, now):
    new = lifecycle.create_order('order_a', 'cafe-1', [LATTE], '0.10', 15, now)
    ready = replace(lifecycle.create_order('order_b', 'cafe-1', [MUFFIN], '0.10', 15, now), status=OrderStatus.READY)
    orders = [new, ready]

    assert filter_orders(orders) == orders
    assert filter_orders(orders, 'all') == orders
    assert filter_orders(orders, 'ready') == [ready]
    assert filter_orders(orders, OrderStatus.NEW, 'latte') == [new]
    assert filter_orders(orders, query='ORDER_B') == [ready]
    assert filter_orders(orders, 'preparing') == []
    with pytest.raises(ValueError):
        filter_orders(orders, 'bogus')


def test_customer_history(lifecycle, now):
    first = lifecycle.create_order('order_a', 'cafe-1', [LATTE], '0.10', 15, now, customer_id='+1555')
    later = lifecycle.create_order('order_b', 'cafe-1', [MUFFIN], '0.10', 15, now + timedelta(hours=1),
                                   customer_id='+1555')
    done = replace(lifecycle.create_order('order_c', 'cafe-1', [MUFFIN], '0.10', 15, now, customer_id='+1555'),
                   status=OrderStatus.COMPLETED)
    cancelled = replace(first, id='order_d', status=OrderStatus.CANCELLED)
    someone_else = lifecycle.create_order('order_e', 'cafe-1', [LATTE], '0.10', 15, now, customer_id='+1999')

    current, past = customer_history([first, done, later, cancelled, someone_else], '+1555')

    assert current == [later, first]
    assert past == [done, cancelled]
    assert customer_history([someone_else], '+1555') == ([], [])
