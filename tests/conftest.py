from datetime import datetime

import pytest

from cafehop.core.cart import Cart, CartEngine
from cafehop.core.menu import build_catalog
from cafehop.core.order import OrderLifecycle

MENU_ROWS = [
    {
        'id': 'espresso', 'name': 'Espresso', 'price': '3.50', 'category': 'Coffee',
        'customizations': [
            {'id': 'shots', 'name': 'Shots', 'options': [
                {'name': 'Single', 'price': '0.00'},
                {'name': 'Double Shot', 'price': '1.00'},
            ]},
            {'id': 'milk', 'name': 'Milk', 'options': [
                {'name': 'Whole', 'price': '0.00'},
                {'name': 'Oat', 'price': '0.50'},
            ]},
        ],
    },
    {'id': 'muffin', 'name': 'Muffin', 'price': '3.00', 'category': 'Food'},
    {'id': 'scone', 'name': 'Scone', 'price': '3.25', 'category': 'Food', 'is_available': False},
]


@pytest.fixture
def catalog():
    return build_catalog(MENU_ROWS)


@pytest.fixture
def engine(catalog):
    return CartEngine(catalog)


@pytest.fixture
def empty_cart():
    return Cart(cafe_id='cafe-1')


@pytest.fixture
def lifecycle():
    return OrderLifecycle()


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 9, 30)
