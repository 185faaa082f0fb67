from datetime import date
from decimal import Decimal

from decouple import config

TAX_RATE = config('TAX_RATE', default='0.10', cast=Decimal)
DEFAULT_PICKUP_MINUTES = config('DEFAULT_PICKUP_MINUTES', default=15, cast=int)
DEFAULT_MAX_DISTANCE = config('DEFAULT_MAX_DISTANCE', default=10.0, cast=float)
LOG_DIR = config('LOG_DIR', default='logs')
PORT = config('PORT', default=10000, cast=int)

# Session timeout in minutes
SESSION_TIMEOUT = config('SESSION_TIMEOUT_MINUTES', default=30, cast=int)

_WEEKDAY_HOURS = [
    {'day_of_week': day, 'open_time': '07:00', 'close_time': '18:00'} for day in range(1, 6)
]

# Demo data in the shape the backend returns it
CAFES = [
    {
        'id': 'coffee-house', 'name': 'The Coffee House', 'address': '123 Main St',
        'latitude': '37.7749', 'longitude': '-122.4194', 'rating': 4.5,
        'is_active': True, 'tags': ['coffee', 'wifi'], 'catalog_id': 'coffee-house',
        'hours': _WEEKDAY_HOURS + [
            {'day_of_week': 6, 'open_time': '08:00', 'close_time': '19:00'},
            {'day_of_week': 7, 'open_time': '08:00', 'close_time': '17:00'},
        ],
    },
    {
        'id': 'bakery-brew', 'name': 'Bakery & Brew', 'address': '456 Oak Ave',
        'latitude': '37.7833', 'longitude': '-122.4167', 'rating': 4.8,
        'is_active': True, 'tags': ['bakery', 'coffee'], 'catalog_id': 'bakery-brew',
        'hours': _WEEKDAY_HOURS + [
            {'day_of_week': 6, 'open_time': '08:00', 'close_time': '16:00'},
            {'day_of_week': 7, 'is_closed': True},
        ],
    },
    {
        'id': 'espresso-lane', 'name': 'Espresso Lane', 'address': '234 Birch Ave',
        'latitude': '37.7700', 'longitude': '-122.4200', 'rating': 4.9,
        'is_active': True, 'tags': ['espresso'], 'catalog_id': 'coffee-house',
        'hours': [{'day_of_week': day, 'open_time': '06:00', 'close_time': '14:00'} for day in range(1, 8)],
    },
]

_ESPRESSO_CUSTOMIZATIONS = [
    {
        'id': 'size', 'name': 'Size', 'max_selections': 1,
        'options': [
            {'name': 'Single', 'price': '0.00'},
            {'name': 'Double Shot', 'price': '1.00'},
            {'name': 'Triple Shot', 'price': '1.75'},
        ],
    },
    {
        'id': 'milk', 'name': 'Milk', 'max_selections': 1,
        'options': [
            {'name': 'Whole', 'price': '0.00'},
            {'name': 'Skim', 'price': '0.00'},
            {'name': 'Oat', 'price': '0.50'},
            {'name': 'Almond', 'price': '0.50'},
            {'name': 'Soy', 'price': '0.50'},
        ],
    },
]

MENUS = {
    'coffee-house': [
        {'id': 'espresso', 'name': 'Espresso', 'price': '3.50', 'category': 'Coffee',
         'description': 'Single shot of premium espresso', 'customizations': _ESPRESSO_CUSTOMIZATIONS},
        {'id': 'latte', 'name': 'Latte', 'price': '4.50', 'category': 'Coffee',
         'description': 'Espresso with steamed milk', 'customizations': _ESPRESSO_CUSTOMIZATIONS},
        {'id': 'muffin', 'name': 'Muffin', 'price': '3.00', 'category': 'Food',
         'description': 'Blueberry muffin'},
    ],
    'bakery-brew': [
        {'id': 'croissant', 'name': 'Croissant', 'price': '4.50', 'category': 'Pastries',
         'description': 'Buttery, flaky French-style croissant',
         'customizations': [{
             'id': 'filling', 'name': 'Filling', 'max_selections': 1,
             'options': [
                 {'name': 'Plain', 'price': '0.00'},
                 {'name': 'Chocolate', 'price': '0.75'},
                 {'name': 'Almond', 'price': '0.75'},
             ],
         }]},
        {'id': 'cold-brew', 'name': 'Cold Brew', 'price': '4.50', 'category': 'Coffee',
         'description': '12-hour steeped coffee'},
        {'id': 'scone', 'name': 'Scone', 'price': '3.25', 'category': 'Pastries',
         'description': 'Seasonal scone', 'is_available': False},
    ],
}

REVIEWS = [
    {'id': '1', 'cafe_id': 'coffee-house', 'customer_name': 'John Doe', 'rating': 5,
     'date': date(2024, 3, 15), 'text': 'Amazing coffee and pastries!'},
    {'id': '2', 'cafe_id': 'coffee-house', 'customer_name': 'Jane Smith', 'rating': 4,
     'date': date(2024, 3, 14), 'text': 'Great service and delicious food.'},
    {'id': '3', 'cafe_id': 'bakery-brew', 'customer_name': 'Mike Johnson', 'rating': 3,
     'date': date(2024, 3, 13), 'text': 'Good coffee but crowded during peak hours.'},
]
