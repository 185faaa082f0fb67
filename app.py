# Standard library imports
from datetime import datetime, timedelta
import logging
import os
import sys
import threading
import uuid

# Third-party imports
from dotenv import load_dotenv
from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException

# Load environment variables before settings are read
load_dotenv()

# Local/application imports
from cafehop.core.analytics import orders_by_hour, sales_overview, top_products
from cafehop.core.cart import Cart, CartEngine
from cafehop.core.config import (CAFES, DEFAULT_MAX_DISTANCE, DEFAULT_PICKUP_MINUTES, LOG_DIR,
                                 MENUS, PORT, REVIEWS, SESSION_TIMEOUT, TAX_RATE)
from cafehop.core.discovery import Coordinate, DiscoveryFilters, DiscoveryRanker, LocalTime, cafe_from_record
from cafehop.core.enums import OrderStatus, SortBy
from cafehop.core.errors import (CafeError, IllegalTransitionError, InvalidLocationError, ItemUnavailableError,
                                 UnknownItemError)
from cafehop.core.menu import (add_customization, add_menu_item, build_catalog, category_counts, filter_menu,
                                parse_customization, parse_menu_item, remove_customization, remove_menu_item,
                                set_availability, update_menu_item)
from cafehop.core.order import OrderLifecycle, customer_history, filter_orders, generate_order_id
from cafehop.core.reviews import Review, filter_by_rating, reply, summarize
from cafehop.core.session import SessionManager
from cafehop.utils.money import format_money, to_decimal

# Configure logging
os.makedirs(LOG_DIR, exist_ok=True)
log_filename = os.path.join(LOG_DIR, f"cafehop_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_filename),
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)
logger.info("=== Cafehop Application Starting ===")

app = Flask(__name__)

# Initialize services
ranker = DiscoveryRanker()
lifecycle = OrderLifecycle()
session_manager = SessionManager(timeout=timedelta(minutes=SESSION_TIMEOUT))

# In-memory storage standing in for the backend
cafes = {row['id']: cafe_from_record(row) for row in CAFES}
engines = {catalog_id: CartEngine(build_catalog(rows)) for catalog_id, rows in MENUS.items()}
orders = {}
reviews = {row['id']: Review(**row) for row in REVIEWS}

# Guards every read-modify-write of the stores above; gunicorn runs threads
store_lock = threading.RLock()

ERROR_STATUS = {
    UnknownItemError: 404,
    ItemUnavailableError: 409,
    IllegalTransitionError: 409,
}


class InvalidPayloadError(CafeError, ValueError):
    """Request body is missing a field or has the wrong shape"""


@app.errorhandler(CafeError)
def handle_cafe_error(error):
    status = next((code for kind, code in ERROR_STATUS.items() if isinstance(error, kind)), 400)
    logger.info(f"Rejected request: {error}")
    return jsonify({'error': str(error)}), status


def error_response(message, status):
    return jsonify({'error': message}), status


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayloadError("Request body must be a JSON object")
    return data


def text_field(data, key, required=True):
    value = data.get(key)
    if value is None and not required:
        return None
    if not isinstance(value, str):
        raise InvalidPayloadError(f"'{key}' must be a string")
    return value


def selection_field(data):
    """The {customization_id: option_name} map of a cart request"""
    selection = data.get('selection')
    if selection is None:
        return {}
    if not isinstance(selection, dict) or not all(isinstance(v, str) for v in selection.values()):
        raise InvalidPayloadError("'selection' must map customization ids to option names")
    return selection


def engine_for_catalog(catalog_id):
    if catalog_id not in engines:
        raise UnknownItemError(f"No menu found with id '{catalog_id}'")
    return engines[catalog_id]


def engine_for_cafe(cafe_id):
    """Get the cart engine for a cafe's catalog"""
    cafe = cafes.get(cafe_id)
    if cafe is None or cafe.catalog_id not in engines:
        raise UnknownItemError(f"No menu found for cafe '{cafe_id}'")
    return engines[cafe.catalog_id]


def cart_payload(cart: Cart):
    if cart.is_empty():
        return {'cafe_id': cart.cafe_id, 'lines': [], 'item_count': 0, 'total': '0.00', 'summary': "Your cart is empty!"}

    engine = engine_for_cafe(cart.cafe_id)
    return {
        'cafe_id': cart.cafe_id,
        'lines': [
            {
                'item_id': line.item_id,
                'quantity': line.quantity,
                'selection': line.selection_dict,
                'line_total': str(to_decimal(engine.line_total(line))),
            }
            for line in cart.lines
        ],
        'item_count': engine.item_count(cart),
        'total': str(to_decimal(engine.cart_total(cart))),
        'summary': engine.summary(cart),
    }


def parse_bool(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')


@app.route('/cafes')
def list_cafes():
    """Rank cafes around the caller's location"""
    try:
        user = Coordinate(float(request.args['lat']), float(request.args['lng']))
        filters = DiscoveryFilters(
            max_distance=float(request.args.get('max_distance', DEFAULT_MAX_DISTANCE)),
            open_only=parse_bool(request.args.get('open_only', 'false')),
            sort_by=SortBy(request.args.get('sort_by', SortBy.DISTANCE.value)),
            query=request.args.get('q'),
        )
    except KeyError:
        raise InvalidLocationError("lat and lng are required")
    except ValueError as e:
        return error_response(f"Invalid discovery parameters: {e}", 400)

    results = ranker.rank(cafes.values(), user, LocalTime.from_datetime(datetime.now()), filters)
    return jsonify({'cafes': [r.to_dict() for r in results]})


@app.route('/cafes/<cafe_id>/menu')
def cafe_menu(cafe_id):
    items = list(engine_for_cafe(cafe_id).catalog.values())
    matching = filter_menu(items, request.args.get('category'), request.args.get('q'))
    return jsonify({
        'items': [item.to_dict() for item in matching],
        'categories': category_counts(items),
    })


@app.route('/cart/<customer_id>')
def get_cart(customer_id):
    # Reading can expire the session, which writes to the store
    with store_lock:
        return jsonify(cart_payload(session_manager.get_cart(customer_id)))


@app.route('/cart/<customer_id>/items', methods=['POST'])
def add_to_cart(customer_id):
    data = json_body()
    cafe_id = text_field(data, 'cafe_id')
    item_id = text_field(data, 'item_id')
    selection = selection_field(data)

    with store_lock:
        engine = engine_for_cafe(cafe_id)
        menu_item = engine.menu_item(item_id)

        cart = session_manager.get_cart(customer_id)
        if cart.cafe_id != cafe_id:
            if not cart.is_empty():
                logger.info(f"Customer {customer_id} switched cafe; starting a new cart")
            cart = Cart(cafe_id=cafe_id)

        cart = engine.add_item(cart, menu_item, selection)
        session_manager.save_cart(customer_id, cart)
        return jsonify(cart_payload(cart)), 201


@app.route('/cart/<customer_id>/items', methods=['DELETE'])
def remove_from_cart(customer_id):
    data = json_body()
    item_id = text_field(data, 'item_id')
    selection = selection_field(data)

    with store_lock:
        cart = session_manager.get_cart(customer_id)
        if cart.is_empty():
            return jsonify(cart_payload(cart))

        engine = engine_for_cafe(cart.cafe_id)
        cart = engine.remove_item(cart, item_id, selection)
        session_manager.save_cart(customer_id, cart)
        return jsonify(cart_payload(cart))


@app.route('/checkout/<customer_id>', methods=['POST'])
def checkout(customer_id):
    """Turn the customer's cart into an order"""
    data = json_body()
    note = text_field(data, 'note', required=False)
    try:
        pickup_minutes = int(data.get('pickup_minutes', DEFAULT_PICKUP_MINUTES))
    except (TypeError, ValueError):
        return error_response("pickup_minutes must be a whole number", 400)

    with store_lock:
        cart = session_manager.get_cart(customer_id)
        lines = () if cart.is_empty() else engine_for_cafe(cart.cafe_id).to_order_lines(cart)

        now = datetime.now()
        order = lifecycle.create_order(
            generate_order_id(now), cart.cafe_id, lines, TAX_RATE, pickup_minutes, now,
            note=note, customer_id=customer_id,
        )
        orders[order.id] = order
        session_manager.end_session(customer_id)

    logger.info(f"Order {order.id} placed by {customer_id} for {format_money(order.total)}")
    return jsonify(order.to_dict()), 201


@app.route('/orders/<order_id>')
def get_order(order_id):
    order = orders.get(order_id)
    if order is None:
        return error_response(f"Order {order_id} not found", 404)
    return jsonify(order.to_dict())


@app.route('/customers/<customer_id>/orders')
def customer_orders(customer_id):
    """A customer's current and past orders, newest first"""
    current, past = customer_history(list(orders.values()), customer_id)
    return jsonify({
        'current': [order.to_dict() for order in current],
        'past': [order.to_dict() for order in past],
    })


@app.route('/admin/orders')
def admin_orders():
    try:
        matching = filter_orders(list(orders.values()), request.args.get('status'), request.args.get('q'))
    except ValueError:
        return error_response(f"Unknown status '{request.args.get('status')}'", 400)
    return jsonify({'orders': [order.to_dict() for order in matching]})


@app.route('/admin/orders/<order_id>/status', methods=['POST'])
def update_order_status(order_id):
    data = json_body()
    try:
        target = OrderStatus(data.get('status'))
    except ValueError:
        return error_response(f"Unknown status '{data.get('status')}'", 400)

    with store_lock:
        order = orders.get(order_id)
        if order is None:
            return error_response(f"Order {order_id} not found", 404)
        orders[order_id] = lifecycle.transition(order, target, datetime.now())
        return jsonify(orders[order_id].to_dict())


@app.route('/admin/orders/<order_id>/advance', methods=['POST'])
def advance_order(order_id):
    with store_lock:
        order = orders.get(order_id)
        if order is None:
            return error_response(f"Order {order_id} not found", 404)
        orders[order_id] = lifecycle.advance(order, datetime.now())
        return jsonify(orders[order_id].to_dict())


@app.route('/admin/menus/<catalog_id>/items', methods=['POST'])
def create_menu_item(catalog_id):
    data = dict(json_body())
    data.setdefault('id', uuid.uuid4().hex[:8])
    item = parse_menu_item(data)

    with store_lock:
        engine = engine_for_catalog(catalog_id)
        engines[catalog_id] = CartEngine(add_menu_item(engine.catalog, item))
    return jsonify(item.to_dict()), 201


@app.route('/admin/menus/<catalog_id>/items/<item_id>', methods=['PUT'])
def edit_menu_item(catalog_id, item_id):
    data = dict(json_body())
    data['id'] = item_id
    item = parse_menu_item(data)

    with store_lock:
        engine = engine_for_catalog(catalog_id)
        engines[catalog_id] = CartEngine(update_menu_item(engine.catalog, item))
    return jsonify(item.to_dict())


@app.route('/admin/menus/<catalog_id>/items/<item_id>', methods=['DELETE'])
def delete_menu_item(catalog_id, item_id):
    with store_lock:
        engine = engine_for_catalog(catalog_id)
        engines[catalog_id] = CartEngine(remove_menu_item(engine.catalog, item_id))
    return '', 204


@app.route('/admin/menus/<catalog_id>/items/<item_id>/availability', methods=['POST'])
def toggle_availability(catalog_id, item_id):
    is_available = json_body().get('is_available')
    if not isinstance(is_available, bool):
        raise InvalidPayloadError("'is_available' must be true or false")

    with store_lock:
        engine = engine_for_catalog(catalog_id)
        catalog = set_availability(engine.catalog, item_id, is_available)
        engines[catalog_id] = CartEngine(catalog)
    return jsonify(catalog[item_id].to_dict())


@app.route('/admin/menus/<catalog_id>/items/<item_id>/customizations', methods=['POST'])
def create_customization(catalog_id, item_id):
    data = dict(json_body())
    data.setdefault('id', uuid.uuid4().hex[:8])
    customization = parse_customization(data)

    with store_lock:
        engine = engine_for_catalog(catalog_id)
        item = add_customization(engine.menu_item(item_id), customization)
        engines[catalog_id] = CartEngine(update_menu_item(engine.catalog, item))
    return jsonify(item.to_dict()), 201


@app.route('/admin/menus/<catalog_id>/items/<item_id>/customizations/<customization_id>', methods=['DELETE'])
def delete_customization(catalog_id, item_id, customization_id):
    with store_lock:
        engine = engine_for_catalog(catalog_id)
        item = remove_customization(engine.menu_item(item_id), customization_id)
        engines[catalog_id] = CartEngine(update_menu_item(engine.catalog, item))
    return jsonify(item.to_dict())


@app.route('/cafes/<cafe_id>/reviews')
def cafe_reviews(cafe_id):
    rating = request.args.get('rating')
    if rating in (None, '', 'all'):
        rating = None
    elif not rating.isdigit():
        return error_response(f"Invalid rating '{rating}'", 400)

    for_cafe = [r for r in list(reviews.values()) if r.cafe_id == cafe_id]
    return jsonify({
        'summary': summarize(for_cafe).to_dict(),
        'reviews': [r.to_dict() for r in filter_by_rating(for_cafe, int(rating) if rating else None)],
    })


@app.route('/admin/reviews/<review_id>/reply', methods=['POST'])
def reply_to_review(review_id):
    text = text_field(json_body(), 'text')

    with store_lock:
        review = reviews.get(review_id)
        if review is None:
            return error_response(f"Review {review_id} not found", 404)
        reviews[review_id] = reply(review, text, datetime.now().date())
        return jsonify(reviews[review_id].to_dict())


@app.route('/admin/analytics')
def analytics():
    all_orders = list(orders.values())
    return jsonify({
        'overview': sales_overview(all_orders).to_dict(),
        'top_products': [p.to_dict() for p in top_products(all_orders)],
        'orders_by_hour': orders_by_hour(all_orders),
    })


@app.errorhandler(Exception)
def handle_unexpected(error):
    if isinstance(error, HTTPException):
        return error
    logger.error(f"Error processing request: {str(error)}", exc_info=True)
    return error_response("Sorry, something went wrong.", 500)


@app.route('/health')
def health_check():
    return 'OK', 200


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=PORT)
