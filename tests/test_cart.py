import pytest

from cafehop.core.cart import Cart, CartLine, CartEngine, normalize_selection
from cafehop.core.errors import ItemUnavailableError, UnknownItemError, UnknownOptionError

DOUBLE_OAT = {'shots': 'Double Shot', 'milk': 'Oat'}


def test_espresso_with_double_shot_and_oat_line_total(engine, catalog, empty_cart):
    espresso = catalog['espresso']
    cart = engine.add_item(empty_cart, espresso, DOUBLE_OAT)
    cart = engine.add_item(cart, espresso, DOUBLE_OAT)

    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 2
    assert engine.line_total(cart.lines[0]) == 1000  # (3.50 + 1.00 + 0.50) * 2


def test_same_item_different_selection_is_a_new_line(engine, catalog, empty_cart):
    espresso = catalog['espresso']
    cart = engine.add_item(empty_cart, espresso, DOUBLE_OAT)
    cart = engine.add_item(cart, espresso, {'milk': 'Oat'})
    cart = engine.add_item(cart, espresso)

    assert [line.quantity for line in cart.lines] == [1, 1, 1]
    assert engine.cart_total(cart) == 500 + 400 + 350


def test_selection_order_does_not_matter(engine, catalog, empty_cart):
    espresso = catalog['espresso']
    cart = engine.add_item(empty_cart, espresso, {'shots': 'Double Shot', 'milk': 'Oat'})
    cart = engine.add_item(cart, espresso, {'milk': 'Oat', 'shots': 'Double Shot'})

    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 2


def test_add_does_not_mutate_input_cart(engine, catalog, empty_cart):
    cart = engine.add_item(empty_cart, catalog['muffin'])
    engine.add_item(cart, catalog['muffin'])

    assert empty_cart.is_empty()
    assert cart.lines[0].quantity == 1


def test_unknown_customization_rejected(engine, catalog, empty_cart):
    cart = engine.add_item(empty_cart, catalog['muffin'])
    with pytest.raises(UnknownOptionError):
        engine.add_item(cart, catalog['espresso'], {'syrup': 'Vanilla'})
    assert cart.lines == (CartLine('muffin', 1, ()),)


def test_unknown_option_rejected(engine, catalog, empty_cart):
    with pytest.raises(UnknownOptionError):
        engine.add_item(empty_cart, catalog['espresso'], {'milk': 'Goat'})


def test_unavailable_item_rejected(engine, catalog, empty_cart):
    with pytest.raises(ItemUnavailableError):
        engine.add_item(empty_cart, catalog['scone'])


def test_add_then_remove_restores_cart(engine, catalog, empty_cart):
    espresso = catalog['espresso']
    start = engine.add_item(engine.add_item(empty_cart, catalog['muffin']), espresso, DOUBLE_OAT)

    cart = engine.add_item(start, espresso, DOUBLE_OAT)
    cart = engine.remove_item(cart, 'espresso', DOUBLE_OAT)

    assert cart == start


def test_remove_drops_line_at_zero(engine, catalog, empty_cart):
    cart = engine.add_item(empty_cart, catalog['muffin'])
    cart = engine.remove_item(cart, 'muffin')

    assert cart.is_empty()
    assert engine.cart_total(cart) == 0


def test_remove_missing_line_is_a_no_op(engine, catalog, empty_cart):
    cart = engine.add_item(empty_cart, catalog['espresso'], DOUBLE_OAT)

    assert engine.remove_item(cart, 'espresso', {'milk': 'Whole'}) is cart
    assert engine.remove_item(cart, 'muffin') is cart
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 1


def test_snapshot_total_matches_cart_total(engine, catalog, empty_cart):
    cart = engine.add_item(empty_cart, catalog['espresso'], DOUBLE_OAT)
    cart = engine.add_item(cart, catalog['espresso'], {'milk': 'Oat'})
    cart = engine.add_item(cart, catalog['muffin'])
    cart = engine.add_item(cart, catalog['muffin'])

    snapshots = engine.to_order_lines(cart)

    assert sum(s.unit_price * s.quantity for s in snapshots) == engine.cart_total(cart)
    assert snapshots[0].name == 'Espresso'
    assert snapshots[0].customizations == ('Shots: Double Shot', 'Milk: Oat')


def test_line_for_item_missing_from_catalog(catalog):
    engine = CartEngine({'muffin': catalog['muffin']})
    cart = Cart(lines=(CartLine('espresso', 1, ()),))
    with pytest.raises(UnknownItemError):
        engine.cart_total(cart)


def test_summary_and_count(engine, catalog, empty_cart):
    assert engine.summary(empty_cart) == "Your cart is empty!"

    cart = engine.add_item(empty_cart, catalog['espresso'], DOUBLE_OAT)
    cart = engine.add_item(cart, catalog['muffin'])
    cart = engine.add_item(cart, catalog['muffin'])

    summary = engine.summary(cart)
    assert "1x Espresso with Double Shot, Oat ($5.00 each)" in summary
    assert "2x Muffin ($3.00 each)" in summary
    assert "Total: $11.00" in summary
    assert engine.item_count(cart) == 3


def test_clear_keeps_cafe(engine, catalog, empty_cart):
    cart = engine.clear(engine.add_item(empty_cart, catalog['muffin']))
    assert cart.is_empty()
    assert cart.cafe_id == 'cafe-1'


def test_normalize_selection():
    assert normalize_selection(None) == ()
    assert normalize_selection({'b': 'x', 'a': 'y'}) == (('a', 'y'), ('b', 'x'))
