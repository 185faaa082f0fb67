from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple
import logging

from cafehop.core.errors import ItemUnavailableError, UnknownItemError
from cafehop.core.menu import MenuItem
from cafehop.core.order import OrderLineSnapshot
from cafehop.utils.money import format_money

logger = logging.getLogger(__name__)

Selection = Tuple[Tuple[str, str], ...]


def normalize_selection(selection: Optional[Mapping[str, str]]) -> Selection:
    """Turn a {customization_id: option_name} map into a hashable, order-free key"""
    if not selection:
        return ()
    return tuple(sorted((str(k), str(v)) for k, v in selection.items()))


@dataclass(frozen=True)
class CartLine:
    item_id: str
    quantity: int = 1
    selection: Selection = ()

    @property
    def key(self) -> Tuple[str, Selection]:
        return (self.item_id, self.selection)

    @property
    def selection_dict(self) -> Dict[str, str]:
        return dict(self.selection)


@dataclass(frozen=True)
class Cart:
    lines: Tuple[CartLine, ...] = field(default_factory=tuple)
    cafe_id: Optional[str] = None

    def is_empty(self) -> bool:
        """Check if cart is empty"""
        return len(self.lines) == 0

    def find_line(self, item_id: str, selection: Selection) -> Optional[CartLine]:
        for line in self.lines:
            if line.key == (item_id, selection):
                return line
        return None


class CartEngine:
    """Cart arithmetic over a menu catalog.

    Every operation takes a Cart and returns a new one; carts are never
    mutated, so the same cart can be shared across requests safely.
    """

    def __init__(self, catalog: Mapping[str, MenuItem]):
        self.catalog = catalog

    def add_item(self, cart: Cart, menu_item: MenuItem, selection: Optional[Mapping[str, str]] = None) -> Cart:
        """Add one of menu_item with the given customization selection"""
        selection = dict(selection or {})
        # Raises UnknownOptionError before the cart is touched
        menu_item.resolve_selection(selection)
        if not menu_item.is_available:
            raise ItemUnavailableError(f"{menu_item.name} is currently unavailable")

        key = normalize_selection(selection)
        logger.info(f"Adding to cart: {menu_item.name} with selection: {selection}")

        lines = []
        merged = False
        for line in cart.lines:
            if line.key == (menu_item.id, key):
                line = replace(line, quantity=line.quantity + 1)
                logger.info(f"Updated existing line. {menu_item.name} now has quantity {line.quantity}")
                merged = True
            lines.append(line)
        if not merged:
            lines.append(CartLine(item_id=menu_item.id, quantity=1, selection=key))
            logger.info(f"Added new line to cart: {menu_item.name}")

        return replace(cart, lines=tuple(lines))

    def remove_item(self, cart: Cart, item_id: str, selection: Optional[Mapping[str, str]] = None) -> Cart:
        """Remove one unit of the matching line; unknown lines are ignored"""
        key = normalize_selection(selection)
        if cart.find_line(item_id, key) is None:
            logger.info(f"Remove ignored: no line for {item_id} with {dict(key)}")
            return cart

        lines = []
        for line in cart.lines:
            if line.key == (item_id, key):
                if line.quantity <= 1:
                    logger.info(f"Line {item_id} completely removed from cart")
                    continue
                line = replace(line, quantity=line.quantity - 1)
                logger.info(f"Line {item_id} quantity reduced to {line.quantity}")
            lines.append(line)
        return replace(cart, lines=tuple(lines))

    def clear(self, cart: Cart) -> Cart:
        """Empty the cart, keeping the cafe it belongs to"""
        logger.info("Clearing cart")
        return Cart(cafe_id=cart.cafe_id)

    def menu_item(self, item_id: str) -> MenuItem:
        try:
            return self.catalog[item_id]
        except KeyError:
            raise UnknownItemError(f"Menu item '{item_id}' not found") from None

    def unit_price(self, line: CartLine) -> int:
        """Base price plus selected option deltas, in cents"""
        item = self.menu_item(line.item_id)
        deltas = sum(option.price_delta for _, option in item.resolve_selection(line.selection_dict))
        return item.price + deltas

    def line_total(self, line: CartLine) -> int:
        return self.unit_price(line) * line.quantity

    def cart_total(self, cart: Cart) -> int:
        return sum((self.line_total(line) for line in cart.lines), 0)

    def item_count(self, cart: Cart) -> int:
        return sum(line.quantity for line in cart.lines)

    def to_order_lines(self, cart: Cart) -> Tuple[OrderLineSnapshot, ...]:
        """Freeze current names and prices so later menu edits don't change the order"""
        snapshots = []
        for line in cart.lines:
            item = self.menu_item(line.item_id)
            resolved = item.resolve_selection(line.selection_dict)
            snapshots.append(OrderLineSnapshot(
                item_id=item.id,
                name=item.name,
                unit_price=item.price + sum(option.price_delta for _, option in resolved),
                quantity=line.quantity,
                customizations=tuple(f"{c.name}: {o.name}" for c, o in resolved),
            ))
        return tuple(snapshots)

    def summary(self, cart: Cart) -> str:
        """Get formatted cart summary"""
        if cart.is_empty():
            return "Your cart is empty!"

        summary = ["Your Cart:"]
        for line in cart.lines:
            item = self.menu_item(line.item_id)
            resolved = item.resolve_selection(line.selection_dict)
            mod_text = f" with {', '.join(o.name for _, o in resolved)}" if resolved else ""
            summary.append(f"{line.quantity}x {item.name}{mod_text} ({format_money(self.unit_price(line))} each)")
        summary.append(f"Total: {format_money(self.cart_total(cart))}")
        return "\n".join(summary)
