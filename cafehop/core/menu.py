"""Menu catalog values and parsing of backend menu rows"""
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from cafehop.core.errors import MenuValidationError, UnknownItemError, UnknownOptionError
from cafehop.utils.money import to_cents, to_decimal
from cafehop.utils.search import matches_query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Option:
    name: str
    price_delta: int = 0  # cents


@dataclass(frozen=True)
class Customization:
    id: str
    name: str
    options: Tuple[Option, ...] = ()
    # Stored as the backend sends it; only single-select is supported
    max_selections: int = 1

    def get_option(self, name: str) -> Optional[Option]:
        for option in self.options:
            if option.name == name:
                return option
        return None


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str
    price: int  # cents
    category: str = ''
    description: str = ''
    is_available: bool = True
    customizations: Tuple[Customization, ...] = field(default_factory=tuple)

    def get_customization(self, customization_id: str) -> Optional[Customization]:
        for customization in self.customizations:
            if customization.id == customization_id:
                return customization
        return None

    def resolve_selection(self, selection: Dict[str, str]) -> Tuple[Tuple[Customization, Option], ...]:
        """Look up every (customization id, option name) pair on this item.

        Raises UnknownOptionError when the item has no such customization or
        the customization has no such option. The result follows the item's
        own customization order so labels render consistently.
        """
        for customization_id, option_name in selection.items():
            customization = self.get_customization(customization_id)
            if customization is None:
                raise UnknownOptionError(
                    f"{self.name} has no customization '{customization_id}'"
                )
            if customization.get_option(option_name) is None:
                raise UnknownOptionError(
                    f"{customization.name} on {self.name} has no option '{option_name}'"
                )

        resolved = []
        for customization in self.customizations:
            if customization.id in selection:
                resolved.append((customization, customization.get_option(selection[customization.id])))
        return tuple(resolved)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'price': str(to_decimal(self.price)),
            'category': self.category,
            'description': self.description,
            'is_available': self.is_available,
            'customizations': [
                {
                    'id': c.id,
                    'name': c.name,
                    'max_selections': c.max_selections,
                    'options': [
                        {'name': o.name, 'price': str(to_decimal(o.price_delta))}
                        for o in c.options
                    ],
                }
                for c in self.customizations
            ],
        }


def _parse_option(raw: Any) -> Option:
    # Plain strings are options without a surcharge
    if isinstance(raw, str):
        return Option(name=raw)
    return Option(name=raw['name'], price_delta=to_cents(raw.get('price', 0)))


def customization_from_record(raw: Dict[str, Any]) -> Customization:
    max_selections = int(raw.get('max_selections', 1))
    if max_selections > 1:
        logger.warning(
            f"Customization {raw.get('name')} allows {max_selections} selections; treating as single-select"
        )
    return Customization(
        id=str(raw['id']),
        name=raw['name'],
        options=tuple(_parse_option(o) for o in raw.get('options') or []),
        max_selections=max_selections,
    )


def menu_item_from_record(row: Dict[str, Any]) -> MenuItem:
    """Build a MenuItem from a backend menu row (prices as decimal strings)"""
    return MenuItem(
        id=str(row['id']),
        name=row['name'],
        price=to_cents(row['price']),
        category=row.get('category', ''),
        description=row.get('description', ''),
        is_available=bool(row.get('is_available', True)),
        customizations=tuple(customization_from_record(raw) for raw in row.get('customizations') or []),
    )


def build_catalog(rows: Iterable[Dict[str, Any]]) -> Dict[str, MenuItem]:
    """Index menu rows by item id"""
    catalog = {}
    for row in rows:
        item = menu_item_from_record(row)
        catalog[item.id] = item
    return catalog


# Menu management for cafe owners. Catalogs are never edited in place;
# every operation returns a new dict.

def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_customization(customization: Customization) -> None:
    if _is_blank(customization.name):
        raise MenuValidationError("Customization name is required")
    if not customization.options:
        raise MenuValidationError(f"Customization {customization.name} needs at least one option")
    seen = set()
    for option in customization.options:
        if _is_blank(option.name):
            raise MenuValidationError("Option cannot be empty")
        if option.price_delta < 0:
            raise MenuValidationError(f"Option {option.name} cannot have a negative price")
        if option.name in seen:
            raise MenuValidationError(f"Option {option.name} is listed twice on {customization.name}")
        seen.add(option.name)


def validate_menu_item(item: MenuItem) -> None:
    """Raise MenuValidationError unless name, price and category are filled in"""
    if _is_blank(item.name):
        raise MenuValidationError("Menu item name is required")
    if _is_blank(item.category):
        raise MenuValidationError("Menu item category is required")
    if item.price < 0:
        raise MenuValidationError(f"Price for {item.name} cannot be negative")
    ids = [c.id for c in item.customizations]
    if len(ids) != len(set(ids)):
        raise MenuValidationError(f"{item.name} has duplicate customization ids")
    for customization in item.customizations:
        validate_customization(customization)


def _from_form(build, raw: Any, what: str):
    if not isinstance(raw, Mapping):
        raise MenuValidationError(f"{what} must be an object")
    try:
        return build(raw)
    except (KeyError, TypeError, ValueError, AttributeError, ArithmeticError) as e:
        raise MenuValidationError(f"Invalid {what.lower()}: {e!r}")


def parse_menu_item(row: Any) -> MenuItem:
    """Build and validate a MenuItem from an admin form submission"""
    if isinstance(row, Mapping):
        for key in ('name', 'price', 'category'):
            if row.get(key) in (None, ''):
                raise MenuValidationError(f"Menu item {key} is required")
    item = _from_form(menu_item_from_record, row, 'Menu item')
    validate_menu_item(item)
    return item


def parse_customization(raw: Any) -> Customization:
    customization = _from_form(customization_from_record, raw, 'Customization')
    validate_customization(customization)
    return customization


def _existing(catalog: Mapping[str, MenuItem], item_id: str) -> MenuItem:
    item = catalog.get(item_id)
    if item is None:
        raise UnknownItemError(f"Menu item '{item_id}' not found")
    return item


def add_menu_item(catalog: Mapping[str, MenuItem], item: MenuItem) -> Dict[str, MenuItem]:
    validate_menu_item(item)
    if item.id in catalog:
        raise MenuValidationError(f"Menu item '{item.id}' already exists")
    updated = dict(catalog)
    updated[item.id] = item
    logger.info(f"Added menu item {item.id} ({item.name})")
    return updated


def update_menu_item(catalog: Mapping[str, MenuItem], item: MenuItem) -> Dict[str, MenuItem]:
    """Replace an existing item, keeping its position in the menu"""
    validate_menu_item(item)
    _existing(catalog, item.id)
    updated = dict(catalog)
    updated[item.id] = item
    logger.info(f"Updated menu item {item.id} ({item.name})")
    return updated


def remove_menu_item(catalog: Mapping[str, MenuItem], item_id: str) -> Dict[str, MenuItem]:
    _existing(catalog, item_id)
    logger.info(f"Removed menu item {item_id}")
    return {key: item for key, item in catalog.items() if key != item_id}


def set_availability(catalog: Mapping[str, MenuItem], item_id: str, is_available: bool) -> Dict[str, MenuItem]:
    item = _existing(catalog, item_id)
    updated = dict(catalog)
    updated[item_id] = replace(item, is_available=is_available)
    logger.info(f"Menu item {item_id} is now {'available' if is_available else 'unavailable'}")
    return updated


def add_customization(item: MenuItem, customization: Customization) -> MenuItem:
    validate_customization(customization)
    if item.get_customization(customization.id) is not None:
        raise MenuValidationError(f"{item.name} already has a customization '{customization.id}'")
    return replace(item, customizations=item.customizations + (customization,))


def remove_customization(item: MenuItem, customization_id: str) -> MenuItem:
    if item.get_customization(customization_id) is None:
        raise UnknownOptionError(f"{item.name} has no customization '{customization_id}'")
    return replace(item, customizations=tuple(c for c in item.customizations if c.id != customization_id))


def filter_menu(items: Iterable[MenuItem], category: Optional[str] = None,
                query: Optional[str] = None) -> List[MenuItem]:
    """Menu list filter by category ("all" or None means any) and search text"""
    category = None if category in (None, '', 'all') else category.lower()
    return [
        item for item in items
        if (category is None or item.category.lower() == category)
        and matches_query(query, [item.name, item.description])
    ]


def category_counts(items: Iterable[MenuItem]) -> Dict[str, int]:
    counts = {}
    for item in items:
        counts[item.category] = counts.get(item.category, 0) + 1
    return counts
