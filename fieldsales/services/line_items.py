"""
Line-item store for an order being edited.

Quantities are held against a structured (category, product name) key and
priced from the catalog, never from client input. The "<category>-<product>"
and "<category>-discount" string keys exist only in to_wire()/from_wire().
"""
from decimal import Decimal
from typing import Dict, Iterator, NamedTuple, Optional, Tuple

from fieldsales.exceptions import ValidationError
from fieldsales.services import catalog_service
from fieldsales.utils.number_format import parse_quantity, parse_decimal

DISCOUNT_SUFFIX = 'discount'
DEFAULT_MAX_DISCOUNT_PERCENT = Decimal('100')


class LineItemKey(NamedTuple):
    """Composite key of a line item."""
    category: str
    product_name: str

    def wire_key(self) -> str:
        return f"{self.category}-{self.product_name}"


class LineEntry(NamedTuple):
    """Quantity and catalog unit price of a line."""
    qty: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.qty


def discount_wire_key(category: str) -> str:
    return f"{category}-{DISCOUNT_SUFFIX}"


def split_wire_key(wire_key: str) -> Tuple[str, str]:
    """
    Split "<category>-<rest>" against the known categories.

    Product names contain dashes ("LKG - Pack of 9 Books"), so the category
    is matched as a prefix instead of splitting on the first dash.
    """
    for category in sorted(catalog_service.get_categories(), key=len, reverse=True):
        prefix = f"{category}-"
        if wire_key.startswith(prefix):
            return category, wire_key[len(prefix):]
    raise ValidationError(f'Unknown item category in "{wire_key}"', field='items')


class LineItemStore:
    """Sparse mapping of ordered quantities plus per-category discounts."""

    def __init__(self, max_discount_percent: Decimal = DEFAULT_MAX_DISCOUNT_PERCENT):
        self._lines: Dict[LineItemKey, LineEntry] = {}
        self._discounts: Dict[str, Decimal] = {}
        self.max_discount_percent = Decimal(str(max_discount_percent))

    def set_quantity(self, category: str, product_name: str, qty) -> None:
        """
        Upsert a line priced from the catalog.

        Zero or blank quantities remove the line so no phantom rows are
        persisted.
        """
        key = LineItemKey(category, product_name)
        price = catalog_service.get_unit_price(category, product_name)
        if price is None:
            raise ValidationError(
                f'"{product_name}" is not sold under "{category}"',
                field=f'items.{key.wire_key()}'
            )

        quantity = parse_quantity(qty, field=f'items.{key.wire_key()}')
        if quantity == 0:
            self._lines.pop(key, None)
            return

        self._lines[key] = LineEntry(quantity, price)

    def get_quantity(self, category: str, product_name: str) -> int:
        entry = self._lines.get(LineItemKey(category, product_name))
        return entry.qty if entry else 0

    def set_category_discount_percent(self, category: str, percent) -> None:
        """Set a category discount in percent; blank or zero clears it."""
        field = f'items.{discount_wire_key(category)}'
        if not catalog_service.is_known_category(category):
            raise ValidationError(f'Unknown category "{category}"', field=field)

        value = parse_decimal(percent, field=field)
        if value < 0 or value > self.max_discount_percent:
            raise ValidationError(
                f'Discount must be between 0 and {self.max_discount_percent}%',
                field=field
            )

        if value == 0:
            self._discounts.pop(category, None)
        else:
            self._discounts[category] = value

    def get_category_discount_percent(self, category: str) -> Decimal:
        return self._discounts.get(category, Decimal('0'))

    def discounts(self) -> Dict[str, Decimal]:
        return dict(self._discounts)

    def lines(self) -> Iterator[Tuple[LineItemKey, LineEntry]]:
        """Lines in catalog order."""
        for category in catalog_service.get_categories():
            for catalog_entry in catalog_service.get_category_items(category):
                key = LineItemKey(category, catalog_entry.product_name)
                entry = self._lines.get(key)
                if entry:
                    yield key, entry

    def category_subtotals(self) -> Dict[str, Decimal]:
        """Gross amount per category that has at least one line."""
        subtotals: Dict[str, Decimal] = {}
        for key, entry in self.lines():
            subtotals[key.category] = subtotals.get(key.category, Decimal('0')) + entry.line_total
        return subtotals

    def category_quantities(self) -> Dict[str, int]:
        quantities: Dict[str, int] = {}
        for key, entry in self.lines():
            quantities[key.category] = quantities.get(key.category, 0) + entry.qty
        return quantities

    def is_empty(self) -> bool:
        return not self._lines

    def copy(self) -> 'LineItemStore':
        clone = LineItemStore(self.max_discount_percent)
        clone._lines = dict(self._lines)
        clone._discounts = dict(self._discounts)
        return clone

    def __len__(self):
        return len(self._lines)

    def __eq__(self, other):
        if not isinstance(other, LineItemStore):
            return NotImplemented
        return self._lines == other._lines and self._discounts == other._discounts

    def __repr__(self):
        return f"<LineItemStore(lines={len(self._lines)}, discounts={len(self._discounts)})>"

    # Serialization boundary

    def to_wire(self) -> Dict[str, Dict[str, object]]:
        """JSON mapping with "<category>-<product>" and "<category>-discount" keys."""
        wire: Dict[str, Dict[str, object]] = {}
        for key, entry in self.lines():
            wire[key.wire_key()] = {'qty': entry.qty, 'price': f"{entry.unit_price:.2f}"}
        for category in catalog_service.get_categories():
            percent = self._discounts.get(category)
            if percent is not None:
                wire[discount_wire_key(category)] = {'value': format(percent.normalize(), 'f')}
        return wire

    def merge_wire(self, wire: Optional[Dict], allow_discounts: bool = True) -> None:
        """
        Apply a wire mapping on top of the current lines.

        Client prices are ignored. Discount entries are skipped when
        allow_discounts is False (public fill-in).
        """
        if not wire:
            return
        if not isinstance(wire, dict):
            raise ValidationError('items must be an object', field='items')

        for wire_key, value in wire.items():
            category, rest = split_wire_key(wire_key)
            if not isinstance(value, dict):
                raise ValidationError('Item entries must be objects', field=f'items.{wire_key}')

            if rest == DISCOUNT_SUFFIX and 'qty' not in value:
                if allow_discounts:
                    self.set_category_discount_percent(category, value.get('value'))
                continue

            self.set_quantity(category, rest, value.get('qty'))

    @classmethod
    def from_wire(cls, wire: Optional[Dict], max_discount_percent: Decimal = DEFAULT_MAX_DISCOUNT_PERCENT,
                  allow_discounts: bool = True) -> 'LineItemStore':
        store = cls(max_discount_percent)
        store.merge_wire(wire, allow_discounts=allow_discounts)
        return store
