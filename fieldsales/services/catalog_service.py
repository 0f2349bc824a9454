"""
Catalog of book packs sold to schools.

Reference data only: loaded at import time and never mutated. Product names
are unique within a category because line items are keyed by
(category, product name).
"""
from decimal import Decimal
from typing import Dict, List, Optional, Tuple


class CatalogEntry:
    """One product row of a catalog category."""

    __slots__ = ('category', 'class_name', 'product_name', 'unit_price')

    def __init__(self, category: str, class_name: str, product_name: str, unit_price):
        self.category = category
        self.class_name = class_name
        self.product_name = product_name
        self.unit_price = Decimal(str(unit_price)).quantize(Decimal('0.01'))

    def to_dict(self) -> Dict[str, str]:
        return {
            'category': self.category,
            'class': self.class_name,
            'productName': self.product_name,
            'unitPrice': f"{self.unit_price:.2f}",
        }

    def __repr__(self):
        return f"<CatalogEntry(category='{self.category}', product='{self.product_name}', price={self.unit_price})>"


# (class, product name, unit price) per category, in display order
_CATALOG_ROWS: Tuple[Tuple[str, Tuple[Tuple[str, str, int], ...]], ...] = (
    ('Kinder Box 1.0', (
        ('Nursery', 'Nursery Pack of 5 books', 950),
        ('LKG', 'LKG - Pack of 9 Books', 2175),
        ('UKG', 'UKG - Pack of 9 Books', 2175),
    )),
    ('Kinder Box Plus 2.0', (
        ('Nursery', 'Nursery Pack of 7 books', 1600),
        ('LKG', 'LKG - Pack of 14 Books', 2875),
        ('UKG', 'UKG - Pack of 14 Books', 2975),
    )),
    ('Special Edition', (
        ('Nursery', 'Nursery (Pack of 3 books)', 690),
        ('LKG', 'LKG - Pack of 6 Books', 1425),
        ('UKG', 'UKG - Pack of 6 Books', 1425),
    )),
    ('Kinder Play', (
        ('LKG', 'LKG - Pack of 10 Books', 2025),
        ('UKG', 'UKG - Pack of 11 Books', 2125),
    )),
    ('Little Steps', (
        ('Nursery', 'Nursery Pack of 6 books', 1075),
        ('LKG', 'LKG - Pack of 7 Books', 1825),
        ('UKG', 'UKG - Pack of 7 Books', 1925),
    )),
    ('Little Steps Combo', (
        ('LKG', 'LKG - Pack of 9 Books', 2075),
        ('UKG', 'UKG - Pack of 11 Books', 2425),
    )),
    ('Young Minds', (
        ('Nursery', 'Nursery (Pack of 2 books)', 575),
        ('LKG', 'LKG - Pack of 4 Books', 1475),
        ('UKG', 'UKG - Pack of 4 Books', 1475),
    )),
    ('General Books', (
        ('TELUGU', 'Telugu Aksharamala', 150),
        ('HINDI', 'Hindi Aksharamala', 150),
        ('TELUGU', 'Telugu Varnamala', 150),
        ('HINDI', 'Hindi Varnamala', 150),
        ('NUR', "Let's Do & Let's Colour Book - A", 110),
        ('LKG', "Let's Do & Let's Colour Book - B", 110),
        ('UKG', "Let's Do & Let's Colour Book - C", 110),
        ('NUR', 'Play with Strokes - A', 110),
        ('LKG', 'Play with Strokes - B', 110),
        ('LKG', 'Cut & Paste Book - A', 110),
        ('UKG', 'Cut & Paste Book - B', 110),
        # Same title sold per class at different prices
        ('NUR', 'Pre Printed Skill Books - Pack of 2 (NUR)', 190),
        ('LKG', 'Pre Printed Skill Books - Pack of 2 (LKG)', 320),
        ('UKG', 'Pre Printed Skill Books - Pack of 2 (UKG)', 320),
        ('TELUGU', 'Telugu Pre Printed Skill Book', 160),
        ('HINDI', 'Hindi Pre Printed Skill Book', 160),
    )),
)


def _build_catalog():
    catalog = {}
    for category, rows in _CATALOG_ROWS:
        entries = []
        seen = set()
        for class_name, product_name, price in rows:
            if product_name in seen:
                raise RuntimeError(f'Duplicate catalog product "{product_name}" in "{category}"')
            seen.add(product_name)
            entries.append(CatalogEntry(category, class_name, product_name, price))
        catalog[category] = tuple(entries)
    return catalog


CATALOG: Dict[str, Tuple[CatalogEntry, ...]] = _build_catalog()

_PRICE_INDEX: Dict[Tuple[str, str], CatalogEntry] = {
    (entry.category, entry.product_name): entry
    for entries in CATALOG.values()
    for entry in entries
}


def get_categories() -> List[str]:
    """Category names in display order."""
    return list(CATALOG.keys())


def is_known_category(category: str) -> bool:
    return category in CATALOG


def get_category_items(category: str) -> Tuple[CatalogEntry, ...]:
    """Ordered entries of a category; empty for unknown categories."""
    return CATALOG.get(category, ())


def find_entry(category: str, product_name: str) -> Optional[CatalogEntry]:
    return _PRICE_INDEX.get((category, product_name))


def get_unit_price(category: str, product_name: str) -> Optional[Decimal]:
    """Catalog price for a product, or None when it is not sold."""
    entry = find_entry(category, product_name)
    return entry.unit_price if entry else None


def catalog_as_dict() -> List[Dict]:
    """Serializable catalog for API clients."""
    return [
        {
            'category': category,
            'items': [entry.to_dict() for entry in entries],
        }
        for category, entries in CATALOG.items()
    ]
