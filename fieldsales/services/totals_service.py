"""
Totals calculator for orders.

Two discount modes, chosen once per order:
- FLAT: one absolute amount subtracted from the gross total.
- PERCENT: each category subtotal is reduced by that category's
  "<category>-discount" percentage.

All arithmetic is Decimal; rounding to paise (half-up) happens once, on the
final figures.
"""
import enum
import logging
from decimal import Decimal
from typing import NamedTuple, Optional

from fieldsales.exceptions import ValidationError, TotalsMismatchError
from fieldsales.services.line_items import LineItemStore
from fieldsales.utils.formatters import to_money, money
from fieldsales.utils.number_format import parse_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
HUNDRED = Decimal('100')


class DiscountMode(enum.Enum):
    """How an order's discount is expressed."""
    FLAT = "FLAT"
    PERCENT = "PERCENT"

    @classmethod
    def parse(cls, value, default=None):
        if value is None or value == '':
            if default is None:
                raise ValidationError('discountMode is required', field='discountMode')
            return default
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValidationError('discountMode must be FLAT or PERCENT', field='discountMode')


class OrderTotals(NamedTuple):
    """Gross, discount and net amounts, rounded to paise."""
    total_amount: Decimal
    total_discount: Decimal
    net_amount: Decimal

    def to_dict(self):
        return {
            'totalAmount': money(self.total_amount),
            'totalDiscount': money(self.total_discount),
            'netAmount': money(self.net_amount),
        }


def gross_total(store: LineItemStore) -> Decimal:
    """Sum of qty x unit price over every line."""
    return sum((entry.line_total for _, entry in store.lines()), ZERO)


def percent_discount_amount(store: LineItemStore) -> Decimal:
    """Discount from per-category percentages (unrounded)."""
    discount = ZERO
    for category, subtotal in store.category_subtotals().items():
        percent = store.get_category_discount_percent(category)
        if percent:
            discount += subtotal * percent / HUNDRED
    return discount


def compute_totals(
    store: LineItemStore,
    discount_mode: DiscountMode = DiscountMode.FLAT,
    flat_discount=ZERO,
    clamp_net: bool = True,
) -> OrderTotals:
    """
    Derive gross, discount and net from the line items.

    With clamp_net the discount is capped at the gross total so the net
    amount never drops below zero and net == gross - discount still holds.
    """
    gross = gross_total(store)

    if discount_mode is DiscountMode.PERCENT:
        discount = percent_discount_amount(store)
    else:
        discount = parse_decimal(flat_discount, field='totalDiscount')
        if discount < 0:
            raise ValidationError('Discount cannot be negative', field='totalDiscount')

    if clamp_net and discount > gross:
        discount = gross

    total_amount = to_money(gross)
    total_discount = to_money(discount)
    return OrderTotals(total_amount, total_discount, total_amount - total_discount)


def check_client_totals(
    computed: OrderTotals,
    submitted: Optional[dict],
    tolerance=Decimal('0.01'),
    reject: bool = False,
    order_id: Optional[int] = None,
) -> bool:
    """
    Compare client-sent totals with the server computation.

    Client totals are display hints: a disagreement is logged and, when
    reject is set, raised as TotalsMismatchError.

    Returns:
        True if every submitted figure agrees within tolerance.
    """
    if not submitted:
        return True

    tolerance = Decimal(str(tolerance))
    expected = computed.to_dict()
    agrees = True

    for field, expected_value in expected.items():
        raw = submitted.get(field)
        if raw is None or raw == '':
            continue
        try:
            value = parse_decimal(raw, field=field)
        except ValidationError:
            value = None

        if value is None or abs(value - Decimal(expected_value)) > tolerance:
            agrees = False
            logger.warning(
                f"Client totals mismatch on order {order_id}: {field} submitted={raw} computed={expected_value}"
            )
            if reject:
                raise TotalsMismatchError(field, raw, expected_value)

    return agrees
