"""
Order draft - the multi-page order form as one value.

Each form step (office, school, contact, dispatch, one page per catalog
category, invoice) writes into the same OrderDraft; nothing touches the
database until apply_to() runs on final submit.
"""
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, Tuple

from fieldsales.exceptions import ValidationError
from fieldsales.models.order import (
    Order, OFFICE_FIELDS, SCHOOL_FIELDS, CONTACT_FIELDS, DISPATCH_FIELDS,
    ALL_DETAIL_FIELDS,
)
from fieldsales.services.line_items import LineItemStore, DEFAULT_MAX_DISCOUNT_PERCENT
from fieldsales.services.totals_service import DiscountMode, OrderTotals, compute_totals
from fieldsales.utils.number_format import parse_decimal

MODES_OF_ORDER = ('SCHOOL', 'DISTRIBUTOR')
BOOLEAN_FIELDS = ('has_school_order_copy', 'has_distributor_order_copy')
MOBILE_FIELDS = ('principal_mobile', 'correspondent_mobile')

PINCODE_PATTERN = re.compile(r'^\d{6}$')
MOBILE_PATTERN = re.compile(r'^\d{10}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

_JSON_NAMES = {column: name for column, name in ALL_DETAIL_FIELDS}


def _clean_text(value, name):
    if value is None:
        return None
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise ValidationError(f'{name} must be text', field=name)
    cleaned = str(value).strip()
    return cleaned or None


def _clean_bool(value, name):
    if value is None or value == '':
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', 'false', '1', '0', 'on', 'off'):
        return value.lower() in ('true', '1', 'on')
    raise ValidationError(f'{name} must be true or false', field=name)


def _clean_date(value, name):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        # Accept "2026-03-01" and full ISO timestamps from date pickers
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f'{name} must be a date (YYYY-MM-DD)', field=name)


def clean_detail(column: str, value):
    """Normalise and validate one detail field by column name."""
    name = _JSON_NAMES.get(column, column)

    if column in BOOLEAN_FIELDS:
        return _clean_bool(value, name)
    if column == 'delivery_date':
        return _clean_date(value, name)

    cleaned = _clean_text(value, name)
    if cleaned is None:
        return None

    if column == 'mode_of_order':
        cleaned = cleaned.upper()
        if cleaned not in MODES_OF_ORDER:
            raise ValidationError('modeOfOrder must be SCHOOL or DISTRIBUTOR', field=name)
    elif column == 'pincode':
        if not PINCODE_PATTERN.match(cleaned):
            raise ValidationError('Pincode must be 6 digits', field=name)
    elif column in MOBILE_FIELDS:
        if not MOBILE_PATTERN.match(cleaned):
            raise ValidationError('Mobile number must be exactly 10 digits', field=name)
    elif column == 'email_id':
        if not EMAIL_PATTERN.match(cleaned):
            raise ValidationError('Invalid email address', field=name)

    return cleaned


class OrderDraft:
    """In-memory order being filled in, step by step."""

    def __init__(self, discount_mode: DiscountMode = DiscountMode.FLAT,
                 max_discount_percent: Decimal = DEFAULT_MAX_DISCOUNT_PERCENT):
        self.discount_mode = discount_mode
        self.items = LineItemStore(max_discount_percent)
        self.flat_discount = Decimal('0')
        self.details: Dict[str, object] = {}

    def __repr__(self):
        return f"<OrderDraft(mode={self.discount_mode.value}, lines={len(self.items)}, details={len(self.details)})>"

    # Form steps

    def _with_fields(self, fields: Iterable[Tuple[str, str]], values: Dict) -> 'OrderDraft':
        allowed = {column for column, _ in fields}
        for column, value in values.items():
            if column not in allowed:
                raise ValidationError(f'Unknown field "{column}"', field=column)
            self.details[column] = clean_detail(column, value)
        return self

    def with_office(self, **values) -> 'OrderDraft':
        return self._with_fields(OFFICE_FIELDS, values)

    def with_school(self, **values) -> 'OrderDraft':
        return self._with_fields(SCHOOL_FIELDS, values)

    def with_contact(self, **values) -> 'OrderDraft':
        return self._with_fields(CONTACT_FIELDS, values)

    def with_dispatch(self, **values) -> 'OrderDraft':
        return self._with_fields(DISPATCH_FIELDS, values)

    def with_remarks(self, remarks) -> 'OrderDraft':
        self.details['remarks'] = _clean_text(remarks, 'remarks')
        return self

    def with_quantity(self, category: str, product_name: str, qty) -> 'OrderDraft':
        self.items.set_quantity(category, product_name, qty)
        return self

    def with_category_discount(self, category: str, percent) -> 'OrderDraft':
        self.items.set_category_discount_percent(category, percent)
        return self

    def with_flat_discount(self, amount) -> 'OrderDraft':
        value = parse_decimal(amount, field='totalDiscount')
        if value < 0:
            raise ValidationError('Discount cannot be negative', field='totalDiscount')
        self.flat_discount = value
        return self

    # Payload handling

    def merge_payload(self, payload: Dict, fields=ALL_DETAIL_FIELDS,
                      allow_discounts: bool = True) -> 'OrderDraft':
        """
        Apply a camelCase JSON body.

        Only the given detail fields are read; other keys are ignored so a
        public submitter cannot touch office-use data.
        """
        if not isinstance(payload, dict):
            raise ValidationError('Request body must be a JSON object')

        for column, name in fields:
            if name in payload:
                self.details[column] = clean_detail(column, payload[name])

        if 'items' in payload:
            self.items.merge_wire(payload['items'], allow_discounts=allow_discounts)

        if allow_discounts and self.discount_mode is DiscountMode.FLAT:
            # The internal form sends its flat discount as totalDiscount
            if 'flatDiscount' in payload:
                self.with_flat_discount(payload['flatDiscount'])
            elif 'totalDiscount' in payload:
                self.with_flat_discount(payload['totalDiscount'])

        return self

    @classmethod
    def from_payload(cls, payload: Dict, max_discount_percent: Decimal = DEFAULT_MAX_DISCOUNT_PERCENT,
                     default_mode: DiscountMode = DiscountMode.FLAT) -> 'OrderDraft':
        mode = DiscountMode.parse((payload or {}).get('discountMode'), default=default_mode)
        draft = cls(mode, max_discount_percent)
        return draft.merge_payload(payload or {})

    @classmethod
    def from_order(cls, order: Order, max_discount_percent: Decimal = DEFAULT_MAX_DISCOUNT_PERCENT) -> 'OrderDraft':
        """Re-open a persisted order for editing."""
        draft = cls(DiscountMode.parse(order.discount_mode, default=DiscountMode.FLAT), max_discount_percent)
        draft.items = LineItemStore.from_wire(order.items or {}, max_discount_percent)
        draft.flat_discount = Decimal(str(order.flat_discount or 0))
        for column, _ in ALL_DETAIL_FIELDS:
            draft.details[column] = getattr(order, column)
        return draft

    # Totals and commit

    def totals(self, clamp_net: bool = True) -> OrderTotals:
        return compute_totals(self.items, self.discount_mode, self.flat_discount, clamp_net)

    def validate(self, required: Iterable[str] = ('school_name',)) -> None:
        for column in required:
            if not self.details.get(column):
                name = _JSON_NAMES.get(column, column)
                raise ValidationError(f'{name} is required', field=name)

    def apply_to(self, order: Order, clamp_net: bool = True,
                 fields=ALL_DETAIL_FIELDS) -> OrderTotals:
        """Write details, items and recomputed totals onto an Order."""
        for column, _ in fields:
            if column in self.details:
                value = self.details[column]
                if column in BOOLEAN_FIELDS:
                    value = bool(value)
                elif column == 'school_name':
                    value = value or ''
                setattr(order, column, value)

        totals = self.totals(clamp_net)
        order.items = self.items.to_wire()
        order.discount_mode = self.discount_mode.value
        order.flat_discount = self.flat_discount
        order.total_amount = totals.total_amount
        order.total_discount = totals.total_discount
        order.net_amount = totals.net_amount
        return totals


