"""
Unit tests for the multi-step order draft.
"""

import pytest
from datetime import date
from decimal import Decimal

from fieldsales.exceptions import ValidationError
from fieldsales.models import Order
from fieldsales.services.order_draft import OrderDraft, clean_detail
from fieldsales.services.totals_service import DiscountMode


KINDER_BOX = 'Kinder Box 1.0'
LKG_PACK = 'LKG - Pack of 9 Books'
NURSERY_PACK = 'Nursery Pack of 5 books'


class TestDraftSteps:
    """Filling the form page by page."""

    def test_steps_build_one_order(self):
        draft = (
            OrderDraft()
            .with_office(school_code='SC-12', mode_of_order='school', has_school_order_copy='true')
            .with_school(school_name='  Sunrise Public School ', pincode='500001')
            .with_contact(principal_name='Mrs. Rao', principal_mobile='9876543210')
            .with_dispatch(delivery_date='2026-06-01', transport_name='VRL')
            .with_quantity(KINDER_BOX, LKG_PACK, 2)
            .with_quantity(KINDER_BOX, NURSERY_PACK, 1)
            .with_flat_discount('300')
        )

        assert draft.details['mode_of_order'] == 'SCHOOL'
        assert draft.details['has_school_order_copy'] is True
        assert draft.details['school_name'] == 'Sunrise Public School'
        assert draft.details['delivery_date'] == date(2026, 6, 1)
        assert draft.totals().to_dict() == {
            'totalAmount': '5300.00',
            'totalDiscount': '300.00',
            'netAmount': '5000.00',
        }

    def test_step_rejects_fields_of_other_pages(self):
        with pytest.raises(ValidationError):
            OrderDraft().with_school(principal_name='Mrs. Rao')

    def test_negative_flat_discount(self):
        with pytest.raises(ValidationError):
            OrderDraft().with_flat_discount('-5')

    def test_school_name_required(self):
        draft = OrderDraft().with_quantity(KINDER_BOX, LKG_PACK, 1)
        with pytest.raises(ValidationError) as exc:
            draft.validate()
        assert exc.value.field == 'schoolName'


class TestDetailValidation:
    """clean_detail()."""

    @pytest.mark.parametrize('column,value', [
        ('pincode', '5000'),
        ('principal_mobile', '98765'),
        ('correspondent_mobile', '98765432101'),
        ('email_id', 'not-an-email'),
        ('mode_of_order', 'ONLINE'),
        ('delivery_date', '01/06/2026'),
        ('has_distributor_order_copy', 'maybe'),
    ])
    def test_invalid_values(self, column, value):
        with pytest.raises(ValidationError):
            clean_detail(column, value)

    def test_blank_text_is_none(self):
        assert clean_detail('trust_name', '   ') is None

    def test_blank_boolean_is_false(self):
        assert clean_detail('has_school_order_copy', '') is False

    def test_numeric_pincode(self):
        assert clean_detail('pincode', 500001) == '500001'


class TestPayload:
    """JSON bodies from the API."""

    def test_from_payload_flat(self, order_payload):
        draft = OrderDraft.from_payload(order_payload)

        assert draft.discount_mode is DiscountMode.FLAT
        assert draft.flat_discount == Decimal('300')
        assert draft.details['school_name'] == 'Sunrise Public School'
        assert draft.items.get_quantity(KINDER_BOX, LKG_PACK) == 2

    def test_flat_discount_key_preferred(self, order_payload):
        order_payload['flatDiscount'] = '100'
        draft = OrderDraft.from_payload(order_payload)
        assert draft.flat_discount == Decimal('100')

    def test_from_payload_percent(self, order_payload):
        order_payload['discountMode'] = 'PERCENT'
        order_payload['items'][f'{KINDER_BOX}-discount'] = {'value': '10'}

        draft = OrderDraft.from_payload(order_payload)

        assert draft.flat_discount == Decimal('0')
        assert draft.totals().total_discount == Decimal('530.00')

    def test_restricted_fields(self, order_payload):
        order_payload['schoolCode'] = 'SC-99'
        draft = OrderDraft()
        draft.merge_payload(order_payload, fields=(('school_name', 'schoolName'),))

        assert 'school_code' not in draft.details
        assert draft.details['school_name'] == 'Sunrise Public School'

    def test_payload_must_be_object(self):
        with pytest.raises(ValidationError):
            OrderDraft().merge_payload(['schoolName'])


class TestApplyToOrder:
    """Writing a draft onto an Order and reading it back."""

    def test_apply_and_reopen(self, order_payload):
        order = Order()
        draft = OrderDraft.from_payload(order_payload)
        totals = draft.apply_to(order)

        assert order.school_name == 'Sunrise Public School'
        assert order.discount_mode == 'FLAT'
        assert order.flat_discount == Decimal('300')
        assert order.total_amount == Decimal('5300.00')
        assert order.net_amount == totals.net_amount == Decimal('5000.00')
        assert order.items[f'{KINDER_BOX}-{LKG_PACK}'] == {'qty': 2, 'price': '2175.00'}

        reopened = OrderDraft.from_order(order)
        assert reopened.items == draft.items
        assert reopened.flat_discount == Decimal('300')
        assert reopened.details['pincode'] == '500001'

    def test_percent_order_ignores_flat_amount(self, order_payload):
        order_payload['discountMode'] = 'PERCENT'
        order = Order()
        OrderDraft.from_payload(order_payload).apply_to(order)

        assert order.discount_mode == 'PERCENT'
        assert order.flat_discount == Decimal('0')
        assert order.total_discount == Decimal('0.00')

    def test_reopened_flat_order_keeps_discount_and_mode(self, order_payload):
        order = Order()
        OrderDraft.from_payload(order_payload).apply_to(order)

        reopened = OrderDraft.from_order(order)
        reopened.merge_payload({'schoolName': 'Renamed School'})
        reopened.apply_to(order)

        assert order.discount_mode == 'FLAT'
        assert order.flat_discount == Decimal('300')
        assert order.net_amount == Decimal('5000.00')
