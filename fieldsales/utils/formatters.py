"""
Formatting helpers for API payloads and the invoice PDF.

Amounts are stored as Decimal and leave the server as strings with exactly
two decimals ("5300.00"). The PDF uses Indian digit grouping (1,23,456.00).
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional

CENT = Decimal('0.01')


def to_money(value: Union[int, float, Decimal, str, None]) -> Decimal:
    """Round a value to paise using half-up rounding."""
    if value is None or value == "":
        return Decimal('0.00')
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def money(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Storage/display string with two decimals.

    Examples:
        money(5300) -> "5300.00"
        money(Decimal('0.005')) -> "0.01"
        money(None) -> "0.00"
    """
    try:
        return f"{to_money(value):.2f}"
    except (InvalidOperation, ValueError, TypeError):
        return "0.00"


def money_in(value: Union[int, float, Decimal, str, None], symbol: str = 'Rs. ') -> str:
    """
    Indian-style grouping: last three digits, then groups of two.

    Examples:
        money_in(5300) -> "Rs. 5,300.00"
        money_in(1234567.5) -> "Rs. 12,34,567.50"
        money_in(-950) -> "-Rs. 950.00"
    """
    amount = money(value)
    sign = ''
    if amount.startswith('-'):
        sign = '-'
        amount = amount[1:]

    integer_part, decimal_part = amount.split('.')
    if len(integer_part) > 3:
        head, tail = integer_part[:-3], integer_part[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        integer_part = ','.join(groups + [tail])

    return f"{sign}{symbol}{integer_part}.{decimal_part}"


def date_in(value: Optional[Union[date, datetime]]) -> str:
    """Format a date as dd/mm/yyyy ("-" when missing)."""
    if not value:
        return "-"
    return value.strftime('%d/%m/%Y')


def iso_date(value: Optional[Union[date, datetime]]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()
