"""Number parsing utilities for form input (quantities, amounts, percentages)."""
import re
from decimal import Decimal, InvalidOperation

from fieldsales.exceptions import ValidationError

QUANTITY_PATTERN = re.compile(r"^\d+$")
DECIMAL_PATTERN = re.compile(r"^-?\d+(?:\.\d+)?$")


def parse_quantity(value, field: str = 'qty') -> int:
    """
    Parse an ordered quantity.

    Form inputs arrive as strings ("2", "", " 3 ") or numbers. Blank and
    None mean "not ordered" and parse to 0.

    Raises:
        ValidationError: negative, fractional or non-numeric input.
    """
    if value is None:
        return 0

    if isinstance(value, bool):
        raise ValidationError('Quantity must be a whole number', field=field)

    if isinstance(value, int):
        qty = value
    elif isinstance(value, (float, Decimal)):
        if not Decimal(str(value)).is_finite() or value != int(value):
            raise ValidationError('Quantity must be a whole number', field=field)
        qty = int(value)
    else:
        cleaned = str(value).strip()
        if not cleaned:
            return 0
        if cleaned.startswith('-') and QUANTITY_PATTERN.match(cleaned[1:]):
            raise ValidationError('Quantity cannot be negative', field=field)
        if not QUANTITY_PATTERN.match(cleaned):
            raise ValidationError('Quantity must be a whole number', field=field)
        qty = int(cleaned)

    if qty < 0:
        raise ValidationError('Quantity cannot be negative', field=field)

    return qty


def parse_decimal(value, field: str, allow_blank: bool = True) -> Decimal:
    """
    Parse an amount or percentage into a Decimal.

    Floats are converted through str() so 0.1 stays 0.1.

    Raises:
        ValidationError: if the value is not a plain decimal number.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if allow_blank:
            return Decimal('0')
        raise ValidationError(f'{field} is required', field=field)

    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number', field=field)

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f'{field} must be a number', field=field)
        return value

    if isinstance(value, (int, float)):
        result = Decimal(str(value))
        if not result.is_finite():
            raise ValidationError(f'{field} must be a number', field=field)
        return result

    cleaned = str(value).strip().rstrip('%').strip()
    if not DECIMAL_PATTERN.match(cleaned):
        raise ValidationError(f'{field} must be a number', field=field)

    try:
        return Decimal(cleaned)
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number', field=field)
