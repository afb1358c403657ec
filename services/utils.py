# services/utils.py

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import uuid

from services.exceptions import NotFound, ValidationError

CURRENCY_SYMBOL = 'Le'
TWO_PLACES = Decimal('0.01')


def to_money(value, field='amount'):
    """Parse a price/amount into a two-place Decimal, rejecting negatives."""
    try:
        amount = Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def format_price(amount):
    """Leone amounts are shown without decimals, e.g. ``Le 12,500``."""
    return f"{CURRENCY_SYMBOL} {Decimal(str(amount)).quantize(Decimal('1'), rounding=ROUND_HALF_UP):,}"


def format_price_with_decimals(amount):
    return f"{CURRENCY_SYMBOL} {Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP):,}"


def parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 't', 'yes', 'on')


def parse_uuid(value, label='Record'):
    """Parse a path/body id; malformed ids are reported as missing records."""
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise NotFound(f'{label} not found')
