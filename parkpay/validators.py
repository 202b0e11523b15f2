"""Payload checks and money parsing shared by the ledger operations.

All functions here are pure: they read their arguments, raise
``InvalidPayload`` on bad input and return parsed values otherwise.
"""
from decimal import Decimal, InvalidOperation

from parkpay.errors import InvalidPayload
from parkpay.models import ROLES

# widest value the integer columns hold
MAX_INTEGER = 2 ** 63 - 1


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _require_text(payload, fields, msg):
    if not payload or any(_blank(payload.get(f)) for f in fields):
        raise InvalidPayload(msg)
    for field in fields:
        if not isinstance(payload[field], str):
            raise InvalidPayload(f'{field} must be a string')


def _bounded(number, field):
    if number > MAX_INTEGER:
        raise InvalidPayload(f'{field} is too large')
    return number


def parse_decimal(value, field='amount'):
    if isinstance(value, bool) or value is None:
        raise InvalidPayload(f'{field} must be a number')
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidPayload(f'{field} must be a number')
    if not number.is_finite():
        raise InvalidPayload(f'{field} must be a number')
    return number


def parse_count(value, field):
    """Non-negative integer such as a spot count or a duration in hours."""
    number = parse_decimal(value, field)
    if number < 0 or number != number.to_integral_value():
        raise InvalidPayload(f'{field} must be a non-negative integer')
    return int(_bounded(number, field))


def parse_units(value, field='amount'):
    """Whole, non-negative amount in the smallest currency unit."""
    number = parse_decimal(value, field)
    if number < 0:
        raise InvalidPayload(f'{field} must not be negative')
    if number != number.to_integral_value():
        raise InvalidPayload(f'{field} must be a whole number of currency units')
    return int(_bounded(number, field))


def parse_timestamp(value):
    try:
        timestamp = int(str(value).strip())
    except ValueError:
        raise InvalidPayload('Timestamp must be an integer')
    if not 0 <= timestamp <= MAX_INTEGER:
        raise InvalidPayload('Timestamp is out of range')
    return timestamp


def format_decimal(value):
    """Plain decimal text without exponent or trailing zeros ("20", "31.5")."""
    return format(value.normalize(), 'f')


def validate_user_payload(payload):
    _require_text(payload, ('username', 'password', 'email'), 'Required fields missing')
    for field in ('phone_number', 'first_name', 'last_name'):
        if payload.get(field) is not None and not isinstance(payload[field], str):
            raise InvalidPayload(f'{field} must be a string')
    return payload


def validate_spot_payload(payload):
    _require_text(payload, ('admin_id', 'location'), 'Missing required fields')
    price = parse_decimal(payload.get('price_per_hour'), 'price_per_hour')
    if price < 0:
        raise InvalidPayload('price_per_hour must not be negative')
    spots = parse_count(payload.get('number_of_spots', 0), 'number_of_spots')
    return _bounded(price, 'price_per_hour'), spots


def validate_reservation_payload(payload):
    _require_text(payload, ('user_id', 'spot_id'), 'Missing required fields')
    return parse_count(payload.get('duration_hours'), 'duration_hours')


def validate_payment_amount(amount):
    number = parse_decimal(amount)
    if number <= 0:
        raise InvalidPayload('Amount must be greater than zero')
    return _bounded(number, 'amount')


def validate_role(role):
    # variant form: {"Admin": null}
    if isinstance(role, dict) and len(role) == 1:
        role = next(iter(role))
    if role not in ROLES:
        raise InvalidPayload(f'Role must be one of: {", ".join(ROLES)}')
    return role
