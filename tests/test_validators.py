from decimal import Decimal

import pytest

from parkpay.errors import InvalidPayload
from parkpay.validators import (
    format_decimal,
    MAX_INTEGER,
    parse_count,
    parse_timestamp,
    parse_units,
    validate_payment_amount,
    validate_reservation_payload,
    validate_role,
    validate_spot_payload,
    validate_user_payload,
)


@pytest.mark.parametrize('missing', ['username', 'password', 'email'])
def test_user_payload_requires_credentials(missing):
    payload = {'username': 'dana', 'password': 'pw', 'email': 'd@x.test'}
    payload[missing] = ''
    with pytest.raises(InvalidPayload, match='Required fields missing'):
        validate_user_payload(payload)

    del payload[missing]
    with pytest.raises(InvalidPayload):
        validate_user_payload(payload)


def test_user_payload_optional_fields_may_be_absent():
    payload = {'username': 'dana', 'password': 'pw', 'email': 'd@x.test'}
    assert validate_user_payload(payload) is payload


def test_spot_payload_requires_admin_and_location():
    with pytest.raises(InvalidPayload, match='Missing required fields'):
        validate_spot_payload({'admin_id': '', 'location': 'Dock 4', 'price_per_hour': '10'})
    with pytest.raises(InvalidPayload, match='Missing required fields'):
        validate_spot_payload({'admin_id': 'a1', 'location': '  ', 'price_per_hour': '10'})


def test_spot_payload_parses_price_and_count():
    price, spots = validate_spot_payload(
        {'admin_id': 'a1', 'location': 'Dock 4', 'price_per_hour': '2.50', 'number_of_spots': 3})
    assert price == Decimal('2.50')
    assert spots == 3


@pytest.mark.parametrize('price', ['abc', '-1', None, 'NaN'])
def test_spot_payload_rejects_bad_price(price):
    with pytest.raises(InvalidPayload):
        validate_spot_payload({'admin_id': 'a1', 'location': 'Dock 4', 'price_per_hour': price})


@pytest.mark.parametrize('amount', ['0', '-5', 0, '0.00'])
def test_payment_amount_must_be_positive(amount):
    with pytest.raises(InvalidPayload, match='greater than zero'):
        validate_payment_amount(amount)


def test_payment_amount_parses_decimal_text():
    assert validate_payment_amount('20') == Decimal('20')
    assert validate_payment_amount(12.5) == Decimal('12.5')


def test_payment_amount_rejects_non_numbers():
    with pytest.raises(InvalidPayload, match='must be a number'):
        validate_payment_amount('twenty')


def test_parse_units_accepts_whole_amounts_only():
    assert parse_units('30') == 30
    assert parse_units(0) == 0
    assert parse_units('20.00') == 20
    with pytest.raises(InvalidPayload, match='whole number'):
        parse_units('10.5')
    with pytest.raises(InvalidPayload, match='negative'):
        parse_units('-1')


def test_parse_count_rejects_fractions():
    assert parse_count('4', 'duration_hours') == 4
    with pytest.raises(InvalidPayload, match='duration_hours'):
        parse_count('1.5', 'duration_hours')
    with pytest.raises(InvalidPayload):
        parse_count(True, 'duration_hours')


def test_format_decimal_is_plain_text():
    assert format_decimal(Decimal('10') * 2) == '20'
    assert format_decimal(Decimal('10.50') * 3) == '31.5'
    assert format_decimal(Decimal('1E+2')) == '100'
    assert format_decimal(Decimal('0.00')) == '0'


def test_role_accepts_name_or_variant():
    assert validate_role('Admin') == 'Admin'
    assert validate_role({'User': None}) == 'User'
    with pytest.raises(InvalidPayload):
        validate_role('superuser')


@pytest.mark.parametrize('field', ['username', 'password', 'email'])
def test_user_payload_credentials_must_be_text(field):
    payload = {'username': 'dana', 'password': 'pw', 'email': 'd@x.test'}
    payload[field] = 1234
    with pytest.raises(InvalidPayload, match=f'{field} must be a string'):
        validate_user_payload(payload)


def test_user_payload_optional_fields_must_be_text_when_given():
    payload = {'username': 'dana', 'password': 'pw', 'email': 'd@x.test', 'phone_number': 5550100}
    with pytest.raises(InvalidPayload, match='phone_number'):
        validate_user_payload(payload)


def test_spot_payload_admin_id_must_be_text():
    with pytest.raises(InvalidPayload, match='admin_id must be a string'):
        validate_spot_payload({'admin_id': 7, 'location': 'Dock 4', 'price_per_hour': '10'})


def test_reservation_payload_ids_must_be_text():
    with pytest.raises(InvalidPayload, match='spot_id must be a string'):
        validate_reservation_payload({'user_id': 'u1', 'spot_id': ['s1'], 'duration_hours': 2})
    assert validate_reservation_payload({'user_id': 'u1', 'spot_id': 's1', 'duration_hours': 2}) == 2


def test_numbers_wider_than_the_columns_are_rejected():
    assert parse_units(MAX_INTEGER) == MAX_INTEGER
    with pytest.raises(InvalidPayload, match='too large'):
        parse_units(MAX_INTEGER + 1)
    with pytest.raises(InvalidPayload, match='too large'):
        parse_units('1e100000000')
    with pytest.raises(InvalidPayload, match='too large'):
        parse_count('1e20', 'number_of_spots')
    with pytest.raises(InvalidPayload, match='too large'):
        validate_payment_amount('1e30')
    with pytest.raises(InvalidPayload, match='price_per_hour is too large'):
        validate_spot_payload({'admin_id': 'a1', 'location': 'Dock 4', 'price_per_hour': '1e30'})


def test_timestamp_must_fit_the_column():
    assert parse_timestamp(' 42 ') == 42
    with pytest.raises(InvalidPayload, match='integer'):
        parse_timestamp('soon')
    with pytest.raises(InvalidPayload, match='out of range'):
        parse_timestamp('99999999999999999999')
    with pytest.raises(InvalidPayload, match='out of range'):
        parse_timestamp('-1')
