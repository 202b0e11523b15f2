from parkpay.accounts import settle_payment
from parkpay.errors import InvalidPayload, NotFound
from parkpay.models import SPOT_AVAILABLE, ParkingSpot, Payment, Reservation
from parkpay.validators import (
    format_decimal,
    parse_decimal,
    validate_payment_amount,
    validate_reservation_payload,
    validate_spot_payload,
)


def create_parking_spot(store, payload):
    price, spots = validate_spot_payload(payload)
    now = store.now()
    spot = ParkingSpot(
        id=store.new_id(),
        admin_id=payload['admin_id'].strip(),
        location=payload['location'].strip(),
        status=SPOT_AVAILABLE,
        price_per_hour=format_decimal(price),
        number_of_spots=spots,
        created_at=now,
    )
    store.parking_spots.insert(spot)
    store.commit()
    return spot


def create_reservation(store, payload):
    """Reserve a spot and fix its payable amount.

    Capacity is only checked, never decremented, and the spot keeps its
    status.
    """
    duration = validate_reservation_payload(payload)
    user = store.users.get(payload['user_id'])
    if not user:
        raise NotFound('User not found')
    spot = store.parking_spots.get(payload['spot_id'])
    if not spot:
        raise NotFound('Parking spot not found')
    if spot.number_of_spots == 0:
        raise InvalidPayload('No available parking spots')

    amount_payable = parse_decimal(spot.price_per_hour, 'price_per_hour') * duration
    now = store.now()
    reservation = Reservation(
        id=store.new_id(),
        user_id=user.id,
        spot_id=spot.id,
        reserved_at=now,
        duration_hours=duration,
        status='reserved',
        amount_payable=format_decimal(amount_payable),
        created_at=now,
    )
    store.reservations.insert(reservation)
    store.commit()
    return reservation


def create_payment(store, payload):
    """Settle a reservation from the reserving user's balance.

    The amount must equal the reservation's payable amount exactly. The
    reservation record itself is left as it was.
    """
    payload = payload or {}
    amount = validate_payment_amount(payload.get('amount'))
    reservation = store.reservations.get(payload.get('reservation_id'))
    if not reservation:
        raise NotFound('Reservation not found')
    if parse_decimal(reservation.amount_payable) != amount:
        raise InvalidPayload('Amount does not match the amount payable')
    user = store.users.get(reservation.user_id)
    if not user:
        raise NotFound('User not found')

    settle_payment(store, user, amount)
    payment = Payment(
        id=store.new_id(),
        reservation_id=reservation.id,
        amount=format_decimal(amount),
        status='completed',
        created_at=store.now(),
    )
    store.payments.insert(payment)
    store.commit()
    return payment
