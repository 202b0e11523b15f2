"""Read-only views over the ledger tables.

Every query raises ``NotFound`` when its result is empty, single-record
lookups included.
"""
from parkpay.errors import NotFound
from parkpay.models import ROLE_ADMIN, SPOT_AVAILABLE
from parkpay.validators import parse_timestamp


def _non_empty(records, msg):
    if not records:
        raise NotFound(msg)
    return records


def get_admins(store):
    return _non_empty(store.users.filter(role=ROLE_ADMIN), 'No admins found')


def get_users(store):
    return _non_empty(store.users.values(), 'No users found')


def get_user_by_id(store, user_id):
    return _non_empty(store.users.get(user_id), 'User not found')


def get_parking_spots(store):
    return _non_empty(store.parking_spots.values(), 'No parking spots found')


def get_parking_spot_by_location(store, location):
    return _non_empty(store.parking_spots.first(location=location), 'Parking spot not found')


def get_available_parking_spots(store):
    spots = store.parking_spots.filter(status=SPOT_AVAILABLE)
    return _non_empty(spots, 'No available parking spots found')


def get_reservations(store):
    return _non_empty(store.reservations.values(), 'No reservations found')


def get_payments(store):
    return _non_empty(store.payments.values(), 'No payments found')


def get_transactions(store):
    return _non_empty(store.transactions.values(), 'No transactions found')


def get_transaction_by_timestamp(store, timestamp):
    timestamp = parse_timestamp(timestamp)
    # several entries may share a clock tick; the first in key order wins
    return _non_empty(store.transactions.first(timestamp=timestamp), 'Transaction not found')


def get_user_transactions(store, user_id):
    entries = store.transactions.filter(user_id=user_id)
    return _non_empty(entries, 'No transactions found for this user')
