"""Balance-moving operations.

These are the only functions that change ``User.balance``. Balances are
integers in the smallest currency unit and never go below zero.
"""
from parkpay.errors import LedgerError, NotFound
from parkpay.models import Transaction
from parkpay.validators import MAX_INTEGER, parse_units

WITHDRAWAL_FEE_PERCENT = 1


def _load_user(store, user_id):
    user = store.users.get(user_id)
    if not user:
        raise NotFound('User not found')
    return user


def _log(store, user_id, kind, amount, fee):
    entry = Transaction(
        id=store.new_id(),
        user_id=user_id,
        amount=str(amount),
        fee=str(fee),
        kind=kind,
        timestamp=store.now(),
    )
    store.transactions.insert(entry)
    return entry


def withdrawal_fee(amount):
    return amount * WITHDRAWAL_FEE_PERCENT // 100


def deposit(store, user_id, amount):
    user = _load_user(store, user_id)
    units = parse_units(amount)
    if not store.credit(user, units, MAX_INTEGER):
        raise LedgerError('Deposit would exceed the maximum balance')
    _log(store, user.id, 'deposit', units, 0)
    store.commit()
    return 'Deposit successful'


def withdraw(store, user_id, amount):
    user = _load_user(store, user_id)
    units = parse_units(amount)
    fee = withdrawal_fee(units)
    # checked against the gross amount; the fee stays in the balance
    if not store.debit(user, units, units - fee):
        raise LedgerError('Insufficient balance')
    _log(store, user.id, 'withdrawal', units, fee)
    store.commit()
    return f'Withdrawal successful. Fee applied: {fee}'


def settle_payment(store, user, amount):
    """Deduct a payment from ``user``. The caller commits."""
    units = parse_units(amount)
    if not store.debit(user, units, units):
        raise LedgerError('Insufficient balance')
    return units
