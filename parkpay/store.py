"""Ledger store: the five persistent tables behind every operation.

A ``LedgerStore`` is built per request around the SQLAlchemy session and
passed to the operations explicitly. It also owns the clock and the id
generator so tests can pin both.
"""
import threading
import time
import uuid

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from parkpay.models import Payment, ParkingSpot, Reservation, Transaction, User, db


class MonotonicClock:
    """Nanosecond wall clock that never goes backwards within a process."""

    def __init__(self, source=time.time_ns):
        self._source = source
        self._last = 0
        self._lock = threading.Lock()

    def now(self):
        with self._lock:
            current = self._source()
            if current < self._last:
                current = self._last
            self._last = current
            return current


def new_id():
    return str(uuid.uuid4())


class Table:
    """Key-value view over one model, keyed by its string primary key."""

    def __init__(self, session, model, order_by):
        self.session = session
        self.model = model
        self.order_by = order_by

    def get(self, key):
        if not key:
            return None
        return self.session.get(self.model, key)

    def insert(self, record):
        self.session.add(record)
        return record

    def values(self):
        return self.model.query.order_by(*self.order_by).all()

    def filter(self, **criteria):
        return self.model.query.filter_by(**criteria).order_by(*self.order_by).all()

    def first(self, **criteria):
        return self.model.query.filter_by(**criteria).order_by(*self.order_by).first()

    def count(self, **criteria):
        return self.model.query.filter_by(**criteria).count()


class LedgerStore:

    def __init__(self, session, clock=None, id_factory=new_id):
        self.session = session
        self.clock = clock or MonotonicClock()
        self.new_id = id_factory
        self.users = Table(session, User, (User.created_at, User.id))
        self.parking_spots = Table(session, ParkingSpot, (ParkingSpot.created_at, ParkingSpot.id))
        self.reservations = Table(session, Reservation, (Reservation.created_at, Reservation.id))
        self.payments = Table(session, Payment, (Payment.created_at, Payment.id))
        self.transactions = Table(session, Transaction, (Transaction.timestamp, Transaction.id))

    def now(self):
        return self.clock.now()

    def credit(self, user, units, ceiling):
        """Add to a balance in one statement; False when it would pass ``ceiling``."""
        changed = (
            self.session.query(User)
            .filter(User.id == user.id, User.balance <= ceiling - units)
            .update({User.balance: User.balance + units}, synchronize_session=False)
        )
        self.session.expire(user, ['balance'])
        return changed == 1

    def debit(self, user, required, units):
        """Take ``units`` from a balance holding at least ``required``.

        Check and deduction run as one UPDATE, so two overlapping requests
        cannot both spend the same funds.
        """
        changed = (
            self.session.query(User)
            .filter(User.id == user.id, User.balance >= required)
            .update({User.balance: User.balance - units}, synchronize_session=False)
        )
        self.session.expire(user, ['balance'])
        return changed == 1

    def commit(self):
        """Commit the unit of work; roll back and re-raise on database faults."""
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise


def get_store():
    """Ledger store bound to the current request's session."""
    return LedgerStore(db.session, current_app.ledger_clock)
