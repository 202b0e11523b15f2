from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

ROLE_USER = 'User'
ROLE_ADMIN = 'Admin'
ROLES = (ROLE_USER, ROLE_ADMIN)

SPOT_AVAILABLE = 'Available'
SPOT_OCCUPIED = 'Occupied'


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(36), primary_key=True)
    username = db.Column(db.String(80), nullable=False)
    password = db.Column(db.String(255), nullable=False)  # werkzeug hash
    role = db.Column(db.String(10), nullable=False, default=ROLE_USER)
    email = db.Column(db.String(120), nullable=False)
    phone_number = db.Column(db.String(20), nullable=False, default='')
    first_name = db.Column(db.String(80), nullable=False, default='')
    last_name = db.Column(db.String(80), nullable=False, default='')
    balance = db.Column(db.BigInteger, nullable=False, default=0)
    created_at = db.Column(db.BigInteger, nullable=False)


class ParkingSpot(db.Model):
    __tablename__ = 'parking_spots'
    id = db.Column(db.String(36), primary_key=True)
    # Owning admin; not a foreign key, the id is recorded as given
    admin_id = db.Column(db.String(36), nullable=False)
    location = db.Column(db.String(200), nullable=False, index=True)
    status = db.Column(db.String(10), nullable=False, default=SPOT_AVAILABLE)
    price_per_hour = db.Column(db.String(40), nullable=False)
    number_of_spots = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.BigInteger, nullable=False)


class Reservation(db.Model):
    __tablename__ = 'reservations'
    id = db.Column(db.String(36), primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    spot_id = db.Column(db.String(36), db.ForeignKey('parking_spots.id'), nullable=False)
    reserved_at = db.Column(db.BigInteger, nullable=False)
    duration_hours = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='reserved')
    amount_payable = db.Column(db.String(40), nullable=False)
    created_at = db.Column(db.BigInteger, nullable=False)


class Payment(db.Model):
    __tablename__ = 'payments'
    id = db.Column(db.String(36), primary_key=True)
    reservation_id = db.Column(db.String(36), db.ForeignKey('reservations.id'), nullable=False)
    amount = db.Column(db.String(40), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='completed')
    created_at = db.Column(db.BigInteger, nullable=False)


class Transaction(db.Model):
    __tablename__ = 'transactions'
    id = db.Column(db.String(36), primary_key=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    amount = db.Column(db.String(40), nullable=False)
    fee = db.Column(db.String(40), nullable=False, default='0')
    kind = db.Column(db.String(10), nullable=False)  # deposit | withdrawal
    timestamp = db.Column(db.BigInteger, nullable=False, index=True)
