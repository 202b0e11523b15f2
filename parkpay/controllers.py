from flask import g, request
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required
from flask_restful import Resource
from sqlalchemy.exc import SQLAlchemyError

from parkpay import accounts, parking, queries, users
from parkpay.auth import admin_required
from parkpay.cache import ListingCache, count_event
from parkpay.errors import InvalidPayload, ParkPayError
from parkpay.models import db
from parkpay.store import get_store

# spot listings go stale quickly, keep them for 10 seconds only
spot_listings = ListingCache('parking_spots', ttl=10)


def user_json(user):
    return {
        'id': user.id,
        'username': user.username,
        'role': user.role,
        'email': user.email,
        'phone_number': user.phone_number,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'balance': user.balance,
        'created_at': user.created_at,
    }


def spot_json(spot):
    return {
        'id': spot.id,
        'admin_id': spot.admin_id,
        'location': spot.location,
        'status': spot.status,
        'price_per_hour': spot.price_per_hour,
        'number_of_spots': spot.number_of_spots,
        'created_at': spot.created_at,
    }


def reservation_json(reservation):
    return {
        'id': reservation.id,
        'user_id': reservation.user_id,
        'spot_id': reservation.spot_id,
        'reserved_at': reservation.reserved_at,
        'duration_hours': reservation.duration_hours,
        'status': reservation.status,
        'amount_payable': reservation.amount_payable,
        'created_at': reservation.created_at,
    }


def payment_json(payment):
    return {
        'id': payment.id,
        'reservation_id': payment.reservation_id,
        'amount': payment.amount,
        'status': payment.status,
        'created_at': payment.created_at,
    }


def transaction_json(entry):
    return {
        'id': entry.id,
        'user_id': entry.user_id,
        'kind': entry.kind,
        'amount': entry.amount,
        'fee': entry.fee,
        'timestamp': entry.timestamp,
    }


def get_payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidPayload('Request body must be a JSON object')
    return data


def database_error(action, e):
    db.session.rollback()
    print(f"❌ {action} failed: {e}")
    return {'msg': f'Error {action}', 'error': str(e)}, 500


class UserResource(Resource):

    def get(self, user_id=None):
        store = get_store()
        try:
            if user_id:
                user = queries.get_user_by_id(store, user_id)
                return {'msg': 'User found', 'user': user_json(user)}, 200
            found = queries.get_users(store)
        except ParkPayError as e:
            return e.to_response()
        return {'msg': 'Users retrieved successfully', 'users': [user_json(u) for u in found]}, 200

    def post(self):
        try:
            user = users.create_user(get_store(), get_payload())
        except ParkPayError as e:
            return e.to_response()
        except SQLAlchemyError as e:
            return database_error('creating user', e)

        count_event('users_created')
        return {'msg': 'User created successfully', 'user': user_json(user)}, 201


class AdminResource(Resource):

    def get(self):
        try:
            admins = queries.get_admins(get_store())
        except ParkPayError as e:
            return e.to_response()
        return {'msg': 'Admins retrieved successfully', 'admins': [user_json(u) for u in admins]}, 200

    @admin_required(bootstrap=True)
    def post(self):
        try:
            admin = users.create_admin(get_store(), get_payload())
        except ParkPayError as e:
            return e.to_response()
        except SQLAlchemyError as e:
            return database_error('creating admin', e)

        count_event('users_created')
        return {'msg': 'Admin created successfully', 'user': user_json(admin)}, 201


class UserRoleResource(Resource):

    @admin_required()
    def put(self, user_id):
        try:
            data = get_payload()
            user = users.change_user_role(get_store(), user_id, data.get('role'))
        except ParkPayError as e:
            return e.to_response()
        except SQLAlchemyError as e:
            return database_error('changing user role', e)
        return {'msg': 'User role updated successfully', 'user': user_json(user)}, 200


class UserTransactionsResource(Resource):

    def get(self, user_id):
        try:
            entries = queries.get_user_transactions(get_store(), user_id)
        except ParkPayError as e:
            return e.to_response()
        return {
            'msg': 'User transactions retrieved successfully',
            'transactions': [transaction_json(t) for t in entries]
        }, 200


class ParkingSpotResource(Resource):

    def get(self):
        cached = spot_listings.load('all')
        if cached:
            return cached, 200

        try:
            spots = queries.get_parking_spots(get_store())
        except ParkPayError as e:
            return e.to_response()

        response_data = {'msg': 'Parking spots retrieved successfully', 'spots': [spot_json(s) for s in spots]}
        spot_listings.save('all', response_data)
        return response_data, 200

    @admin_required()
    def post(self):
        try:
            data = get_payload()
            # the authorized admin owns the spot unless one is named
            if not data.get('admin_id') and g.current_user:
                data['admin_id'] = g.current_user.id
            spot = parking.create_parking_spot(get_store(), data)
        except ParkPayError as e:
            return e.to_response()
        except SQLAlchemyError as e:
            return database_error('creating parking spot', e)

        spot_listings.invalidate()
        count_event('parking_spots_created')
        return {'msg': 'Parking spot created successfully', 'spot': spot_json(spot)}, 201


class AvailableSpotsResource(Resource):

    def get(self):
        cached = spot_listings.load('available')
        if cached:
            return cached, 200

        try:
            spots = queries.get_available_parking_spots(get_store())
        except ParkPayError as e:
            return e.to_response()
        response_data = {
            'msg': 'Available spots retrieved successfully',
            'spots': [spot_json(s) for s in spots],
            'count': len(spots)
        }
        spot_listings.save('available', response_data)
        return response_data, 200


class SpotByLocationResource(Resource):

    def get(self, location):
        query = f'location:{location}'
        cached = spot_listings.load(query)
        if cached:
            return cached, 200

        try:
            spot = queries.get_parking_spot_by_location(get_store(), location)
        except ParkPayError as e:
            return e.to_response()
        response_data = {'msg': 'Parking spot found', 'spot': spot_json(spot)}
        spot_listings.save(query, response_data)
        return response_data, 200


class ReservationResource(Resource):

    def get(self):
        try:
            found = queries.get_reservations(get_store())
        except ParkPayError as e:
            return e.to_response()
        return {
            'msg': 'Reservations retrieved successfully',
            'reservations': [reservation_json(r) for r in found]
        }, 200

    def post(self):
        try:
            reservation = parking.create_reservation(get_store(), get_payload())
        except ParkPayError as e:
            return e.to_response()
        except SQLAlchemyError as e:
            return database_error('creating reservation', e)

        count_event('reservations_created')
        return {'msg': 'Reservation created successfully', 'reservation': reservation_json(reservation)}, 201


class PaymentResource(Resource):

    def get(self):
        try:
            found = queries.get_payments(get_store())
        except ParkPayError as e:
            return e.to_response()
        return {'msg': 'Payments retrieved successfully', 'payments': [payment_json(p) for p in found]}, 200

    def post(self):
        try:
            payment = parking.create_payment(get_store(), get_payload())
        except ParkPayError as e:
            return e.to_response()
        except SQLAlchemyError as e:
            return database_error('creating payment', e)

        count_event('payments_completed')
        return {'msg': 'Payment completed successfully', 'payment': payment_json(payment)}, 201


class AccountResource(Resource):

    def post(self, action):
        """Handle balance operations"""
        if action == 'deposit':
            operation, counter = accounts.deposit, 'deposits'
        elif action == 'withdraw':
            operation, counter = accounts.withdraw, 'withdrawals'
        else:
            return {'msg': 'Invalid action', 'kind': InvalidPayload.kind}, 400

        try:
            data = get_payload()
            message = operation(get_store(), data.get('user_id'), data.get('amount'))
        except ParkPayError as e:
            return e.to_response()
        except SQLAlchemyError as e:
            return database_error(f'processing {action}', e)

        count_event(counter)
        return {'msg': message, 'kind': 'Success'}, 200


class TransactionResource(Resource):

    def get(self, timestamp=None):
        store = get_store()
        try:
            if timestamp is not None:
                entry = queries.get_transaction_by_timestamp(store, timestamp)
                return {'msg': 'Transaction found', 'transaction': transaction_json(entry)}, 200
            entries = queries.get_transactions(store)
        except ParkPayError as e:
            return e.to_response()
        return {
            'msg': 'Transactions retrieved successfully',
            'transactions': [transaction_json(t) for t in entries]
        }, 200


class LoginResource(Resource):

    def post(self):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        login = data.get('username') or data.get('email')
        password = data.get('password')

        if not login or not password:
            return {'msg': 'Please provide username or email and password', 'kind': InvalidPayload.kind}, 400

        user = users.authenticate(get_store(), login, password)
        if not user:
            return {'msg': 'Invalid credentials'}, 401

        access_token = create_access_token(identity=user.id)
        return {'msg': 'Login successful', 'token': access_token, 'user': user_json(user)}, 200


class TasksResource(Resource):

    @jwt_required()
    def post(self, task_type):
        """Trigger Celery tasks"""
        user = get_store().users.get(get_jwt_identity())
        if not user:
            return {'msg': 'User not found', 'kind': 'NotFound'}, 404

        if task_type != 'export-transactions':
            return {'msg': 'Invalid task type', 'kind': InvalidPayload.kind}, 400

        from parkpay.tasks import export_user_transactions_csv
        task = export_user_transactions_csv.delay(user.id)
        return {
            'msg': 'Statement export started successfully',
            'task_id': task.id,
            'status': 'processing'
        }, 202


class TaskStatusResource(Resource):

    @jwt_required()
    def get(self, task_id):
        """Get task status"""
        from celery.result import AsyncResult
        from parkpay.celery_app import celery

        task_result = AsyncResult(task_id, app=celery)
        if task_result.state == 'PENDING':
            response = {'state': task_result.state, 'status': 'Task is waiting to be processed'}
        elif task_result.state == 'SUCCESS':
            response = {
                'state': task_result.state,
                'status': 'Task completed successfully',
                'result': task_result.result
            }
        elif task_result.state == 'FAILURE':
            response = {'state': task_result.state, 'status': 'Task failed', 'error': str(task_result.info)}
        else:
            response = {'state': task_result.state, 'status': 'Task is being processed'}
        return response, 200
