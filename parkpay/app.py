from flask import Flask
from flask_restful import Api
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from datetime import timedelta
from redis.exceptions import RedisError
from werkzeug.security import generate_password_hash
import os
from dotenv import load_dotenv

from parkpay.cache import connect_redis, get_redis_client, count_event, read_counters
from parkpay.celery_app import init_celery
from parkpay.controllers import (
    UserResource,
    AdminResource,
    UserRoleResource,
    UserTransactionsResource,
    ParkingSpotResource,
    AvailableSpotsResource,
    SpotByLocationResource,
    ReservationResource,
    PaymentResource,
    AccountResource,
    TransactionResource,
    LoginResource,
    TasksResource,
    TaskStatusResource,
)
from parkpay.models import ROLE_ADMIN, User, db
from parkpay.store import MonotonicClock, LedgerStore, new_id

# Load environment variables
load_dotenv()


def _env_flag(name, default):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def default_config():
    return {
        'SQLALCHEMY_DATABASE_URI': os.getenv('DATABASE_URL', 'sqlite:///parkpay.db'),
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'change-me'),
        'JWT_ACCESS_TOKEN_EXPIRES': timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_HOURS', 12))),
        # JWT errors must reach flask_jwt_extended's handlers through flask_restful
        'PROPAGATE_EXCEPTIONS': True,
        'REDIS_ENABLED': _env_flag('REDIS_ENABLED', 'true'),
        'REDIS_URL': os.getenv('REDIS_URL', 'redis://localhost:6379/0'),
        'CELERY_BROKER_URL': os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0'),
        'CELERY_RESULT_BACKEND': os.getenv('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0'),
        'CELERY_TASK_ALWAYS_EAGER': _env_flag('CELERY_TASK_ALWAYS_EAGER', 'false'),
        'CORS_ORIGINS': os.getenv('CORS_ORIGINS', 'http://localhost:5173').split(','),
        'EXPORT_DIR': os.getenv('EXPORT_DIR', os.path.join(os.getcwd(), 'exports')),
        'ADMIN_GUARD_ENABLED': _env_flag('ADMIN_GUARD_ENABLED', 'true'),
        'DEFAULT_ADMIN_USERNAME': os.getenv('DEFAULT_ADMIN_USERNAME'),
        'DEFAULT_ADMIN_PASSWORD': os.getenv('DEFAULT_ADMIN_PASSWORD'),
        'DEFAULT_ADMIN_EMAIL': os.getenv('DEFAULT_ADMIN_EMAIL'),
    }


def register_resources(api):
    #endpoints for users and admins
    api.add_resource(UserResource, '/users', '/users/<user_id>')
    api.add_resource(UserRoleResource, '/users/<user_id>/role')
    api.add_resource(UserTransactionsResource, '/users/<user_id>/transactions')
    api.add_resource(AdminResource, '/admins')
    api.add_resource(LoginResource, '/auth/login')

    #endpoints for parking spots
    api.add_resource(ParkingSpotResource, '/parking-spots')
    api.add_resource(AvailableSpotsResource, '/parking-spots/available')
    api.add_resource(SpotByLocationResource, '/parking-spots/location/<path:location>')

    #endpoints for reservations and payments
    api.add_resource(ReservationResource, '/reservations')
    api.add_resource(PaymentResource, '/payments')

    #endpoints for balances and the transaction log
    api.add_resource(AccountResource, '/accounts/<action>')
    api.add_resource(TransactionResource, '/transactions', '/transactions/<timestamp>')

    #endpoints for Celery tasks
    api.add_resource(TasksResource, '/tasks/<task_type>')
    api.add_resource(TaskStatusResource, '/tasks/<task_id>/status')


def seed_admin(app):
    """Create the configured default admin if it does not exist yet."""
    username = app.config.get('DEFAULT_ADMIN_USERNAME')
    password = app.config.get('DEFAULT_ADMIN_PASSWORD')
    if not username or not password:
        return None

    store = LedgerStore(db.session, app.ledger_clock)
    admin = store.users.first(username=username)
    if admin:
        print("✅ Admin user already exists")
        return admin

    admin = User(
        id=new_id(),
        username=username,
        password=generate_password_hash(password),
        role=ROLE_ADMIN,
        email=(app.config.get('DEFAULT_ADMIN_EMAIL') or f'{username}@parkpay.local').lower(),
        balance=0,
        created_at=store.now(),
    )
    store.users.insert(admin)
    store.commit()
    print("✅ Admin user created successfully")
    return admin


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.update(default_config())
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    JWTManager(app)
    api = Api(app)
    register_resources(api)
    CORS(app, origins=app.config['CORS_ORIGINS'])

    app.ledger_clock = app.config.get('LEDGER_CLOCK') or MonotonicClock()
    app.redis_client = connect_redis(app.config['REDIS_URL']) if app.config['REDIS_ENABLED'] else None

    init_celery(app)

    # Middleware to track API calls and response codes
    @app.before_request
    def before_request():
        count_event('total_api_calls')

    @app.after_request
    def after_request(response):
        count_event(f'response_codes:{response.status_code}')
        return response

    @app.route('/', methods=['GET'])
    def home():
        return {'msg': 'parkpay is running'}, 200

    @app.route('/health/redis', methods=['GET'])
    def redis_health():
        """Check Redis connection health"""
        redis_client = get_redis_client()
        if not redis_client:
            return {'msg': 'Redis not configured'}, 503
        try:
            redis_client.ping()
            return {'msg': 'Redis is healthy', 'stats': {'status': 'connected', **read_counters()}}, 200
        except RedisError as e:
            return {'msg': 'Redis connection failed', 'error': str(e)}, 500

    with app.app_context():
        db.create_all()
        seed_admin(app)

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
