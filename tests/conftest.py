import pytest

from parkpay import users
from parkpay.app import create_app
from parkpay.models import db
from parkpay.store import LedgerStore

ADMIN = {'username': 'admin', 'password': 'Admin@123', 'email': 'admin@parkpay.test'}


class StepClock:
    """Deterministic clock advancing a fixed number of nanoseconds per read."""

    def __init__(self, start=1_700_000_000_000_000_000, step=1_000):
        self.current = start
        self.step = step

    def now(self):
        self.current += self.step
        return self.current


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def app(clock, tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'JWT_SECRET_KEY': 'parkpay-test-secret-key-with-enough-bytes',
        'REDIS_ENABLED': False,
        'CELERY_BROKER_URL': 'memory://',
        'CELERY_RESULT_BACKEND': 'cache+memory://',
        'CELERY_TASK_ALWAYS_EAGER': True,
        'EXPORT_DIR': str(tmp_path / 'exports'),
        'LEDGER_CLOCK': clock,
        'DEFAULT_ADMIN_USERNAME': None,
        'DEFAULT_ADMIN_PASSWORD': None,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app, clock):
    return LedgerStore(db.session, clock)


@pytest.fixture
def make_user(store):
    counter = iter(range(1, 1000))

    def _make(admin=False, **overrides):
        n = next(counter)
        payload = {
            'username': f'driver{n}',
            'password': 'secret',
            'email': f'driver{n}@parkpay.test',
            'phone_number': '555-0100',
            'first_name': 'Dana',
            'last_name': 'Driver',
        }
        payload.update(overrides)
        if admin:
            return users.create_admin(store, payload)
        return users.create_user(store, payload)

    return _make


@pytest.fixture
def admin_headers(client):
    r = client.post('/admins', json=ADMIN)
    assert r.status_code == 201
    login = client.post('/auth/login', json={'username': ADMIN['username'], 'password': ADMIN['password']})
    assert login.status_code == 200
    return {'Authorization': f"Bearer {login.get_json()['token']}"}
