from werkzeug.security import check_password_hash, generate_password_hash

from parkpay.errors import InvalidPayload, NotFound
from parkpay.models import ROLE_ADMIN, ROLE_USER, User
from parkpay.validators import validate_role, validate_user_payload


def _text(payload, key):
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ''


def _register(store, payload, role):
    validate_user_payload(payload)
    username = _text(payload, 'username')
    email = _text(payload, 'email').lower()
    if store.users.first(username=username):
        raise InvalidPayload(f'Username {username} already exists')
    if store.users.first(email=email):
        raise InvalidPayload(f'User with email {email} already exists')

    user = User(
        id=store.new_id(),
        username=username,
        password=generate_password_hash(payload['password']),
        role=role,
        email=email,
        phone_number=_text(payload, 'phone_number'),
        first_name=_text(payload, 'first_name'),
        last_name=_text(payload, 'last_name'),
        balance=0,
        created_at=store.now(),
    )
    store.users.insert(user)
    store.commit()
    return user


def create_user(store, payload):
    return _register(store, payload, ROLE_USER)


def create_admin(store, payload):
    return _register(store, payload, ROLE_ADMIN)


def has_admin(store):
    return store.users.count(role=ROLE_ADMIN) > 0


def change_user_role(store, user_id, role):
    """Overwrite a user's role. Callers gate this behind the admin check."""
    role = validate_role(role)
    user = store.users.get(user_id)
    if not user:
        raise NotFound('User not found')
    user.role = role
    store.commit()
    return user


def authenticate(store, login, password):
    """Return the user matching username or email and password, else None."""
    if not isinstance(login, str) or not isinstance(password, str):
        return None
    login = login.strip()
    if not login or not password:
        return None
    user = store.users.first(username=login) or store.users.first(email=login.lower())
    if user and check_password_hash(user.password, password):
        return user
    return None
