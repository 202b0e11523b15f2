from functools import wraps

from flask import current_app, g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from parkpay.errors import Forbidden
from parkpay.models import ROLE_ADMIN
from parkpay.store import get_store
from parkpay.users import has_admin


def admin_required(bootstrap=False):
    """Role-check hook for admin-only resources.

    The bearer token must belong to an Admin. With ``bootstrap`` the check is
    skipped while no admin exists yet, so the first admin can be created.
    ``ADMIN_GUARD_ENABLED = False`` turns the hook into a pass-through.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = None
            if not current_app.config.get('ADMIN_GUARD_ENABLED', True):
                return fn(*args, **kwargs)

            store = get_store()
            if bootstrap and not has_admin(store):
                return fn(*args, **kwargs)

            verify_jwt_in_request(optional=True)
            identity = get_jwt_identity()
            if not identity:
                return {'msg': 'Admin authorization required', 'kind': Forbidden.kind}, 401

            user = store.users.get(identity)
            if not user or user.role != ROLE_ADMIN:
                return Forbidden('Access denied. Admin only.').to_response()

            g.current_user = user
            return fn(*args, **kwargs)
        return wrapper
    return decorator
