from functools import wraps

from flask import g, jsonify
from flask_jwt_extended import verify_jwt_in_request

from services.auth_service import AuthService


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        user = AuthService.get_current_user()
        if user is None:
            return jsonify({'error': 'Unauthorized'}), 401
        g.current_user = user
        return fn(*args, **kwargs)

    return wrapper


def roles_required(*roles):
    """Require a signed-in user holding at least one of ``roles``."""
    def decorated(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = AuthService.get_current_user()
            if user is None:
                return jsonify({'error': 'Unauthorized'}), 401
            if not any(AuthService.has_role(user, role) for role in roles):
                return jsonify({'error': 'Forbidden'}), 403
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorated
