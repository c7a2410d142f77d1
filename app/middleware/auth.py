from functools import wraps
from flask import request, jsonify
from app.utils.security import verify_token
from app.utils.logger import get_logger

logger = get_logger(__name__)


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # Get token from Authorization header
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Authorization header missing'}), 401

        # Check format
        parts = auth_header.split()
        if len(parts) != 2 or parts[0] != 'Bearer':
            return jsonify({'error': 'Invalid authorization header format'}), 401

        # Verify token
        payload = verify_token(parts[1])
        if not payload or 'user_id' not in payload:
            return jsonify({'error': 'Invalid or expired token'}), 401

        # Add user info to kwargs
        return f(current_user=payload, *args, **kwargs)

    return decorated_function


def require_role(allowed_roles):
    """Decorator to require specific roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(current_user, *args, **kwargs):
            if not current_user.get('role'):
                return jsonify({'error': 'Forbidden: role not set for this user'}), 403
            if current_user['role'] not in allowed_roles:
                logger.warning(f"User {current_user.get('user_id')} with role "
                               f"{current_user['role']} denied access to {request.path}")
                return jsonify({'error': 'Forbidden: you do not have permission to access this resource'}), 403
            return f(current_user, *args, **kwargs)
        return decorated_function
    return decorator


def require_instructor(f):
    """Decorator to require instructor role"""
    return require_role(['instructor'])(f)


def require_student(f):
    """Decorator to require student role"""
    return require_role(['student'])(f)
