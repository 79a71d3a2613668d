# backend/qr_attendance/utils/decorators.py
"""Custom decorators for role-based authorization."""
from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from qr_attendance.models.user import User, UserRole
from qr_attendance.utils.helpers import error_response


def _current_user():
    try:
        user_id = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    user = User.get_by_id(user_id)
    if user is None or not user.is_active:
        return None
    return user


def role_required(*roles: UserRole):
    """Require a valid JWT whose user has one of ``roles``. Sets ``g.current_user``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request()
            user = _current_user()

            if not user:
                return error_response("User not found", 404)

            if roles and user.role not in roles:
                names = ' or '.join(role.value.title() for role in roles)
                return error_response(f"{names} access required", 403)

            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator


teacher_required = role_required(UserRole.TEACHER)
student_required = role_required(UserRole.STUDENT)
login_required = role_required()
