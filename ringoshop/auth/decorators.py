# ringoshop/auth/decorators.py
from functools import wraps

from flask_login import current_user

from ringoshop.errors import AccessDenied, AuthenticationRequired


def admin_required(view):
    """401 for anonymous callers, 403 for signed-in non-admins."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationRequired()
        if not getattr(current_user, "is_admin", False):
            raise AccessDenied("admin role required")
        return view(*args, **kwargs)

    return wrapper
