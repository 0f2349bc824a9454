"""
Permission decorators for role-based access control.
Extends the basic require_login decorator with role checks.
"""

from functools import wraps
from flask import g

from fieldsales.exceptions import AuthenticationError, UnauthorizedError


def require_role(*allowed_roles):
    """
    Decorator to restrict access to specific roles.

    Usage:
        @require_role('admin')
        @require_role('executive', 'admin')

    Args:
        *allowed_roles: Variable number of role strings (executive, admin)

    Returns:
        Decorator function
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Must be logged in
            if not g.get('user'):
                raise AuthenticationError('You must be logged in.')

            if g.user.role not in allowed_roles:
                raise UnauthorizedError('You do not have permission to perform this action.')

            return f(*args, **kwargs)

        return decorated_function
    return decorator
