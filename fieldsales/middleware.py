"""Middleware for authentication context."""
from functools import wraps
from flask import session, g, current_app
from sqlalchemy.exc import SQLAlchemyError
from fieldsales.database import get_session
from fieldsales.exceptions import AuthenticationError
from fieldsales.models import AppUser


def load_current_user():
    """
    Load the current user into g (Flask's per-request global).

    Called before each request. Sets g.user when the session cookie
    carries the id of an active user.
    """
    g.user = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        user = get_session().query(AppUser).filter_by(id=user_id, active=True).first()
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error loading user {user_id}: {e}")
        raise

    if user:
        g.user = user
    else:
        # Deactivated or deleted since login
        session.pop('user_id', None)


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Raises AuthenticationError (401 JSON) otherwise.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationError('You must be logged in.')
        return f(*args, **kwargs)
    return decorated_function
