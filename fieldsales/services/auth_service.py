"""
Authentication service for user management.

Handles password login and user creation for executives and admins.
"""
import logging
from typing import List

from sqlalchemy.exc import IntegrityError

from fieldsales.exceptions import AuthenticationError, ValidationError
from fieldsales.models import AppUser, UserRole

logger = logging.getLogger(__name__)

# Accounts created by `flask seed-users`: (username, password, name, role)
DEFAULT_USERS = (
    ('1001', '123abc', 'Sales Executive', UserRole.EXECUTIVE.value),
    ('admin', 'admin123', 'Administrator', UserRole.ADMIN.value),
)


def authenticate(session, username, password) -> AppUser:
    """
    Check a username/password pair.

    Raises:
        ValidationError: missing credentials
        AuthenticationError: unknown user, inactive user or wrong password
    """
    username = (username or '').strip()
    if not username or not password:
        raise ValidationError('Username and password are required.')

    user = session.query(AppUser).filter_by(username=username).first()
    if not user or not user.active or not user.check_password(password):
        logger.warning(f"Failed login for username {username}")
        raise AuthenticationError('Invalid username or password.')

    logger.info(f"User {user.id} logged in")
    return user


def create_user(session, username, password, name, role=UserRole.EXECUTIVE.value) -> AppUser:
    """Create a user; the caller commits."""
    username = (username or '').strip()
    if not username:
        raise ValidationError('Username is required.', field='username')
    if not password or len(password) < 6:
        raise ValidationError('Password must be at least 6 characters.', field='password')
    if role not in {r.value for r in UserRole}:
        raise ValidationError(f'Unknown role "{role}".', field='role')

    if session.query(AppUser).filter_by(username=username).first():
        raise ValidationError(f'User {username} already exists.', field='username')

    user = AppUser(username=username, name=(name or username).strip(), role=role, active=True)
    user.set_password(password)
    session.add(user)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise ValidationError(f'User {username} already exists.', field='username')

    logger.info(f"Created user {username} with role {role}")
    return user


def seed_default_users(session) -> List[AppUser]:
    """Create the default executive and admin accounts when missing."""
    created = []
    for username, password, name, role in DEFAULT_USERS:
        if session.query(AppUser).filter_by(username=username).first():
            continue
        created.append(create_user(session, username, password, name, role))
    session.commit()
    return created
