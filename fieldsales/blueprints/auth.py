"""Authentication blueprint - session login for executives and admins."""
import logging
from flask import Blueprint, jsonify, session, g
from flask_wtf.csrf import generate_csrf

from fieldsales.database import get_session
from fieldsales.middleware import require_login
from fieldsales.models import AuditAction
from fieldsales.services.audit_service import log_action
from fieldsales.services.auth_service import authenticate
from fieldsales.utils.request_helpers import json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Validate username + password and start a session."""
    data = json_body()
    db_session = get_session()

    user = authenticate(db_session, data.get('username'), data.get('password'))

    session.clear()
    session['user_id'] = user.id
    session.permanent = True

    log_action(db_session, AuditAction.USER_LOGIN, 'user', user.id, user_id=user.id)
    db_session.commit()

    return jsonify(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    user = g.get('user')
    if user:
        db_session = get_session()
        log_action(db_session, AuditAction.USER_LOGOUT, 'user', user.id, user_id=user.id)
        db_session.commit()
    session.clear()
    return jsonify({'message': 'Logged out'})


@auth_bp.route('/me')
@require_login
def me():
    return jsonify(g.user.to_dict())


@auth_bp.route('/csrf')
def csrf_token():
    """CSRF token for browser clients (sent back in X-CSRFToken)."""
    return jsonify({'csrfToken': generate_csrf()})
