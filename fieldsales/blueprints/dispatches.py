"""Dispatches blueprint - admins ship orders, executives confirm delivery."""
import logging
from flask import Blueprint, jsonify, g

from fieldsales.blueprints.metrics import record_status_transitions
from fieldsales.database import get_session
from fieldsales.decorators.permissions import require_role
from fieldsales.exceptions import ValidationError
from fieldsales.middleware import require_login
from fieldsales.models import UserRole
from fieldsales.services import dispatch_service
from fieldsales.utils.request_helpers import json_body, int_arg

logger = logging.getLogger(__name__)

dispatches_bp = Blueprint('dispatches', __name__, url_prefix='/api/dispatches')


@dispatches_bp.route('', methods=['POST'])
@require_login
@require_role(UserRole.ADMIN.value)
def create_dispatch():
    db_session = get_session()
    dispatch = dispatch_service.create_dispatch(db_session, g.user, json_body())
    record_status_transitions(dispatch.orders)
    return jsonify(dispatch.to_dict()), 201


@dispatches_bp.route('', methods=['GET'])
@require_login
def list_dispatches():
    dispatches = dispatch_service.list_dispatches(get_session(), g.user, executive_id=int_arg('executiveId'))
    return jsonify([dispatch.to_dict() for dispatch in dispatches])


@dispatches_bp.route('/<int:dispatch_id>', methods=['GET'])
@require_login
def get_dispatch(dispatch_id):
    dispatch = dispatch_service.get_dispatch_for_actor(get_session(), dispatch_id, g.user)
    return jsonify(dispatch.to_dict())


@dispatches_bp.route('/<int:dispatch_id>/status', methods=['PATCH'])
@require_login
def update_status(dispatch_id):
    """Body: {"status": "delivered"}."""
    data = json_body()
    if not data.get('status'):
        raise ValidationError('status is required', field='status')

    db_session = get_session()
    changed = dispatch_service.update_dispatch_status(db_session, dispatch_id, g.user, data['status'])
    record_status_transitions(changed)

    dispatch = dispatch_service.get_dispatch(db_session, dispatch_id)
    return jsonify(dispatch.to_dict())


@dispatches_bp.route('/<int:dispatch_id>/packing-list')
@require_login
def packing_list(dispatch_id):
    dispatch = dispatch_service.get_dispatch_for_actor(get_session(), dispatch_id, g.user)
    return jsonify(dispatch_service.build_packing_list(dispatch))
