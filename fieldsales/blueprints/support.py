"""Support requests blueprint."""
from flask import Blueprint, jsonify, request, g

from fieldsales.database import get_session
from fieldsales.middleware import require_login
from fieldsales.services import support_service
from fieldsales.utils.request_helpers import int_arg

support_bp = Blueprint('support', __name__, url_prefix='/api/support')


@support_bp.route('', methods=['GET'])
@require_login
def list_support_requests():
    requests_ = support_service.list_support_requests(
        get_session(), g.user,
        order_id=int_arg('orderId'),
        status=request.args.get('status'),
    )
    return jsonify([support_request.to_dict() for support_request in requests_])
