"""Orders blueprint - order form, lifecycle, share links and invoices."""
import logging
from flask import Blueprint, jsonify, request, send_file, current_app, g

from fieldsales.blueprints.metrics import orders_created_total, record_status_transitions
from fieldsales.database import get_session
from fieldsales.exceptions import ValidationError
from fieldsales.middleware import require_login
from fieldsales.services import order_service, public_order_service, support_service
from fieldsales.services.pdf_service import render_order_pdf, business_info_from_config
from fieldsales.utils.request_helpers import json_body, order_settings, int_arg

logger = logging.getLogger(__name__)

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')


@orders_bp.route('', methods=['POST'])
@require_login
def create_order():
    """Create a pending order from the submitted form."""
    order = order_service.create_order(get_session(), g.user, json_body(), order_settings())
    orders_created_total.inc()
    return jsonify(order.to_dict()), 201


@orders_bp.route('', methods=['GET'])
@require_login
def list_orders():
    """
    List orders.

    Query params:
        userId: admins only, orders of one executive
        status: pending, dispatched or delivered
    """
    orders = order_service.list_orders(
        get_session(), g.user,
        user_id=int_arg('userId'),
        status=request.args.get('status'),
    )
    return jsonify([order.to_dict() for order in orders])


@orders_bp.route('/<int:order_id>', methods=['GET'])
@require_login
def get_order(order_id):
    order = order_service.get_order_for_actor(get_session(), order_id, g.user)
    return jsonify(order.to_dict())


@orders_bp.route('/<int:order_id>', methods=['PUT'])
@require_login
def update_order(order_id):
    order = order_service.update_order(get_session(), order_id, g.user, json_body(), order_settings())
    return jsonify(order.to_dict())


@orders_bp.route('/<int:order_id>/status', methods=['PATCH'])
@require_login
def update_status(order_id):
    """Body: {"status": "dispatched", "dispatchId": 3} or {"status": "delivered"}."""
    data = json_body()
    if not data.get('status'):
        raise ValidationError('status is required', field='status')

    dispatch_id = data.get('dispatchId')
    if dispatch_id is not None:
        try:
            dispatch_id = int(dispatch_id)
        except (TypeError, ValueError):
            raise ValidationError('dispatchId must be an integer', field='dispatchId')

    db_session = get_session()
    changed = order_service.set_order_status(db_session, order_id, g.user, data['status'], dispatch_id)
    record_status_transitions(changed)

    order = order_service.get_order(db_session, order_id)
    return jsonify(order.to_dict())


@orders_bp.route('/<int:order_id>/received', methods=['POST'])
@require_login
def mark_received(order_id):
    """Executive acknowledges delivery of an order."""
    db_session = get_session()
    changed = order_service.mark_received(db_session, order_id, g.user)
    record_status_transitions(changed)

    order = order_service.get_order(db_session, order_id)
    return jsonify(order.to_dict())


@orders_bp.route('/share', methods=['POST'])
@require_login
def create_share_link():
    """Body: {"orderId": 12}. Returns the token and the public URL."""
    data = json_body()
    try:
        order_id = int(data.get('orderId'))
    except (TypeError, ValueError):
        raise ValidationError('orderId is required', field='orderId')

    link = public_order_service.create_share_link(get_session(), order_id, g.user, order_settings())
    return jsonify(link)


@orders_bp.route('/<int:order_id>/pdf')
@require_login
def download_pdf(order_id):
    order = order_service.get_order_for_actor(get_session(), order_id, g.user)
    pdf_buffer = render_order_pdf(order, business_info_from_config(current_app.config))
    logger.info(f"Invoice PDF generated for order {order.id}")

    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"order_{order.id}.pdf"
    )


@orders_bp.route('/<int:order_id>/support', methods=['POST'])
@require_login
def create_support_request(order_id):
    support_request = support_service.create_support_request(get_session(), order_id, g.user, json_body())
    return jsonify(support_request.to_dict()), 201
