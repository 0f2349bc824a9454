"""
Public order blueprint.

Unauthenticated, token-addressed fill-in of a shared order. Exempt from
CSRF in the app factory.
"""
import logging
from flask import Blueprint, jsonify

from fieldsales.blueprints.metrics import public_submissions_total
from fieldsales.database import get_session
from fieldsales.services import public_order_service
from fieldsales.utils.request_helpers import json_body, order_settings

logger = logging.getLogger(__name__)

public_orders_bp = Blueprint('public_orders', __name__, url_prefix='/api/orders/public')

# Share links point here: /orders/public/<token> serves the same views
public_links_bp = Blueprint('public_links', __name__, url_prefix='/orders/public')


@public_orders_bp.route('/<token>', methods=['GET'])
def get_public_order(token):
    """Restricted view of the order; "completed" once it has been filled in."""
    order = public_order_service.get_order_by_token(get_session(), token)
    return jsonify({
        'status': 'open' if order.is_shareable else 'completed',
        'order': order.to_public_dict(),
    })


@public_orders_bp.route('/<token>', methods=['POST'])
def submit_public_order(token):
    """
    One-time submission.

    A second submission is not an error: it answers "already_submitted"
    and leaves the order untouched.
    """
    order, submitted = public_order_service.submit_public_order(
        get_session(), token, json_body(), order_settings()
    )

    if not submitted:
        public_submissions_total.labels(result='already_submitted').inc()
        return jsonify({
            'status': 'already_submitted',
            'message': 'This order form has already been submitted.',
            'order': order.to_public_dict(),
        })

    public_submissions_total.labels(result='submitted').inc()
    return jsonify({
        'status': 'submitted',
        'message': 'Thank you, your order has been submitted.',
        'order': order.to_public_dict(),
    })


public_links_bp.add_url_rule('/<token>', view_func=get_public_order, methods=['GET'])
public_links_bp.add_url_rule('/<token>', view_func=submit_public_order, methods=['POST'])
