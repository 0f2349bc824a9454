"""
Order lifecycle: pending -> dispatched -> delivered.

Transitions only move one step forward. Orders, support requests and
dispatches are linked by foreign keys and status changes walk those
relations.
"""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from fieldsales.exceptions import InvalidStatusTransitionError, ValidationError
from fieldsales.models import Order, OrderStatus, Dispatch, SupportRequest

logger = logging.getLogger(__name__)

STATUS_SEQUENCE = (OrderStatus.PENDING, OrderStatus.DISPATCHED, OrderStatus.DELIVERED)
DISPATCH_DELIVERED = 'delivered'


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except (ValueError, AttributeError):
        allowed = ', '.join(status.value for status in STATUS_SEQUENCE)
        raise ValidationError(f'status must be one of: {allowed}', field='status')


def check_transition(current, target) -> bool:
    """
    Validate a status change.

    Returns:
        True when the status must change, False when it is already there.

    Raises:
        InvalidStatusTransitionError: backwards or skipping a step.
    """
    current_status = parse_status(current)
    target_status = parse_status(target)

    if current_status is target_status:
        return False

    current_index = STATUS_SEQUENCE.index(current_status)
    target_index = STATUS_SEQUENCE.index(target_status)
    if target_index != current_index + 1:
        raise InvalidStatusTransitionError(current_status.value, target_status.value)
    return True


def _advance(entity, target: OrderStatus) -> bool:
    if not check_transition(entity.status, target):
        return False
    entity.status = target.value
    return True


def dispatch_order(session: Session, order: Order, dispatch: Dispatch) -> bool:
    """
    Move an order to dispatched under the given dispatch.

    Pending support requests of the order travel with it.
    """
    if order.status == OrderStatus.DISPATCHED.value and order.dispatch_id not in (None, dispatch.id):
        raise ValidationError(f'Order {order.id} already belongs to dispatch {order.dispatch_id}', field='orderIds')

    changed = _advance(order, OrderStatus.DISPATCHED)
    order.dispatch = dispatch

    for support_request in order.support_requests:
        if support_request.status == OrderStatus.PENDING.value:
            dispatch_support_request(session, support_request, dispatch)

    if changed:
        logger.info(f"Order {order.id} dispatched with dispatch {dispatch.id}")
    return changed


def dispatch_support_request(session: Session, support_request: SupportRequest, dispatch: Dispatch) -> bool:
    changed = _advance(support_request, OrderStatus.DISPATCHED)
    support_request.dispatch = dispatch
    if changed:
        logger.info(f"Support request {support_request.id} dispatched with dispatch {dispatch.id}")
    return changed


def deliver_dispatch(session: Session, dispatch: Dispatch) -> List[Order]:
    """
    Mark a dispatch delivered and carry the status to everything it holds.

    Returns:
        Orders whose status changed.
    """
    delivered_orders = []
    if dispatch.status != DISPATCH_DELIVERED:
        dispatch.status = DISPATCH_DELIVERED
        dispatch.delivered_at = datetime.now(timezone.utc)
        logger.info(f"Dispatch {dispatch.id} delivered")

    now = datetime.now(timezone.utc)
    for order in dispatch.orders:
        if order.status == OrderStatus.DISPATCHED.value:
            _advance(order, OrderStatus.DELIVERED)
            order.delivered_at = now
            delivered_orders.append(order)
            logger.info(f"Order {order.id} delivered through dispatch {dispatch.id}")

    for support_request in dispatch.support_requests:
        if support_request.status == OrderStatus.DISPATCHED.value:
            _advance(support_request, OrderStatus.DELIVERED)

    return delivered_orders


def deliver_order(session: Session, order: Order) -> List[Order]:
    """
    Acknowledge receipt of an order.

    When the order travelled in a dispatch, the whole dispatch is delivered.

    Returns:
        Orders whose status changed (empty when already delivered).
    """
    if not check_transition(order.status, OrderStatus.DELIVERED):
        return []

    if order.dispatch is not None:
        return deliver_dispatch(session, order.dispatch)

    _advance(order, OrderStatus.DELIVERED)
    order.delivered_at = datetime.now(timezone.utc)
    logger.info(f"Order {order.id} delivered")
    return [order]
