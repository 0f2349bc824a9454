"""Order service: create, edit, list and move orders through their lifecycle."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from fieldsales.exceptions import AppError, NotFoundError, UnauthorizedError, ValidationError
from fieldsales.models import AppUser, Order, OrderStatus, Dispatch, AuditAction
from fieldsales.services import lifecycle_service
from fieldsales.services.audit_service import log_action
from fieldsales.services.order_draft import OrderDraft
from fieldsales.services.order_settings import OrderSettings, DEFAULT_SETTINGS
from fieldsales.services.totals_service import DiscountMode, check_client_totals

logger = logging.getLogger(__name__)


def _submitted_totals(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: payload.get(key) for key in ('totalAmount', 'totalDiscount', 'netAmount') if key in payload}


def get_order(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Order {order_id} not found.')
    return order


def get_order_for_actor(session: Session, order_id: int, actor: AppUser) -> Order:
    """Load an order the actor may see: its owner or any admin."""
    order = get_order(session, order_id)
    if not actor.is_admin and order.user_id != actor.id:
        raise UnauthorizedError('You do not have access to this order.')
    return order


def list_orders(session: Session, actor: AppUser, user_id: Optional[int] = None,
                status: Optional[str] = None) -> List[Order]:
    """
    Orders visible to the actor, newest first.

    Executives only ever see their own orders; admins see everyone's and
    may narrow to one executive.
    """
    query = session.query(Order)

    if not actor.is_admin:
        query = query.filter(Order.user_id == actor.id)
    elif user_id is not None:
        query = query.filter(Order.user_id == user_id)

    if status:
        query = query.filter(Order.status == lifecycle_service.parse_status(status).value)

    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def create_order(session: Session, actor: AppUser, payload: Dict[str, Any],
                 settings: OrderSettings = DEFAULT_SETTINGS) -> Order:
    """
    Create an order from the submitted form.

    The status always starts as pending whatever the payload says, and the
    totals are computed here from the items.
    """
    try:
        draft = OrderDraft.from_payload(payload, settings.max_discount_percent)
        draft.validate()
        totals = draft.totals(settings.clamp_net)
        check_client_totals(
            totals, _submitted_totals(payload),
            tolerance=settings.totals_tolerance,
            reject=settings.reject_totals_mismatch,
        )

        order = Order(
            user_id=actor.id,
            status=OrderStatus.PENDING.value,
            is_public_filled=False,
        )
        draft.apply_to(order, settings.clamp_net)
        session.add(order)
        session.flush()

        log_action(session, AuditAction.ORDER_CREATED, 'order', order.id, {
            'school_name': order.school_name,
            'net_amount': str(order.net_amount),
        }, user_id=actor.id)

        session.commit()
        logger.info(f"Order {order.id} created by user {actor.id} (net {order.net_amount})")
        return order
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise


def update_order(session: Session, order_id: int, actor: AppUser, payload: Dict[str, Any],
                 settings: OrderSettings = DEFAULT_SETTINGS) -> Order:
    """Edit a pending order; totals are recomputed from the merged items."""
    try:
        order = get_order_for_actor(session, order_id, actor)
        if order.status != OrderStatus.PENDING.value:
            raise ValidationError('Only pending orders can be edited.', field='status')

        draft = OrderDraft.from_order(order, settings.max_discount_percent)
        if 'discountMode' in payload and DiscountMode.parse(payload['discountMode']) is not draft.discount_mode:
            raise ValidationError('The discount mode is fixed when the order is created.', field='discountMode')
        draft.merge_payload(payload)
        draft.validate()

        totals = draft.totals(settings.clamp_net)
        check_client_totals(
            totals, _submitted_totals(payload),
            tolerance=settings.totals_tolerance,
            reject=settings.reject_totals_mismatch,
            order_id=order.id,
        )
        draft.apply_to(order, settings.clamp_net)

        log_action(session, AuditAction.ORDER_UPDATED, 'order', order.id, {
            'net_amount': str(order.net_amount),
        }, user_id=actor.id)

        session.commit()
        logger.info(f"Order {order.id} updated by user {actor.id}")
        return order
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise


def set_order_status(session: Session, order_id: int, actor: AppUser, status,
                     dispatch_id: Optional[int] = None) -> List[Order]:
    """
    Move an order forward in its lifecycle.

    Admins may dispatch (with an existing dispatch) or deliver. The owning
    executive may only acknowledge delivery.

    Returns:
        Orders whose status changed.
    """
    try:
        order = get_order_for_actor(session, order_id, actor)
        target = lifecycle_service.parse_status(status)
        previous = order.status

        if target is OrderStatus.DISPATCHED:
            if not actor.is_admin:
                raise UnauthorizedError('Only administrators can dispatch orders.')
            if dispatch_id is None:
                raise ValidationError('dispatchId is required to dispatch an order.', field='dispatchId')
            dispatch = session.get(Dispatch, dispatch_id)
            if not dispatch:
                raise NotFoundError(f'Dispatch {dispatch_id} not found.')
            changed = [order] if lifecycle_service.dispatch_order(session, order, dispatch) else []
        elif target is OrderStatus.DELIVERED:
            changed = lifecycle_service.deliver_order(session, order)
        else:
            # Only valid as a no-op on a pending order
            lifecycle_service.check_transition(order.status, target)
            changed = []

        if changed:
            log_action(session, AuditAction.ORDER_STATUS_CHANGED, 'order', order.id, {
                'from': previous,
                'to': target.value,
                'orders': [changed_order.id for changed_order in changed],
            }, user_id=actor.id)

        session.commit()
        return changed
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise


def mark_received(session: Session, order_id: int, actor: AppUser) -> List[Order]:
    """Owner's "mark as received" acknowledgement."""
    return set_order_status(session, order_id, actor, OrderStatus.DELIVERED)
