"""Dispatch service: ship orders to executives and confirm delivery."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from fieldsales.exceptions import AppError, NotFoundError, UnauthorizedError, ValidationError
from fieldsales.models import AppUser, Dispatch, BookType, Order, OrderStatus, SupportRequest, AuditAction
from fieldsales.services import catalog_service, lifecycle_service
from fieldsales.services.audit_service import log_action
from fieldsales.services.line_items import LineItemStore
from fieldsales.utils.number_format import parse_quantity

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    ('mode_of_parcel', 'modeOfParcel', 200),
    ('courier_mode', 'courierMode', 100),
    ('dispatch_location', 'dispatchLocation', 200),
    ('lr_no', 'lrNo', 64),
    ('ref', 'ref', 255),
    ('remarks', 'remarks', None),
)


def _parse_date(value, field):
    if value is None or value == '':
        raise ValidationError(f'{field} is required', field=field)
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f'{field} must be a date (YYYY-MM-DD)', field=field)


def _parse_id_list(value, field) -> List[int]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f'{field} must be a list', field=field)
    ids = []
    for item in value:
        if isinstance(item, bool):
            raise ValidationError(f'{field} must contain ids', field=field)
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            raise ValidationError(f'{field} must contain ids', field=field)
    # Keep first occurrence order
    return list(dict.fromkeys(ids))


def _parse_book_type(value) -> str:
    if value in (None, ''):
        return BookType.SALES.value
    for book_type in BookType:
        if str(value).strip().lower() == book_type.value.lower():
            return book_type.value
    raise ValidationError('bookType must be Sales or Sample', field='bookType')


def get_dispatch(session: Session, dispatch_id: int) -> Dispatch:
    dispatch = session.get(Dispatch, dispatch_id)
    if not dispatch:
        raise NotFoundError(f'Dispatch {dispatch_id} not found.')
    return dispatch


def get_dispatch_for_actor(session: Session, dispatch_id: int, actor: AppUser) -> Dispatch:
    dispatch = get_dispatch(session, dispatch_id)
    if not actor.is_admin and dispatch.executive_id != actor.id:
        raise UnauthorizedError('You do not have access to this dispatch.')
    return dispatch


def list_dispatches(session: Session, actor: AppUser, executive_id: Optional[int] = None) -> List[Dispatch]:
    query = session.query(Dispatch)
    if not actor.is_admin:
        query = query.filter(Dispatch.executive_id == actor.id)
    elif executive_id is not None:
        query = query.filter(Dispatch.executive_id == executive_id)
    return query.order_by(Dispatch.created_at.desc(), Dispatch.id.desc()).all()


def create_dispatch(session: Session, actor: AppUser, payload: Dict[str, Any]) -> Dispatch:
    """
    Create a dispatch and move the listed orders and support requests to
    dispatched.

    Args:
        session: Database session
        actor: Administrator creating the dispatch
        payload: camelCase JSON body (executiveId, dispatchDate, orderIds, ...)

    Returns:
        The new Dispatch

    Raises:
        ValidationError: bad field, or an order/request of another executive
        InvalidStatusTransitionError: an order is already delivered
    """
    if not actor.is_admin:
        raise UnauthorizedError('Only administrators can create dispatches.')
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')

    try:
        try:
            executive_id = int(payload.get('executiveId'))
        except (TypeError, ValueError):
            raise ValidationError('executiveId is required', field='executiveId')
        executive = session.get(AppUser, executive_id)
        if not executive or not executive.active:
            raise ValidationError(f'Executive {executive_id} not found', field='executiveId')

        no_of_box = parse_quantity(payload.get('noOfBox', 1), field='noOfBox')
        if no_of_box < 1:
            raise ValidationError('noOfBox must be at least 1', field='noOfBox')

        dispatch = Dispatch(
            executive_id=executive.id,
            created_by=actor.id,
            dispatch_date=_parse_date(payload.get('dispatchDate'), 'dispatchDate'),
            book_type=_parse_book_type(payload.get('bookType')),
            no_of_box=no_of_box,
            status=OrderStatus.DISPATCHED.value,
        )
        for column, name, max_length in TEXT_FIELDS:
            value = payload.get(name)
            if value is None or str(value).strip() == '':
                continue
            value = str(value).strip()
            if max_length and len(value) > max_length:
                raise ValidationError(f'{name} is too long (max {max_length})', field=name)
            setattr(dispatch, column, value)

        session.add(dispatch)
        session.flush()

        order_ids = _parse_id_list(payload.get('orderIds'), 'orderIds')
        for order_id in order_ids:
            order = session.get(Order, order_id)
            if not order:
                raise ValidationError(f'Order {order_id} not found', field='orderIds')
            if order.user_id != executive.id:
                raise ValidationError(f'Order {order_id} belongs to another executive', field='orderIds')
            lifecycle_service.dispatch_order(session, order, dispatch)

        request_ids = _parse_id_list(payload.get('supportRequestIds'), 'supportRequestIds')
        for request_id in request_ids:
            support_request = session.get(SupportRequest, request_id)
            if not support_request:
                raise ValidationError(f'Support request {request_id} not found', field='supportRequestIds')
            if support_request.user_id != executive.id:
                raise ValidationError(f'Support request {request_id} belongs to another executive',
                                      field='supportRequestIds')
            lifecycle_service.dispatch_support_request(session, support_request, dispatch)

        log_action(session, AuditAction.DISPATCH_CREATED, 'dispatch', dispatch.id, {
            'executive_id': executive.id,
            'order_ids': order_ids,
            'support_request_ids': request_ids,
            'lr_no': dispatch.lr_no,
        }, user_id=actor.id)

        session.commit()
        logger.info(f"Dispatch {dispatch.id} created for executive {executive.id} "
                    f"with {len(order_ids)} orders")
        return dispatch
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise


def update_dispatch_status(session: Session, dispatch_id: int, actor: AppUser, status) -> List[Order]:
    """
    Confirm delivery of a dispatch; linked orders and support requests
    follow.

    Returns:
        Orders whose status changed.
    """
    try:
        dispatch = get_dispatch_for_actor(session, dispatch_id, actor)
        target = lifecycle_service.parse_status(status)
        if target is not OrderStatus.DELIVERED:
            lifecycle_service.check_transition(dispatch.status, target)
            return []

        if dispatch.status == lifecycle_service.DISPATCH_DELIVERED:
            return []

        delivered = lifecycle_service.deliver_dispatch(session, dispatch)
        log_action(session, AuditAction.DISPATCH_DELIVERED, 'dispatch', dispatch.id, {
            'order_ids': [order.id for order in delivered],
        }, user_id=actor.id)

        session.commit()
        return delivered
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise


def build_packing_list(dispatch: Dispatch) -> Dict[str, Any]:
    """
    Per-category book counts of everything in a dispatch.

    Returns:
        {'dispatchId', 'items': [{'category', 'qty'}], 'supportCategories', 'totalQty'}
    """
    totals: Dict[str, int] = {}
    for order in dispatch.orders:
        store = LineItemStore.from_wire(order.items or {}, allow_discounts=False)
        for category, qty in store.category_quantities().items():
            totals[category] = totals.get(category, 0) + qty

    support_categories = []
    for support_request in dispatch.support_requests:
        for category in support_request.categories or []:
            if category not in support_categories:
                support_categories.append(category)

    items = [
        {'category': category, 'qty': totals[category]}
        for category in catalog_service.get_categories()
        if category in totals
    ]
    return {
        'dispatchId': dispatch.id,
        'lrNo': dispatch.lr_no,
        'noOfBox': dispatch.no_of_box,
        'items': items,
        'supportCategories': support_categories,
        'totalQty': sum(totals.values()),
    }
