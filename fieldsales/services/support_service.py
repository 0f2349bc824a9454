"""Support requests raised by executives against their orders."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from fieldsales.exceptions import AppError, NotFoundError, UnauthorizedError, ValidationError
from fieldsales.models import AppUser, Order, OrderStatus, SupportRequest, AuditAction
from fieldsales.services import catalog_service
from fieldsales.services.audit_service import log_action

logger = logging.getLogger(__name__)

MAX_REMARKS_LENGTH = 1500


def _parse_categories(value) -> List[str]:
    if not isinstance(value, list) or not value:
        raise ValidationError('Select at least one category', field='categories')
    categories = []
    for category in value:
        if not isinstance(category, str) or not catalog_service.is_known_category(category):
            raise ValidationError(f'Unknown category "{category}"', field='categories')
        if category not in categories:
            categories.append(category)
    return categories


def create_support_request(session: Session, order_id: int, actor: AppUser,
                           payload: Dict[str, Any]) -> SupportRequest:
    """Raise a support request; only the executive who owns the order may."""
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')

    try:
        order = session.get(Order, order_id)
        if not order:
            raise NotFoundError(f'Order {order_id} not found.')
        if order.user_id != actor.id:
            raise UnauthorizedError('Only the executive who created the order can request support.')

        categories = _parse_categories(payload.get('categories'))
        remarks = payload.get('remarks')
        if remarks is not None:
            if not isinstance(remarks, str):
                raise ValidationError('remarks must be text', field='remarks')
            remarks = remarks.strip() or None
        if remarks and len(remarks) > MAX_REMARKS_LENGTH:
            raise ValidationError(f'Remarks cannot exceed {MAX_REMARKS_LENGTH} characters', field='remarks')

        support_request = SupportRequest(
            order_id=order.id,
            user_id=actor.id,
            categories=categories,
            remarks=remarks,
            status=OrderStatus.PENDING.value,
        )
        session.add(support_request)
        session.flush()

        log_action(session, AuditAction.SUPPORT_REQUEST_CREATED, 'support_request', support_request.id, {
            'order_id': order.id,
            'categories': categories,
        }, user_id=actor.id)

        session.commit()
        logger.info(f"Support request {support_request.id} created for order {order.id}")
        return support_request
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise


def list_support_requests(session: Session, actor: AppUser, order_id: Optional[int] = None,
                          status: Optional[str] = None) -> List[SupportRequest]:
    query = session.query(SupportRequest)
    if not actor.is_admin:
        query = query.filter(SupportRequest.user_id == actor.id)
    if order_id is not None:
        query = query.filter(SupportRequest.order_id == order_id)
    if status:
        query = query.filter(SupportRequest.status == status)
    return query.order_by(SupportRequest.created_at.desc(), SupportRequest.id.desc()).all()
