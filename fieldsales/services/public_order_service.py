"""
Share links and the one-time public fill-in of an order.

The owning executive mints an opaque token; whoever holds the link may
complete the school, contact and dispatch details and the item quantities
exactly once. Discounts are percentages per category and stay under the
executive's control.
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from fieldsales.exceptions import AppError, NotFoundError, UnauthorizedError, ValidationError
from fieldsales.models import AppUser, Order, AuditAction
from fieldsales.models.order import PUBLIC_DETAIL_FIELDS
from fieldsales.services.audit_service import log_action
from fieldsales.services.order_draft import OrderDraft
from fieldsales.services.order_settings import OrderSettings, DEFAULT_SETTINGS
from fieldsales.services.totals_service import DiscountMode

logger = logging.getLogger(__name__)

PUBLIC_PATH = '/orders/public/{token}'
MAX_TOKEN_ATTEMPTS = 5


def public_path(token: str) -> str:
    return PUBLIC_PATH.format(token=token)


def public_url(token: str, settings: OrderSettings = DEFAULT_SETTINGS) -> str:
    return f"{settings.public_base_url}{public_path(token)}"


def _generate_token(session: Session, settings: OrderSettings) -> str:
    for _ in range(MAX_TOKEN_ATTEMPTS):
        token = secrets.token_urlsafe(settings.share_token_bytes)
        exists = session.query(Order.id).filter(Order.share_token == token).first()
        if not exists:
            return token
        logger.warning("Share token collision, generating a new one")
    raise AppError('Could not generate a unique share token', status_code=500)


def create_share_link(session: Session, order_id: int, actor: AppUser,
                      settings: OrderSettings = DEFAULT_SETTINGS) -> Dict[str, str]:
    """
    Mint (or return the existing) share link of an order.

    Only the executive who created the order may share it, and only orders
    created with per-category percentage discounts can be shared.

    Returns:
        {'token', 'path', 'url'}
    """
    try:
        order = session.get(Order, order_id)
        if not order:
            raise NotFoundError(f'Order {order_id} not found.')
        if order.user_id != actor.id:
            raise UnauthorizedError('Only the executive who created the order can share it.')
        if not order.is_shareable:
            raise ValidationError('Only pending, unfilled orders can be shared.', field='orderId')

        if order.discount_mode != DiscountMode.PERCENT.value:
            raise ValidationError('Only orders with percentage discounts can be shared.', field='discountMode')

        if not order.share_token:
            order.share_token = _generate_token(session, settings)
            log_action(session, AuditAction.ORDER_SHARE_LINK_CREATED, 'order', order.id, {
                'path': public_path(order.share_token),
            }, user_id=actor.id)
            session.commit()
            logger.info(f"Share link created for order {order.id} by user {actor.id}")

        return {
            'token': order.share_token,
            'path': public_path(order.share_token),
            'url': public_url(order.share_token, settings),
        }
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise


def get_order_by_token(session: Session, token: str) -> Order:
    if not token:
        raise NotFoundError('Order not found.')
    order = session.query(Order).filter(Order.share_token == token).first()
    if not order:
        raise NotFoundError('Order not found.')
    return order


def submit_public_order(session: Session, token: str, payload: Dict[str, Any],
                        settings: OrderSettings = DEFAULT_SETTINGS) -> Tuple[Order, bool]:
    """
    Accept the one-time public submission for a share token.

    Returns:
        (order, submitted). submitted is False when the link was already
        used; the order is then returned untouched.
    """
    try:
        order = get_order_by_token(session, token)

        if not order.is_shareable:
            logger.info(f"Public submission refused for order {order.id}: already submitted")
            return order, False

        draft = OrderDraft.from_order(order, settings.max_discount_percent)
        draft.merge_payload(payload, fields=PUBLIC_DETAIL_FIELDS, allow_discounts=False)
        draft.validate()
        draft.apply_to(order, settings.clamp_net, fields=PUBLIC_DETAIL_FIELDS)

        order.is_public_filled = True
        order.public_filled_at = datetime.now(timezone.utc)

        log_action(session, AuditAction.ORDER_PUBLIC_SUBMITTED, 'order', order.id, {
            'net_amount': str(order.net_amount),
        })

        session.commit()
        logger.info(f"Public submission accepted for order {order.id} (net {order.net_amount})")
        return order, True
    except AppError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
