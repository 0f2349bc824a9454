"""
Audit trail for order, dispatch and support actions.

Entries are added to the caller's session and committed together with the
change they describe.
"""
import json
import logging
from datetime import datetime, timezone

from flask import request, g, has_request_context

from fieldsales.models.audit_log import AuditLog, AuditAction

logger = logging.getLogger(__name__)


def _request_origin():
    """(acting user id, ip, user agent) of the current request, if any."""
    if not has_request_context():
        return None, None, None
    user = g.get('user')
    return (
        user.id if user else None,
        request.remote_addr,
        request.headers.get('User-Agent', '')[:255],
    )


def _encode_details(details):
    if not details:
        return None
    try:
        return json.dumps(details, default=str, sort_keys=True)
    except (TypeError, ValueError) as e:
        logger.warning(f"Audit details not JSON serializable: {e}")
        return str(details)


def log_action(session, action: AuditAction, resource_type: str = None, resource_id: int = None,
               details: dict = None, user_id: int = None):
    """
    Record an action on an order, dispatch or support request.

    Args:
        session: Database session (the caller commits)
        action: AuditAction enum value
        resource_type: 'order', 'dispatch', 'support_request' or 'user'
        resource_id: ID of the affected row
        details: Extra data stored as JSON
        user_id: Acting user; taken from the logged-in user when omitted.
            Public share-link submissions have no user.
    """
    try:
        request_user_id, ip_address, user_agent = _request_origin()
        if user_id is None:
            user_id = request_user_id

        session.add(AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=_encode_details(details),
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=datetime.now(timezone.utc),
        ))
        logger.info(f"Audit {action.value}: {resource_type} {resource_id} by user {user_id}")
    except Exception as e:
        # Losing an audit row must not undo the order change
        logger.error(f"Failed to create audit log for {action.value}: {e}")
