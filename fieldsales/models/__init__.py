"""Models package - exports all SQLAlchemy models."""
from fieldsales.models.app_user import AppUser, UserRole
from fieldsales.models.dispatch import Dispatch, BookType
from fieldsales.models.order import Order, OrderStatus
from fieldsales.models.support_request import SupportRequest
from fieldsales.models.audit_log import AuditLog, AuditAction

__all__ = [
    'AppUser', 'UserRole',
    'Dispatch', 'BookType',
    'Order', 'OrderStatus',
    'SupportRequest',
    'AuditLog', 'AuditAction',
]
