"""
Audit Log model for tracking order actions.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum, func
from sqlalchemy.orm import relationship
import enum

from fieldsales.database import Base, IdType


class AuditAction(enum.Enum):
    """Enumeration of auditable actions."""
    # Orders
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_UPDATED = "ORDER_UPDATED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
    ORDER_SHARE_LINK_CREATED = "ORDER_SHARE_LINK_CREATED"
    ORDER_PUBLIC_SUBMITTED = "ORDER_PUBLIC_SUBMITTED"

    # Dispatch
    DISPATCH_CREATED = "DISPATCH_CREATED"
    DISPATCH_DELIVERED = "DISPATCH_DELIVERED"

    # Support
    SUPPORT_REQUEST_CREATED = "SUPPORT_REQUEST_CREATED"

    # Sessions
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"


class AuditLog(Base):
    """
    Audit log for tracking user actions.
    user_id is empty for actions taken through a public share link.
    """
    __tablename__ = 'audit_log'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(IdType, ForeignKey('app_user.id'), nullable=True, index=True)
    action = Column(SQLEnum(AuditAction), nullable=False, index=True)
    resource_type = Column(String(50))  # e.g., 'order', 'dispatch'
    resource_id = Column(IdType)  # ID of the affected resource
    details = Column(Text)  # JSON with additional details
    ip_address = Column(String(45))  # IPv4 or IPv6
    user_agent = Column(String(255))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    # Relationships
    user = relationship('AppUser')

    def __repr__(self):
        return f"<AuditLog {self.action.value} by user {self.user_id} at {self.created_at}>"
