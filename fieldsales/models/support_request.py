"""SupportRequest model - executive asks for material against an order."""
from sqlalchemy import Column, String, Text, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fieldsales.database import Base, IdType


class SupportRequest(Base):
    """Support request; follows the order lifecycle through its dispatch."""

    __tablename__ = 'support_request'

    id = Column(IdType, primary_key=True, autoincrement=True)
    order_id = Column(IdType, ForeignKey('school_order.id'), nullable=False, index=True)
    user_id = Column(IdType, ForeignKey('app_user.id'), nullable=False, index=True)
    categories = Column(JSON, nullable=False, default=list)
    remarks = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default='pending')
    dispatch_id = Column(IdType, ForeignKey('dispatch.id'), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    order = relationship('Order', back_populates='support_requests')
    dispatch = relationship('Dispatch', back_populates='support_requests')

    def __repr__(self):
        return f"<SupportRequest(id={self.id}, order_id={self.order_id}, status='{self.status}')>"

    def to_dict(self):
        return {
            'id': self.id,
            'orderId': self.order_id,
            'userId': self.user_id,
            'categories': list(self.categories or []),
            'remarks': self.remarks,
            'status': self.status,
            'dispatchId': self.dispatch_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
