"""Dispatch model - a parcel shipped to a sales executive."""
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fieldsales.database import Base, IdType
from fieldsales.utils.formatters import iso_date


class BookType(enum.Enum):
    """What the parcel carries."""
    SALES = "Sales"
    SAMPLE = "Sample"


class Dispatch(Base):
    """
    Dispatch (shipment).

    Orders and support requests point at the dispatch through dispatch_id;
    lr_no is the courier's lorry-receipt number, kept for display only.
    """

    __tablename__ = 'dispatch'

    id = Column(IdType, primary_key=True, autoincrement=True)
    executive_id = Column(IdType, ForeignKey('app_user.id'), nullable=False, index=True)
    created_by = Column(IdType, ForeignKey('app_user.id'), nullable=False)
    dispatch_date = Column(Date, nullable=False)
    book_type = Column(String(20), nullable=False, default=BookType.SALES.value)
    mode_of_parcel = Column(String(200), nullable=True)
    courier_mode = Column(String(100), nullable=True)
    dispatch_location = Column(String(200), nullable=True)
    lr_no = Column(String(64), nullable=True)
    no_of_box = Column(Integer, nullable=False, default=1)
    ref = Column(String(255), nullable=True)
    remarks = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default='dispatched')  # dispatched, delivered
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    executive = relationship('AppUser', foreign_keys=[executive_id])
    orders = relationship('Order', back_populates='dispatch')
    support_requests = relationship('SupportRequest', back_populates='dispatch')

    def __repr__(self):
        return f"<Dispatch(id={self.id}, lr_no='{self.lr_no}', status='{self.status}')>"

    def to_dict(self):
        return {
            'id': self.id,
            'executiveId': self.executive_id,
            'executiveName': self.executive.name if self.executive else None,
            'dispatchDate': iso_date(self.dispatch_date),
            'bookType': self.book_type,
            'modeOfParcel': self.mode_of_parcel,
            'courierMode': self.courier_mode,
            'dispatchLocation': self.dispatch_location,
            'lrNo': self.lr_no,
            'noOfBox': self.no_of_box,
            'ref': self.ref,
            'remarks': self.remarks,
            'status': self.status,
            'orderIds': [order.id for order in self.orders],
            'supportRequestIds': [request.id for request in self.support_requests],
            'deliveredAt': self.delivered_at.isoformat() if self.delivered_at else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
