"""Order model for school book orders."""
import enum
from sqlalchemy import Column, String, Numeric, DateTime, Date, Text, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fieldsales.database import Base, IdType
from fieldsales.utils.formatters import money, iso_date


class OrderStatus(enum.Enum):
    """Order status enum, in lifecycle order."""
    PENDING = "pending"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"


# Field groups of the order form, as (column, JSON name)
OFFICE_FIELDS = (
    ('school_code', 'schoolCode'),
    ('school_name_office', 'schoolNameOffice'),
    ('place_office', 'placeOffice'),
    ('mode_of_order', 'modeOfOrder'),
    ('has_school_order_copy', 'hasSchoolOrderCopy'),
    ('has_distributor_order_copy', 'hasDistributorOrderCopy'),
)
SCHOOL_FIELDS = (
    ('school_name', 'schoolName'),
    ('trust_name', 'trustName'),
    ('board', 'board'),
    ('school_type', 'schoolType'),
    ('address', 'address'),
    ('pincode', 'pincode'),
    ('state', 'state'),
)
CONTACT_FIELDS = (
    ('email_id', 'emailId'),
    ('school_phone', 'schoolPhone'),
    ('principal_name', 'principalName'),
    ('principal_mobile', 'principalMobile'),
    ('correspondent_name', 'correspondentName'),
    ('correspondent_mobile', 'correspondentMobile'),
)
DISPATCH_FIELDS = (
    ('delivery_date', 'deliveryDate'),
    ('transport_name', 'transportName'),
    ('transport_mode', 'transportMode'),
    ('delivery_address', 'deliveryAddress'),
)
ALL_DETAIL_FIELDS = OFFICE_FIELDS + SCHOOL_FIELDS + CONTACT_FIELDS + DISPATCH_FIELDS + (('remarks', 'remarks'),)
# What the holder of a share link may fill in
PUBLIC_DETAIL_FIELDS = SCHOOL_FIELDS + CONTACT_FIELDS + DISPATCH_FIELDS


class Order(Base):
    """
    School order.

    Line items live in `items` as the "<category>-<product>" JSON mapping;
    totals are recomputed by the server on every write and stored.
    """

    __tablename__ = 'school_order'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(IdType, ForeignKey('app_user.id'), nullable=False, index=True)

    # Office use
    school_code = Column(String(64), nullable=True)
    school_name_office = Column(String(255), nullable=True)
    place_office = Column(String(255), nullable=True)
    mode_of_order = Column(String(20), nullable=True)  # SCHOOL, DISTRIBUTOR
    has_school_order_copy = Column(Boolean, nullable=False, default=False)
    has_distributor_order_copy = Column(Boolean, nullable=False, default=False)

    # School
    school_name = Column(String(255), nullable=False, default='')
    trust_name = Column(String(255), nullable=True)
    board = Column(String(100), nullable=True)
    school_type = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    pincode = Column(String(12), nullable=True)
    state = Column(String(100), nullable=True)

    # Contact
    email_id = Column(String(255), nullable=True)
    school_phone = Column(String(20), nullable=True)
    principal_name = Column(String(200), nullable=True)
    principal_mobile = Column(String(20), nullable=True)
    correspondent_name = Column(String(200), nullable=True)
    correspondent_mobile = Column(String(20), nullable=True)

    # Dispatch preferences
    delivery_date = Column(Date, nullable=True)
    transport_name = Column(String(200), nullable=True)
    transport_mode = Column(String(100), nullable=True)
    delivery_address = Column(Text, nullable=True)

    remarks = Column(Text, nullable=True)

    # Items and totals
    items = Column(JSON, nullable=False, default=dict)
    discount_mode = Column(String(10), nullable=False, default='FLAT')  # FLAT, PERCENT
    flat_discount = Column(Numeric(14, 2), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total_discount = Column(Numeric(14, 2), nullable=False, default=0)
    net_amount = Column(Numeric(14, 2), nullable=False, default=0)

    # Lifecycle
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    dispatch_id = Column(IdType, ForeignKey('dispatch.id'), nullable=True, index=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    # Public fill-in
    share_token = Column(String(64), nullable=True, unique=True)
    is_public_filled = Column(Boolean, nullable=False, default=False)
    public_filled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship('AppUser', back_populates='orders')
    dispatch = relationship('Dispatch', back_populates='orders')
    support_requests = relationship('SupportRequest', back_populates='order')

    def __repr__(self):
        return f"<Order(id={self.id}, school='{self.school_name}', status='{self.status}', net={self.net_amount})>"

    @property
    def status_enum(self):
        return OrderStatus(self.status)

    @property
    def is_shareable(self):
        """A share link can still be minted or used."""
        return self.status == OrderStatus.PENDING.value and not self.is_public_filled

    def _details_dict(self, fields):
        data = {}
        for column, name in fields:
            value = getattr(self, column)
            if column == 'delivery_date':
                value = iso_date(value)
            data[name] = value
        return data

    def to_dict(self):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'status': self.status,
            'dispatchId': self.dispatch_id,
            'discountMode': self.discount_mode,
            'flatDiscount': money(self.flat_discount),
            'items': dict(self.items or {}),
            'totalAmount': money(self.total_amount),
            'totalDiscount': money(self.total_discount),
            'netAmount': money(self.net_amount),
            'shareToken': self.share_token,
            'isPublicFilled': bool(self.is_public_filled),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        data.update(self._details_dict(ALL_DETAIL_FIELDS))
        return data

    def to_public_dict(self):
        """Restricted view for the holder of a share link."""
        data = {
            'items': dict(self.items or {}),
            'totalAmount': money(self.total_amount),
            'totalDiscount': money(self.total_discount),
            'netAmount': money(self.net_amount),
            'isPublicFilled': bool(self.is_public_filled),
        }
        data.update(self._details_dict(PUBLIC_DETAIL_FIELDS))
        return data
