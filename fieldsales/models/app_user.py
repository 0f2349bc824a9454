"""AppUser model - sales executives and administrators."""
import enum
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from fieldsales.database import Base, IdType


class UserRole(enum.Enum):
    """Application roles."""
    EXECUTIVE = 'executive'
    ADMIN = 'admin'


class AppUser(Base):
    """Platform user identified by a short login id (e.g. "1001")."""

    __tablename__ = 'app_user'

    id = Column(IdType, primary_key=True, autoincrement=True)
    username = Column(String(64), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.EXECUTIVE.value)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    orders = relationship('Order', back_populates='user')

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'role': self.role,
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, username='{self.username}', role='{self.role}')>"
