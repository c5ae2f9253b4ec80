import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey

from storefront.db.base import Base


class Role(Base):
    """A named capability bucket (superadmin, owner, cashier, user)."""
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Role {self.name}>"


class UserRole(Base):
    """Assignment of a role to a user. A user may hold zero or more roles."""
    __tablename__ = "user_roles"

    user_id = Column(String(36), primary_key=True)
    role_id = Column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True, index=True)
    assigned_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<UserRole user={self.user_id} role={self.role_id}>"
