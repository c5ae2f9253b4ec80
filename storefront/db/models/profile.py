from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean

from storefront.db.base import Base


class Profile(Base):
    """Customer profile. The triggers read the email for high-value alerts."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
