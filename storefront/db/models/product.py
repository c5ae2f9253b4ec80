import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Numeric, Text

from storefront.db.base import Base


class Product(Base):
    """Catalog entry. Only the columns the pricing service reads are mapped."""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    is_archived = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
