from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.enums import PropertyType


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(150), nullable=False)
    property_type = Column(Enum(PropertyType, name="property_type"), nullable=False)

    address_line1 = Column(String(200), nullable=True)
    address_line2 = Column(String(200), nullable=True)
    city = Column(String(80), nullable=True)
    state = Column(String(80), nullable=True)
    country = Column(String(80), nullable=True)
    postal_code = Column(String(20), nullable=True)
    timezone = Column(String(64), nullable=False, default="Asia/Kolkata")
    gstin = Column(String(20), nullable=True)
    phone = Column(String(32), nullable=True)
    email = Column(String(254), nullable=True)
    website = Column(String(200), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = relationship("User", back_populates="property")
    rooms = relationship("Room", back_populates="property")
