from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.enums import UserType
from app.models.role import user_roles


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)

    full_name = Column(String(120), nullable=False)
    email = Column(String(254), unique=True, index=True, nullable=True)
    phone = Column(String(32), nullable=True)
    user_type = Column(Enum(UserType, name="user_type"), nullable=False, default=UserType.STAFF)
    password_hash = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    last_login = Column(DateTime, nullable=True)
    email_verified_at = Column(DateTime, nullable=True)
    # single refresh token per user; issuing a new one overwrites the previous
    refresh_token = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    roles = relationship("Role", secondary=user_roles, back_populates="users", order_by="Role.name")
    property = relationship("Property", back_populates="users")
