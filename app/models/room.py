from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.enums import RoomStatus


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint("property_id", "room_number", name="uq_rooms_property_number"),)

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)

    room_number = Column(String(20), nullable=False)
    room_type = Column(String(50), nullable=False)
    floor = Column(Integer, nullable=True)
    capacity = Column(Integer, nullable=False, default=2)
    price_per_night = Column(Numeric(10, 2), nullable=False, default=0)
    amenities = Column(JSON, nullable=False, default=list)
    status = Column(Enum(RoomStatus, name="room_status"), nullable=False, default=RoomStatus.AVAILABLE)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    property = relationship("Property", back_populates="rooms")
    bookings = relationship("Booking", back_populates="room")
