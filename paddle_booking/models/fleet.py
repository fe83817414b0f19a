"""SQLAlchemy models for boats and their GPS trail."""

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from paddle_booking.models.base import Base


class Boat(Base):
    """
    ORM model for rentable paddleboats.

    status is reserved while a confirmed reservation waits for delivery,
    in_use while the customer rides, and back to available once the pickup
    completes or the reservation is canceled.
    """

    __tablename__ = "boats"
    __table_args__ = (
        CheckConstraint(
            "status IN ('available', 'reserved', 'in_use', 'maintenance')",
            name="ck_boats_status",
        ),
    )

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    boat_name = Column(String, nullable=False)
    status = Column(String, nullable=False, server_default=text("'available'"), index=True)
    gps_device_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class BoatLocation(Base):
    __tablename__ = "boat_locations"

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    boat_id = Column(UUID, ForeignKey("boats.id", ondelete="CASCADE"), nullable=False, index=True)
    captured_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
