from sqlalchemy import Boolean, Column, DateTime, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func

from paddle_booking.models.base import Base


class Zone(Base):
    """
    Named pickup/dropoff location.

    coordinates holds {"center": {"lat": .., "lng": ..}, "radius": metres}
    and may be null for zones not yet placed on the map.
    """

    __tablename__ = "zones"

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    zone_name = Column(String, nullable=False)
    is_premium = Column(Boolean, nullable=False, server_default=text("FALSE"))
    description = Column(String, nullable=True)
    coordinates = Column(JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
