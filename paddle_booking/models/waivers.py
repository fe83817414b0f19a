from sqlalchemy import Column, DateTime, ForeignKey, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from paddle_booking.models.base import Base


class Waiver(Base):
    """Versioned liability waiver; the newest created_at is the current version."""

    __tablename__ = "waivers"

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    version_label = Column(String, nullable=False, unique=True)
    waiver_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class WaiverAcceptance(Base):
    __tablename__ = "waiver_acceptances"

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    waiver_id = Column(UUID, ForeignKey("waivers.id", ondelete="CASCADE"), nullable=False)
    accepted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    signature_file_url = Column(String, nullable=True)
