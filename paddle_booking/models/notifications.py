from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text, text
from sqlalchemy.dialects.postgresql import UUID

from paddle_booking.models.base import Base


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint("channel IN ('email', 'sms', 'push')", name="ck_notifications_channel"),
    )

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    notification_type = Column(String, nullable=False)
    channel = Column(String, nullable=False)
    message_content = Column(Text, nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
