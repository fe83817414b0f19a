"""SQLAlchemy model for user profiles."""

from sqlalchemy import CheckConstraint, Column, DateTime, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from paddle_booking.models.base import Base


class User(Base):
    """
    Profile row for an authenticated identity.

    The primary key equals the identity provider's user id. Role is set when
    the row is first created (customer by default) and drives which
    dashboards and operations the user can reach.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('customer', 'admin', 'liaison')", name="ck_users_role"),
    )

    id = Column(UUID, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    full_name = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    role = Column(String, nullable=False, server_default=text("'customer'"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
