"""SQLAlchemy models for reservations and their payments."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from paddle_booking.models.base import Base


class Reservation(Base):
    """
    ORM model for a customer's boat booking.

    Rows are never deleted; canceled and completed are terminal statuses.
    Status writes fire the delivery-job trigger defined in
    paddle_booking.db.schema.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'awaiting_pickup', "
            "'completed', 'canceled')",
            name="ck_reservations_status",
        ),
    )

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    boat_id = Column(UUID, ForeignKey("boats.id"), nullable=True, index=True)
    status = Column(String, nullable=False, server_default=text("'pending'"), index=True)
    start_zone_id = Column(UUID, ForeignKey("zones.id"), nullable=True)
    end_zone_id = Column(UUID, ForeignKey("zones.id"), nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    distance_traveled = Column(Numeric(10, 2), nullable=True)
    total_minutes = Column(Integer, nullable=True)
    estimated_cost = Column(Numeric(10, 2), nullable=True)
    final_cost = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('pending', 'succeeded', 'failed')", name="ck_payments_status"
        ),
    )

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    reservation_id = Column(
        UUID, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payment_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, server_default=text("'USD'"))
    payment_method = Column(String, nullable=True)
    payment_status = Column(String, nullable=False, server_default=text("'pending'"))
    transaction_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
