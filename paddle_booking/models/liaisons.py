"""SQLAlchemy models for delivery liaisons and the jobs they fulfil."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func

from paddle_booking.models.base import Base


class CompanyLiaison(Base):
    """
    Delivery-executive profile attached to a user.

    current_job_count is only changed by the assign_delivery_job and
    update_delivery_job_assignment functions, which keep it within
    [0, max_concurrent_jobs].
    """

    __tablename__ = "company_liaisons"
    __table_args__ = (
        CheckConstraint("current_job_count >= 0", name="ck_company_liaisons_job_count"),
    )

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(
        UUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    is_active = Column(Boolean, nullable=False, server_default=text("TRUE"))
    current_location = Column(JSONB, nullable=True)
    current_job_count = Column(Integer, nullable=False, server_default=text("0"))
    max_concurrent_jobs = Column(Integer, nullable=False, server_default=text("3"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class DeliveryJob(Base):
    """
    A delivery or pickup of a reservation's boat, fulfilled by one liaison.

    Jobs are inserted by the reservation status trigger. The partial unique
    index keeps at most one open job per reservation and job type, so a
    repeated status write cannot create a duplicate pickup.
    """

    __tablename__ = "delivery_jobs"
    __table_args__ = (
        CheckConstraint("job_type IN ('delivery', 'pickup')", name="ck_delivery_jobs_type"),
        CheckConstraint(
            "status IN ('available', 'assigned', 'in_progress', 'completed', 'cancelled')",
            name="ck_delivery_jobs_status",
        ),
        Index(
            "uq_delivery_jobs_open_per_type",
            "reservation_id",
            "job_type",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    reservation_id = Column(
        UUID, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    liaison_id = Column(UUID, ForeignKey("company_liaisons.id"), nullable=True, index=True)
    job_type = Column(String, nullable=False)
    status = Column(String, nullable=False, server_default=text("'available'"), index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class BoatDelivery(Base):
    __tablename__ = "boat_deliveries"

    id = Column(UUID, primary_key=True, server_default=text("gen_random_uuid()"))
    reservation_id = Column(
        UUID, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    liaison_id = Column(UUID, ForeignKey("company_liaisons.id"), nullable=True)
    delivery_status = Column(String, nullable=False, server_default=text("'assigned'"))
    estimated_arrival = Column(DateTime(timezone=True), nullable=True)
    actual_arrival = Column(DateTime(timezone=True), nullable=True)
    pickup_time = Column(DateTime(timezone=True), nullable=True)
