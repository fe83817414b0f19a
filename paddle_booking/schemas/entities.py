"""
Typed row shapes returned by the data-access layer.

Rows arrive from the backend as loosely shaped JSON; readers run them through
paddle_booking.normalizers.rows before validating them into these models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    LIAISON = "liaison"


class BoatStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    AWAITING_PICKUP = "awaiting_pickup"
    COMPLETED = "completed"
    CANCELED = "canceled"


class JobType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class JobStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LatLng(BaseModel):
    lat: float
    lng: float


class UserProfile(BaseModel):
    """Row of the users table; the in-process view of an authenticated identity."""

    id: str
    email: str
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    role: Role = Role.CUSTOMER
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]


class UserSummary(BaseModel):
    """User columns embedded in reservation and job joins."""

    id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None


class Zone(BaseModel):
    id: str
    zone_name: str
    is_premium: bool = False
    description: Optional[str] = None
    center: Optional[LatLng] = None
    radius_m: Optional[float] = None


class Boat(BaseModel):
    id: str
    boat_name: str
    status: BoatStatus = BoatStatus.AVAILABLE
    gps_device_id: Optional[str] = None


class Waiver(BaseModel):
    id: str
    version_label: str
    waiver_text: str
    created_at: Optional[datetime] = None


class WaiverAcceptance(BaseModel):
    id: str
    user_id: str
    waiver_id: str
    accepted_at: Optional[datetime] = None
    signature_file_url: Optional[str] = None


class Reservation(BaseModel):
    id: str
    user_id: str
    boat_id: Optional[str] = None
    status: ReservationStatus
    start_zone_id: Optional[str] = None
    end_zone_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    estimated_cost: Optional[float] = None
    final_cost: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Embedded joins, always optional-single after normalization
    user: Optional[UserSummary] = None
    boat: Optional[Boat] = None
    start_zone: Optional[Zone] = None
    end_zone: Optional[Zone] = None


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Payment(BaseModel):
    id: str
    reservation_id: str
    payment_amount: float
    currency: str = "USD"
    payment_method: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None


class CompanyLiaison(BaseModel):
    id: str
    user_id: str
    is_active: bool = True
    current_job_count: int = 0
    max_concurrent_jobs: int = 1
    current_location: Optional[LatLng] = None

    @property
    def has_capacity(self) -> bool:
        return self.current_job_count < self.max_concurrent_jobs


class DeliveryJob(BaseModel):
    id: str
    reservation_id: str
    liaison_id: Optional[str] = None
    job_type: JobType
    status: JobStatus
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    reservation: Optional[Reservation] = None


class TripEstimate(BaseModel):
    """Advisory pre-booking price."""

    distance_km: float = Field(..., ge=0)
    minutes: int = Field(..., ge=0)
    is_premium: bool
    estimated_cost: int
