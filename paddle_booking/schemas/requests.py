from typing import Optional

from pydantic import BaseModel, Field


class LoginPayload(BaseModel):
    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Account password")


class SignupPayload(BaseModel):
    email: str = Field(..., description="Account email")
    password: str = Field(..., min_length=6, description="Account password")
    full_name: Optional[str] = Field(None, description="Display name stored on the profile")


class TripEstimatePayload(BaseModel):
    start_zone_id: str = Field(..., description="Pickup zone")
    end_zone_id: str = Field(..., description="Dropoff zone")
    minutes: Optional[int] = Field(None, ge=0, description="Known duration; estimated when omitted")


class ReservationCreatePayload(BaseModel):
    """
    Schema for requesting a booking. Both zones are required; a missing zone
    is reported as a validation error by the lifecycle controller.
    """

    start_zone_id: Optional[str] = Field(None, description="Pickup zone")
    end_zone_id: Optional[str] = Field(None, description="Dropoff zone")


class AssignBoatPayload(BaseModel):
    boat_id: str = Field(..., description="Boat to assign to the reservation")


class LiaisonRegisterPayload(BaseModel):
    max_concurrent_jobs: Optional[int] = Field(
        None, ge=1, description="Workload ceiling; server default when omitted"
    )


class LocationPayload(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class OAuthCallbackPayload(BaseModel):
    access_token: str = Field(..., description="Token from the OAuth redirect fragment")


class ZoneCreatePayload(BaseModel):
    zone_name: str = Field(..., min_length=1, description="Name shown to customers")
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    is_premium: bool = Field(False, description="Apply the premium price multiplier")
    description: Optional[str] = None
    radius_m: Optional[float] = Field(None, gt=0, description="Zone radius in metres")
