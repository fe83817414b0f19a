"""Exceptions raised by the booking services and data-access layer."""

from __future__ import annotations

from typing import Optional


class BookingError(Exception):
    """Base exception for booking errors."""

    code = "booking_error"


class ValidationError(BookingError):
    """Malformed input, e.g. a missing required selection."""

    code = "validation_error"


class WaiverNotAccepted(ValidationError):
    """The user has not accepted the latest waiver version."""

    code = "waiver_not_accepted"


class CapacityExceeded(ValidationError):
    """The liaison already carries their maximum number of jobs."""

    code = "capacity_exceeded"


class NotFound(BookingError):
    """A referenced row does not exist or is not visible to the caller."""

    code = "not_found"


class InvalidTransition(BookingError):
    """Status change is not permitted from the current state."""

    code = "invalid_transition"

    def __init__(self, entity: str, current: str, target: str) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"Cannot move {entity} from '{current}' to '{target}'")


class StaleStatus(BookingError):
    """A concurrent writer changed the status before our write landed."""

    code = "stale_status"


class BoatUnavailable(BookingError):
    code = "boat_unavailable"


class ZoneInUse(BookingError):
    """The zone is still referenced by reservations."""

    code = "zone_in_use"


class JobAlreadyAssigned(BookingError):
    code = "job_already_assigned"


class NotJobOwner(BookingError):
    code = "not_job_owner"


class AuthError(BookingError):
    """Credential or session failure."""

    code = "auth_error"


class PermissionDenied(BookingError):
    """The authenticated user's role does not allow the operation."""

    code = "permission_denied"


class NetworkError(BookingError):
    """Transport or backend failure."""

    code = "network_error"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
