"""
Internal helpers shared by the route handlers.

Maps booking errors onto HTTP responses and enforces role checks, so route
handlers only call the lifecycle controllers and let errors propagate.
"""

from __future__ import annotations

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from paddle_booking.errors import (
    AuthError,
    BoatUnavailable,
    BookingError,
    InvalidTransition,
    JobAlreadyAssigned,
    NetworkError,
    NotFound,
    NotJobOwner,
    PermissionDenied,
    StaleStatus,
    ValidationError,
    ZoneInUse,
)
from paddle_booking.schemas.entities import Role, UserProfile

logger = structlog.get_logger(__name__)

# Checked in order; subclasses (WaiverNotAccepted, CapacityExceeded) resolve via ValidationError
ERROR_STATUS_CODES: list[tuple[type[BookingError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (StaleStatus, status.HTTP_409_CONFLICT),
    (BoatUnavailable, status.HTTP_409_CONFLICT),
    (JobAlreadyAssigned, status.HTTP_409_CONFLICT),
    (ZoneInUse, status.HTTP_409_CONFLICT),
    (NotJobOwner, status.HTTP_403_FORBIDDEN),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (NetworkError, status.HTTP_502_BAD_GATEWAY),
]


def status_code_for(error: BookingError) -> int:
    """
    HTTP status for a booking error.

    Example:
        >>> status_code_for(NotFound("missing"))
        404
    """
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render a BookingError as ``{"error": <code>, "detail": <message>}``."""
    status_code = status_code_for(exc)

    log = logger.warning if status_code < 500 else logger.error
    log(
        "request_failed",
        error=exc.code,
        detail=str(exc),
        status=status_code,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content={"error": exc.code, "detail": str(exc)})


def require_role(user: UserProfile, *roles: Role) -> None:
    """
    Ensure the caller holds one of the given roles.

    Raises:
        PermissionDenied: Role not allowed.
    """
    if user.role not in roles:
        raise PermissionDenied(
            f"Requires role {' or '.join(r.value for r in roles)}, caller is {user.role.value}"
        )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_crashed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "detail": "Unexpected server error"},
    )
