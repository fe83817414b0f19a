from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from paddle_booking.db.readers.payments import list_reservation_payments
from paddle_booking.db.readers.reservations import list_reservations, list_user_reservations
from paddle_booking.dependencies import get_current_user, get_user_client
from paddle_booking.errors import PermissionDenied
from paddle_booking.network.client import BackendClient
from paddle_booking.routes._helpers import require_role
from paddle_booking.schemas.entities import (
    Payment,
    Reservation,
    ReservationStatus,
    Role,
    UserProfile,
)
from paddle_booking.schemas.requests import AssignBoatPayload, ReservationCreatePayload
from paddle_booking.services import reservations as lifecycle

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreatePayload,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Reservation:
    """
    Request a booking between two zones.

    Returns:
        Reservation: The pending reservation with its estimated cost

    Raises:
        ValidationError (422): A zone is missing or unknown
        WaiverNotAccepted (422): The latest waiver has not been accepted
    """
    return lifecycle.create_reservation(
        client, user.id, payload.start_zone_id, payload.end_zone_id
    )


@router.get("")
def all_reservations(
    reservation_status: Optional[ReservationStatus] = Query(None, alias="status"),
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> list[Reservation]:
    """Admin view of all reservations, newest first."""
    require_role(user, Role.ADMIN)
    return list_reservations(client, reservation_status)


@router.get("/mine")
def my_reservations(
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> list[Reservation]:
    return list_user_reservations(client, user.id)


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Reservation:
    reservation = lifecycle.load_reservation(client, reservation_id)
    if user.role == Role.CUSTOMER and reservation.user_id != user.id:
        raise PermissionDenied(f"Reservation {reservation_id} belongs to another user")
    return reservation


@router.get("/{reservation_id}/payments")
def reservation_payments(
    reservation_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> list[Payment]:
    """Payments recorded for a reservation; visible to its owner and admins."""
    reservation = lifecycle.load_reservation(client, reservation_id)
    if user.role != Role.ADMIN and reservation.user_id != user.id:
        raise PermissionDenied(f"Reservation {reservation_id} belongs to another user")
    return list_reservation_payments(client, reservation_id)


@router.post("/{reservation_id}/assign-boat")
def assign_boat(
    reservation_id: str,
    payload: AssignBoatPayload,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Reservation:
    """
    Confirm a pending reservation with an available boat.

    Raises:
        InvalidTransition (409): Reservation is not pending
        BoatUnavailable (409): Boat is not available
    """
    require_role(user, Role.ADMIN)
    return lifecycle.assign_boat(client, reservation_id, payload.boat_id)


@router.post("/{reservation_id}/delivered")
def mark_delivered(
    reservation_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Reservation:
    require_role(user, Role.ADMIN, Role.LIAISON)
    return lifecycle.mark_delivered(client, reservation_id)


@router.post("/{reservation_id}/end-ride")
def end_ride(
    reservation_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Reservation:
    """Finish riding; queues a pickup job for a liaison."""
    return lifecycle.end_ride(client, reservation_id, user_id=user.id)


@router.post("/{reservation_id}/complete")
def complete(
    reservation_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Reservation:
    require_role(user, Role.ADMIN, Role.LIAISON)
    return lifecycle.complete_reservation(client, reservation_id)


@router.post("/{reservation_id}/cancel")
def cancel(
    reservation_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Reservation:
    """Cancel a reservation; customers may only cancel their own."""
    owner = None if user.role == Role.ADMIN else user.id
    return lifecycle.cancel_reservation(client, reservation_id, user_id=owner)
