"""
Reservation lifecycle controller.

Drives the customer/admin-visible reservation state machine and its boat
side effects. Every status write is conditional on the status the caller
read, so a concurrent writer surfaces as StaleStatus instead of being
silently overwritten.

Delivery jobs are not created here: the backend's reservation trigger
inserts a delivery job when a reservation becomes confirmed and a pickup job
when it becomes awaiting_pickup.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from paddle_booking.db.readers.boats import get_boat
from paddle_booking.db.readers.jobs import list_reservation_jobs
from paddle_booking.db.readers.reservations import get_reservation
from paddle_booking.db.readers.users import get_display_name
from paddle_booking.db.readers.waivers import get_latest_waiver, get_waiver, has_accepted_waiver
from paddle_booking.db.readers.zones import get_zone
from paddle_booking.db.writers.boats import update_boat_status
from paddle_booking.db.writers.jobs import update_job_status
from paddle_booking.db.writers.reservations import insert_reservation, update_reservation_status
from paddle_booking.db.writers.waivers import insert_waiver_acceptance
from paddle_booking.errors import (
    BoatUnavailable,
    NotFound,
    PermissionDenied,
    StaleStatus,
    ValidationError,
    WaiverNotAccepted,
)
from paddle_booking.metrics import rejected_transitions, status_transitions
from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import (
    BoatStatus,
    JobStatus,
    Reservation,
    ReservationStatus,
    WaiverAcceptance,
    Zone,
)
from paddle_booking.services.pricing import estimate_trip
from paddle_booking.services.transitions import ensure_reservation_transition
from paddle_booking.utils.datetime import utc_now_iso

logger = structlog.get_logger(__name__)

# Boat is held by the reservation in these states and released on cancel
BOAT_HOLDING_STATUSES = {
    ReservationStatus.CONFIRMED,
    ReservationStatus.IN_PROGRESS,
    ReservationStatus.AWAITING_PICKUP,
}


def load_reservation(client: BackendClient, reservation_id: str) -> Reservation:
    """
    Fetch a reservation or raise NotFound.

    Args:
        client (BackendClient): Backend client.
        reservation_id (str): Reservation id.

    Returns:
        Reservation: The current row.
    """
    reservation = get_reservation(client, reservation_id)
    if reservation is None:
        raise NotFound(f"Reservation {reservation_id} not found")
    return reservation


def _ensure_owner(reservation: Reservation, user_id: Optional[str]) -> None:
    if user_id is not None and reservation.user_id != user_id:
        raise PermissionDenied(f"Reservation {reservation.id} belongs to another user")


def _transition(
    client: BackendClient,
    reservation: Reservation,
    target: ReservationStatus,
    extra: Optional[dict[str, Any]] = None,
) -> Reservation:
    ensure_reservation_transition(reservation.status, target)

    updated = update_reservation_status(client, reservation.id, reservation.status, target, extra)
    if updated is None:
        rejected_transitions.labels(entity="reservation", reason="stale").inc()
        logger.warning(
            "reservation_status_stale",
            reservation_id=reservation.id,
            expected=reservation.status.value,
            target=target.value,
        )
        raise StaleStatus(
            f"Reservation {reservation.id} is no longer '{reservation.status.value}'"
        )

    status_transitions.labels(
        entity="reservation", from_status=reservation.status.value, to_status=target.value
    ).inc()
    logger.info(
        "reservation_status_changed",
        reservation_id=reservation.id,
        from_status=reservation.status.value,
        to_status=target.value,
    )
    return updated


def _require_zone(client: BackendClient, zone_id: Optional[str], label: str) -> Zone:
    if not zone_id:
        raise ValidationError(f"A {label} zone must be selected")
    zone = get_zone(client, zone_id)
    if zone is None:
        raise ValidationError(f"Unknown {label} zone {zone_id}")
    return zone


def accept_waiver(client: BackendClient, user_id: str, waiver_id: str) -> Optional[WaiverAcceptance]:
    """
    Record a user's acceptance of a waiver version.

    Accepting a version the user already accepted is a no-op and returns None.

    Raises:
        NotFound: Unknown waiver version.
    """
    if get_waiver(client, waiver_id) is None:
        raise NotFound(f"Waiver {waiver_id} not found")
    if has_accepted_waiver(client, user_id, waiver_id):
        return None
    return insert_waiver_acceptance(client, user_id, waiver_id)


def create_reservation(
    client: BackendClient,
    user_id: str,
    start_zone_id: Optional[str],
    end_zone_id: Optional[str],
) -> Reservation:
    """
    Request a booking between two zones.

    The user must have accepted the latest published waiver. The advisory
    cost estimate is stored on the new pending reservation.

    Args:
        client (BackendClient): Client acting as the customer.
        user_id (str): Booking customer.
        start_zone_id (Optional[str]): Pickup zone.
        end_zone_id (Optional[str]): Dropoff zone.

    Returns:
        Reservation: The pending reservation.

    Raises:
        ValidationError: Missing or unknown zone.
        WaiverNotAccepted: The latest waiver has not been accepted.
    """
    if not user_id:
        raise ValidationError("A signed-in user is required to book")

    start_zone = _require_zone(client, start_zone_id, "start")
    end_zone = _require_zone(client, end_zone_id, "end")

    waiver = get_latest_waiver(client)
    if waiver is not None and not has_accepted_waiver(client, user_id, waiver.id):
        raise WaiverNotAccepted(f"Waiver {waiver.version_label} must be accepted before booking")

    estimate = estimate_trip(start_zone, end_zone)
    reservation = insert_reservation(
        client,
        {
            "user_id": user_id,
            "start_zone_id": start_zone.id,
            "end_zone_id": end_zone.id,
            "estimated_cost": estimate.estimated_cost,
        },
    )

    status_transitions.labels(
        entity="reservation", from_status="none", to_status=ReservationStatus.PENDING.value
    ).inc()
    logger.info(
        "reservation_created",
        reservation_id=reservation.id,
        user_id=user_id,
        estimated_cost=estimate.estimated_cost,
        is_premium=estimate.is_premium,
    )
    return reservation


def assign_boat(client: BackendClient, reservation_id: str, boat_id: str) -> Reservation:
    """
    Confirm a pending reservation by assigning an available boat.

    The boat is claimed first with a conditional write (available ->
    reserved). If the reservation write then loses a race, the boat claim is
    rolled back before StaleStatus is raised.

    Args:
        client (BackendClient): Client acting as an admin.
        reservation_id (str): Pending reservation.
        boat_id (str): Boat to assign.

    Returns:
        Reservation: The confirmed reservation.

    Raises:
        InvalidTransition: Reservation is not pending.
        BoatUnavailable: Boat is not available.
        StaleStatus: Reservation changed concurrently.
    """
    if not boat_id:
        raise ValidationError("A boat must be selected")

    reservation = load_reservation(client, reservation_id)
    ensure_reservation_transition(reservation.status, ReservationStatus.CONFIRMED)

    boat = get_boat(client, boat_id)
    if boat is None:
        raise NotFound(f"Boat {boat_id} not found")
    if boat.status != BoatStatus.AVAILABLE:
        raise BoatUnavailable(f"Boat {boat.boat_name} is {boat.status.value}")

    if update_boat_status(client, boat_id, BoatStatus.RESERVED, expected=BoatStatus.AVAILABLE) is None:
        raise BoatUnavailable(f"Boat {boat.boat_name} was taken by another reservation")

    try:
        return _transition(
            client, reservation, ReservationStatus.CONFIRMED, extra={"boat_id": boat_id}
        )
    except StaleStatus:
        update_boat_status(client, boat_id, BoatStatus.AVAILABLE, expected=BoatStatus.RESERVED)
        logger.info("boat_claim_rolled_back", boat_id=boat_id, reservation_id=reservation_id)
        raise


def mark_delivered(client: BackendClient, reservation_id: str) -> Reservation:
    """
    Hand the boat to the customer (confirmed -> in_progress).

    Sets start_time when absent and moves the boat to in_use.
    """
    reservation = load_reservation(client, reservation_id)
    extra = {} if reservation.start_time else {"start_time": utc_now_iso()}
    updated = _transition(client, reservation, ReservationStatus.IN_PROGRESS, extra=extra)

    if updated.boat_id:
        update_boat_status(client, updated.boat_id, BoatStatus.IN_USE)
    return updated


def end_ride(
    client: BackendClient, reservation_id: str, user_id: Optional[str] = None
) -> Reservation:
    """
    Customer finishes riding (in_progress -> awaiting_pickup).

    The backend trigger reacts to this write by queueing a pickup job. A
    repeated call fails on the conditional write, so a double click cannot
    queue a second pickup.

    Args:
        client (BackendClient): Client acting as the customer.
        reservation_id (str): Reservation being ridden.
        user_id (Optional[str]): When given, the reservation must belong to this user.

    Returns:
        Reservation: The reservation awaiting pickup.
    """
    reservation = load_reservation(client, reservation_id)
    _ensure_owner(reservation, user_id)
    return _transition(client, reservation, ReservationStatus.AWAITING_PICKUP)


def complete_reservation(client: BackendClient, reservation_id: str) -> Reservation:
    """
    Close a reservation after pickup (awaiting_pickup -> completed).

    Stamps end_time and returns the boat to the available fleet.
    """
    reservation = load_reservation(client, reservation_id)
    updated = _transition(
        client, reservation, ReservationStatus.COMPLETED, extra={"end_time": utc_now_iso()}
    )

    if updated.boat_id:
        update_boat_status(client, updated.boat_id, BoatStatus.AVAILABLE)
    return updated


def cancel_reservation(
    client: BackendClient, reservation_id: str, user_id: Optional[str] = None
) -> Reservation:
    """
    Cancel a reservation from any non-terminal state.

    Releases a held boat and cancels delivery jobs nobody has accepted yet.
    Jobs already accepted by a liaison are left to the liaison and logged.

    Args:
        client (BackendClient): Backend client.
        reservation_id (str): Reservation to cancel.
        user_id (Optional[str]): When given, the reservation must belong to this user.

    Returns:
        Reservation: The canceled reservation.
    """
    reservation = load_reservation(client, reservation_id)
    _ensure_owner(reservation, user_id)
    updated = _transition(client, reservation, ReservationStatus.CANCELED)

    if reservation.boat_id and reservation.status in BOAT_HOLDING_STATUSES:
        update_boat_status(client, reservation.boat_id, BoatStatus.AVAILABLE)

    for job in list_reservation_jobs(client, reservation_id):
        if job.status == JobStatus.AVAILABLE:
            if update_job_status(client, job.id, JobStatus.AVAILABLE, JobStatus.CANCELLED):
                logger.info("delivery_job_cancelled", job_id=job.id, reservation_id=reservation_id)
        elif job.status in (JobStatus.ASSIGNED, JobStatus.IN_PROGRESS):
            logger.warning(
                "reservation_canceled_with_active_job",
                reservation_id=reservation_id,
                customer=get_display_name(client, reservation.user_id),
                job_id=job.id,
                liaison_id=job.liaison_id,
            )

    return updated
