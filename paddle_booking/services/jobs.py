"""
Delivery job lifecycle controller.

Liaisons accept jobs from the open queue, start them, and either complete or
resign them. Acceptance, resignation and completion go through database
functions that lock the job row and keep the liaison's workload counter in
step with the jobs they hold. Completing a job cascades into the reservation:
a delivery puts the reservation in progress, a pickup closes it.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from paddle_booking.config import DEFAULT_MAX_CONCURRENT_JOBS
from paddle_booking.db.readers.jobs import get_job, list_available_jobs, list_liaison_jobs
from paddle_booking.db.readers.liaisons import get_liaison, get_liaison_by_user
from paddle_booking.db.writers.jobs import assign_job, update_job_assignment, update_job_status
from paddle_booking.db.writers.liaisons import insert_liaison, update_liaison_location
from paddle_booking.db.writers.users import update_user_role
from paddle_booking.errors import (
    CapacityExceeded,
    InvalidTransition,
    JobAlreadyAssigned,
    NetworkError,
    NotFound,
    NotJobOwner,
    PermissionDenied,
    StaleStatus,
    ValidationError,
)
from paddle_booking.metrics import job_assignments, rejected_transitions, status_transitions
from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import (
    CompanyLiaison,
    DeliveryJob,
    JobStatus,
    JobType,
    ReservationStatus,
    Role,
)
from paddle_booking.services import reservations
from paddle_booking.services.transitions import ensure_job_transition

logger = structlog.get_logger(__name__)


def load_job(client: BackendClient, job_id: str) -> DeliveryJob:
    job = get_job(client, job_id)
    if job is None:
        raise NotFound(f"Delivery job {job_id} not found")
    return job


def require_liaison(client: BackendClient, user_id: str) -> CompanyLiaison:
    """
    Resolve the liaison profile of a user.

    Raises:
        PermissionDenied: The user has no liaison profile or it is inactive.
    """
    liaison = get_liaison_by_user(client, user_id)
    if liaison is None:
        raise PermissionDenied("Liaison profile required")
    if not liaison.is_active:
        raise PermissionDenied("Liaison profile is inactive")
    return liaison


def register_liaison(
    client: BackendClient,
    user_id: str,
    max_concurrent_jobs: Optional[int] = None,
) -> CompanyLiaison:
    """
    Create a liaison profile for a user and switch their role to liaison.

    Registering twice returns the existing profile unchanged.

    Args:
        client (BackendClient): Backend client.
        user_id (str): User to register.
        max_concurrent_jobs (Optional[int]): Workload ceiling, defaults to config.

    Returns:
        CompanyLiaison: The liaison profile.
    """
    existing = get_liaison_by_user(client, user_id)
    if existing is not None:
        return existing

    limit = DEFAULT_MAX_CONCURRENT_JOBS if max_concurrent_jobs is None else max_concurrent_jobs
    if limit < 1:
        raise ValidationError("max_concurrent_jobs must be at least 1")

    liaison = insert_liaison(client, user_id, limit)
    update_user_role(client, user_id, Role.LIAISON)
    return liaison


def update_location(
    client: BackendClient, liaison: CompanyLiaison, lat: float, lng: float
) -> CompanyLiaison:
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError("Coordinates out of range")
    updated = update_liaison_location(client, liaison.id, lat, lng)
    if updated is None:
        raise NotFound(f"Liaison {liaison.id} not found")
    return updated


def available_jobs(client: BackendClient) -> list[DeliveryJob]:
    return list_available_jobs(client)


def assigned_jobs(client: BackendClient, liaison: CompanyLiaison) -> list[DeliveryJob]:
    return list_liaison_jobs(client, liaison.id)


def _record_transition(job: DeliveryJob, target: JobStatus, liaison_id: str) -> None:
    status_transitions.labels(
        entity="delivery_job", from_status=job.status.value, to_status=target.value
    ).inc()
    logger.info(
        "delivery_job_status_changed",
        job_id=job.id,
        job_type=job.job_type.value,
        liaison_id=liaison_id,
        from_status=job.status.value,
        to_status=target.value,
    )


def _ensure_owner(job: DeliveryJob, liaison: CompanyLiaison) -> None:
    if job.liaison_id != liaison.id:
        rejected_transitions.labels(entity="delivery_job", reason="not_owner").inc()
        raise NotJobOwner(f"Delivery job {job.id} is not assigned to you")


def _raise_for_assignment_result(result: dict[str, Any], job_id: str) -> None:
    code = result.get("code")
    message = result.get("message") or f"Delivery job {job_id} could not be updated"

    if code == "not_found":
        raise NotFound(message)
    if code == "job_unavailable":
        raise JobAlreadyAssigned(message)
    if code == "capacity_reached":
        raise CapacityExceeded(message)
    if code == "liaison_inactive":
        raise PermissionDenied(message)
    if code == "not_owner":
        raise NotJobOwner(message)
    if code == "invalid_status":
        raise StaleStatus(message)
    raise NetworkError(f"Unexpected job function response: {result}")


def accept_job(client: BackendClient, liaison: CompanyLiaison, job_id: str) -> DeliveryJob:
    """
    Claim an available job for a liaison.

    The pre-checks below only give early, specific errors; the assignment
    itself is decided by the assign_delivery_job function under a row lock,
    so of two concurrent accepts exactly one succeeds.

    Args:
        client (BackendClient): Client acting as the liaison.
        liaison (CompanyLiaison): Accepting liaison.
        job_id (str): Job to accept.

    Returns:
        DeliveryJob: The job, now assigned to the liaison.

    Raises:
        CapacityExceeded: Liaison already holds max_concurrent_jobs jobs.
        JobAlreadyAssigned: Another liaison got there first.
        InvalidTransition: Job is completed or cancelled.
    """
    job = load_job(client, job_id)
    if job.status in (JobStatus.ASSIGNED, JobStatus.IN_PROGRESS):
        job_assignments.labels(outcome="job_unavailable").inc()
        raise JobAlreadyAssigned(f"Delivery job {job_id} is already assigned")
    ensure_job_transition(job.status, JobStatus.ASSIGNED)

    current = get_liaison(client, liaison.id) or liaison
    if not current.has_capacity:
        job_assignments.labels(outcome="capacity_reached").inc()
        raise CapacityExceeded(
            f"You already have {current.current_job_count} of "
            f"{current.max_concurrent_jobs} jobs"
        )

    result = assign_job(client, job_id, liaison.id)
    if not result.get("success"):
        job_assignments.labels(outcome=str(result.get("code"))).inc()
        logger.info(
            "delivery_job_accept_rejected",
            job_id=job_id,
            liaison_id=liaison.id,
            code=result.get("code"),
        )
        _raise_for_assignment_result(result, job_id)

    job_assignments.labels(outcome="assigned").inc()
    _record_transition(job, JobStatus.ASSIGNED, liaison.id)
    return load_job(client, job_id)


def start_job(client: BackendClient, liaison: CompanyLiaison, job_id: str) -> DeliveryJob:
    """
    Begin work on an assigned job (assigned -> in_progress).

    Starting a delivery hands the boat over, so the reservation moves to
    in_progress as well.
    """
    job = load_job(client, job_id)
    _ensure_owner(job, liaison)
    ensure_job_transition(job.status, JobStatus.IN_PROGRESS)

    if job.job_type == JobType.DELIVERY:
        reservation = reservations.load_reservation(client, job.reservation_id)
        if reservation.status not in (ReservationStatus.CONFIRMED, ReservationStatus.IN_PROGRESS):
            raise InvalidTransition(
                "reservation", reservation.status.value, ReservationStatus.IN_PROGRESS.value
            )

    updated = update_job_status(
        client, job_id, job.status, JobStatus.IN_PROGRESS, liaison_id=liaison.id
    )
    if updated is None:
        rejected_transitions.labels(entity="delivery_job", reason="stale").inc()
        raise StaleStatus(f"Delivery job {job_id} is no longer '{job.status.value}'")
    _record_transition(job, JobStatus.IN_PROGRESS, liaison.id)

    if job.job_type == JobType.DELIVERY:
        _ensure_reservation_delivered(client, job.reservation_id)
    return updated


def _ensure_reservation_delivered(client: BackendClient, reservation_id: str) -> None:
    reservation = reservations.load_reservation(client, reservation_id)
    if reservation.status == ReservationStatus.CONFIRMED:
        reservations.mark_delivered(client, reservation_id)


def complete_job(client: BackendClient, liaison: CompanyLiaison, job_id: str) -> DeliveryJob:
    """
    Finish an in-progress job and free one workload slot.

    A completed pickup closes the reservation and returns the boat to the
    fleet; a completed delivery leaves the reservation in progress.

    Args:
        client (BackendClient): Client acting as the liaison.
        liaison (CompanyLiaison): Owning liaison.
        job_id (str): Job to complete.

    Returns:
        DeliveryJob: The completed job.
    """
    job = load_job(client, job_id)
    _ensure_owner(job, liaison)
    ensure_job_transition(job.status, JobStatus.COMPLETED)

    result = update_job_assignment(client, job_id, liaison.id, JobStatus.COMPLETED)
    if not result.get("success"):
        _raise_for_assignment_result(result, job_id)
    _record_transition(job, JobStatus.COMPLETED, liaison.id)

    if job.job_type == JobType.PICKUP:
        reservation = reservations.load_reservation(client, job.reservation_id)
        if reservation.status == ReservationStatus.AWAITING_PICKUP:
            reservations.complete_reservation(client, job.reservation_id)
        else:
            logger.warning(
                "pickup_completed_for_unexpected_reservation",
                job_id=job_id,
                reservation_id=job.reservation_id,
                reservation_status=reservation.status.value,
            )
    else:
        _ensure_reservation_delivered(client, job.reservation_id)

    return load_job(client, job_id)


def resign_job(client: BackendClient, liaison: CompanyLiaison, job_id: str) -> DeliveryJob:
    """
    Hand a job back to the open queue and free one workload slot.

    Raises:
        NotJobOwner: The job is held by someone else; it is left untouched.
        InvalidTransition: The job is not assigned or in progress.
    """
    job = load_job(client, job_id)
    _ensure_owner(job, liaison)
    ensure_job_transition(job.status, JobStatus.AVAILABLE)

    result = update_job_assignment(client, job_id, liaison.id, JobStatus.AVAILABLE)
    if not result.get("success"):
        _raise_for_assignment_result(result, job_id)
    _record_transition(job, JobStatus.AVAILABLE, liaison.id)

    return load_job(client, job_id)


def cancel_job(client: BackendClient, job_id: str) -> DeliveryJob:
    """Withdraw a job nobody has accepted (available -> cancelled)."""
    job = load_job(client, job_id)
    ensure_job_transition(job.status, JobStatus.CANCELLED)

    updated = update_job_status(client, job_id, JobStatus.AVAILABLE, JobStatus.CANCELLED)
    if updated is None:
        rejected_transitions.labels(entity="delivery_job", reason="stale").inc()
        raise StaleStatus(f"Delivery job {job_id} is no longer available")

    status_transitions.labels(
        entity="delivery_job",
        from_status=JobStatus.AVAILABLE.value,
        to_status=JobStatus.CANCELLED.value,
    ).inc()
    logger.info("delivery_job_cancelled", job_id=job_id, reservation_id=job.reservation_id)
    return updated
