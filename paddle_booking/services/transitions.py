"""
Allowed status edges for reservations and delivery jobs.

Reservation:  pending -> confirmed -> in_progress -> awaiting_pickup -> completed,
              any non-terminal state -> canceled.
Delivery job: available -> assigned -> in_progress -> completed,
              available -> cancelled, assigned | in_progress -> available (resign).
"""

from __future__ import annotations

from paddle_booking.errors import InvalidTransition
from paddle_booking.metrics import rejected_transitions
from paddle_booking.schemas.entities import JobStatus, ReservationStatus

RESERVATION_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.IN_PROGRESS, ReservationStatus.CANCELED}
    ),
    ReservationStatus.IN_PROGRESS: frozenset(
        {ReservationStatus.AWAITING_PICKUP, ReservationStatus.CANCELED}
    ),
    ReservationStatus.AWAITING_PICKUP: frozenset(
        {ReservationStatus.COMPLETED, ReservationStatus.CANCELED}
    ),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELED: frozenset(),
}

JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.AVAILABLE: frozenset({JobStatus.ASSIGNED, JobStatus.CANCELLED}),
    JobStatus.ASSIGNED: frozenset({JobStatus.IN_PROGRESS, JobStatus.AVAILABLE}),
    JobStatus.IN_PROGRESS: frozenset({JobStatus.COMPLETED, JobStatus.AVAILABLE}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


def is_terminal_reservation(status: ReservationStatus) -> bool:
    return not RESERVATION_TRANSITIONS[status]


def is_terminal_job(status: JobStatus) -> bool:
    return not JOB_TRANSITIONS[status]


def ensure_reservation_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    """
    Reject a reservation status change that is not an allowed edge.

    Raises:
        InvalidTransition: If target is not reachable from current in one step.
    """
    if target not in RESERVATION_TRANSITIONS[current]:
        rejected_transitions.labels(entity="reservation", reason="invalid").inc()
        raise InvalidTransition("reservation", current.value, target.value)


def ensure_job_transition(current: JobStatus, target: JobStatus) -> None:
    """
    Reject a delivery job status change that is not an allowed edge.

    Raises:
        InvalidTransition: If target is not reachable from current in one step.
    """
    if target not in JOB_TRANSITIONS[current]:
        rejected_transitions.labels(entity="delivery_job", reason="invalid").inc()
        raise InvalidTransition("delivery job", current.value, target.value)
