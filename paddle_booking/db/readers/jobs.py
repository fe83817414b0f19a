from typing import Iterable, Optional

from paddle_booking.network.client import BackendClient
from paddle_booking.normalizers.rows import normalize_job_row
from paddle_booking.schemas.entities import DeliveryJob, JobStatus

JOB_COLUMNS = (
    "*,"
    "reservation:reservation_id("
    "id,user_id,boat_id,status,start_zone_id,end_zone_id,"
    "user:user_id(id,email,full_name,phone_number),"
    "start_zone:start_zone_id(*),"
    "end_zone:end_zone_id(*)"
    ")"
)


def get_job(client: BackendClient, job_id: str) -> Optional[DeliveryJob]:
    """
    Fetch one delivery job with its reservation.

    Args:
        client (BackendClient): Backend client.
        job_id (str): Delivery job id.

    Returns:
        Optional[DeliveryJob]: Job or None if not found.
    """
    rows = client.select("delivery_jobs", columns=JOB_COLUMNS, filters={"id": job_id}, limit=1)
    return DeliveryJob.model_validate(normalize_job_row(rows[0])) if rows else None


def list_available_jobs(client: BackendClient) -> list[DeliveryJob]:
    """
    Fetch the open job queue, oldest first.

    Args:
        client (BackendClient): Backend client.

    Returns:
        list[DeliveryJob]: Jobs in status available.
    """
    rows = client.select(
        "delivery_jobs",
        columns=JOB_COLUMNS,
        filters={"status": JobStatus.AVAILABLE.value},
        order="created_at",
    )
    return [DeliveryJob.model_validate(normalize_job_row(row)) for row in rows]


def list_liaison_jobs(
    client: BackendClient,
    liaison_id: str,
    statuses: Iterable[JobStatus] = (JobStatus.ASSIGNED, JobStatus.IN_PROGRESS),
) -> list[DeliveryJob]:
    """
    Fetch jobs held by a liaison.

    Args:
        client (BackendClient): Backend client.
        liaison_id (str): Liaison profile id.
        statuses (Iterable[JobStatus]): Statuses to include (default: active work).

    Returns:
        list[DeliveryJob]: The liaison's jobs, oldest assignment first.
    """
    rows = client.select(
        "delivery_jobs",
        columns=JOB_COLUMNS,
        filters={"liaison_id": liaison_id, "status": [s.value for s in statuses]},
        order="assigned_at",
    )
    return [DeliveryJob.model_validate(normalize_job_row(row)) for row in rows]


def list_reservation_jobs(client: BackendClient, reservation_id: str) -> list[DeliveryJob]:
    rows = client.select(
        "delivery_jobs", filters={"reservation_id": reservation_id}, order="created_at"
    )
    return [DeliveryJob.model_validate(normalize_job_row(row)) for row in rows]
