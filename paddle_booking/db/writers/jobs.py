"""
Delivery job mutations.

Assignment and workload accounting go through database functions that lock
the job row; only the owner-scoped start transition is a plain conditional
update.
"""

from typing import Any, Optional

import structlog

from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import DeliveryJob, JobStatus

logger = structlog.get_logger(__name__)


def update_job_status(
    client: BackendClient,
    job_id: str,
    expected: JobStatus,
    target: JobStatus,
    liaison_id: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> Optional[DeliveryJob]:
    """
    Compare-and-set a job's status, optionally scoped to its owning liaison.

    Args:
        client (BackendClient): Backend client.
        job_id (str): Delivery job id.
        expected (JobStatus): Status the caller read.
        target (JobStatus): Status to write.
        liaison_id (Optional[str]): Required owner, if any.
        extra (Optional[dict[str, Any]]): Additional columns.

    Returns:
        Optional[DeliveryJob]: Updated job, or None if nothing matched.
    """
    filters: dict[str, Any] = {"id": job_id, "status": expected.value}
    if liaison_id is not None:
        filters["liaison_id"] = liaison_id

    rows = client.update("delivery_jobs", {**(extra or {}), "status": target.value}, filters)
    return DeliveryJob.model_validate(rows[0]) if rows else None


def assign_job(client: BackendClient, job_id: str, liaison_id: str) -> dict[str, Any]:
    """
    Atomically assign an available job to a liaison.

    Calls the assign_delivery_job database function, which locks the job row,
    checks it is still available and the liaison has capacity, assigns it and
    increments the liaison's job count in one transaction.

    Args:
        client (BackendClient): Client acting as the liaison.
        job_id (str): Delivery job id.
        liaison_id (str): Accepting liaison's profile id.

    Returns:
        dict[str, Any]: {"success": bool, "code": str, "message": str}
    """
    result = client.rpc(
        "assign_delivery_job", {"job_id": job_id, "assign_to_liaison_id": liaison_id}
    )
    return result if isinstance(result, dict) else {"success": False, "code": "invalid_response"}


def update_job_assignment(
    client: BackendClient, job_id: str, liaison_id: str, new_status: JobStatus
) -> dict[str, Any]:
    """
    Atomically release a job (resign or complete) and free one workload slot.

    Calls the update_delivery_job_assignment database function, which
    re-checks ownership under a row lock and floors the job count at zero.

    Args:
        client (BackendClient): Client acting as the liaison.
        job_id (str): Delivery job id.
        liaison_id (str): Owning liaison's profile id.
        new_status (JobStatus): available (resign) or completed.

    Returns:
        dict[str, Any]: {"success": bool, "code": str, "message": str}
    """
    result = client.rpc(
        "update_delivery_job_assignment",
        {"job_id": job_id, "for_liaison_id": liaison_id, "new_status": new_status.value},
    )
    return result if isinstance(result, dict) else {"success": False, "code": "invalid_response"}
