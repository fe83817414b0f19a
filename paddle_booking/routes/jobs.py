"""
Liaison endpoints: liaison profile management and the delivery job queue.

All job mutations act as the liaison profile of the signed-in user.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from paddle_booking.db.readers.liaisons import get_liaison_by_user
from paddle_booking.dependencies import get_current_user, get_user_client
from paddle_booking.errors import NotFound
from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import CompanyLiaison, DeliveryJob, UserProfile
from paddle_booking.schemas.requests import LiaisonRegisterPayload, LocationPayload
from paddle_booking.services import jobs

logger = structlog.get_logger(__name__)

liaisons_router = APIRouter()
jobs_router = APIRouter()


def current_liaison(
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> CompanyLiaison:
    """Liaison profile of the caller; 403 if they are not an active liaison."""
    return jobs.require_liaison(client, user.id)


@liaisons_router.post("", status_code=status.HTTP_201_CREATED)
def register(
    payload: LiaisonRegisterPayload,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> CompanyLiaison:
    return jobs.register_liaison(client, user.id, payload.max_concurrent_jobs)


@liaisons_router.get("/me")
def my_profile(
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> CompanyLiaison:
    liaison = get_liaison_by_user(client, user.id)
    if liaison is None:
        raise NotFound("No liaison profile for this user")
    return liaison


@liaisons_router.patch("/me/location")
def update_location(
    payload: LocationPayload,
    liaison: CompanyLiaison = Depends(current_liaison),
    client: BackendClient = Depends(get_user_client),
) -> CompanyLiaison:
    return jobs.update_location(client, liaison, payload.lat, payload.lng)


@jobs_router.get("/available")
def available(
    liaison: CompanyLiaison = Depends(current_liaison),
    client: BackendClient = Depends(get_user_client),
) -> list[DeliveryJob]:
    """Open job queue, oldest first."""
    return jobs.available_jobs(client)


@jobs_router.get("/assigned")
def assigned(
    liaison: CompanyLiaison = Depends(current_liaison),
    client: BackendClient = Depends(get_user_client),
) -> list[DeliveryJob]:
    """The caller's assigned and in-progress jobs."""
    return jobs.assigned_jobs(client, liaison)


@jobs_router.post("/{job_id}/accept")
def accept(
    job_id: str,
    liaison: CompanyLiaison = Depends(current_liaison),
    client: BackendClient = Depends(get_user_client),
) -> DeliveryJob:
    """
    Claim an available job.

    Raises:
        JobAlreadyAssigned (409): Another liaison accepted it first
        CapacityExceeded (422): Caller already holds max_concurrent_jobs jobs
    """
    return jobs.accept_job(client, liaison, job_id)


@jobs_router.post("/{job_id}/start")
def start(
    job_id: str,
    liaison: CompanyLiaison = Depends(current_liaison),
    client: BackendClient = Depends(get_user_client),
) -> DeliveryJob:
    return jobs.start_job(client, liaison, job_id)


@jobs_router.post("/{job_id}/complete")
def complete(
    job_id: str,
    liaison: CompanyLiaison = Depends(current_liaison),
    client: BackendClient = Depends(get_user_client),
) -> DeliveryJob:
    return jobs.complete_job(client, liaison, job_id)


@jobs_router.post("/{job_id}/resign")
def resign(
    job_id: str,
    liaison: CompanyLiaison = Depends(current_liaison),
    client: BackendClient = Depends(get_user_client),
) -> DeliveryJob:
    """Hand a job back to the queue; 403 if it belongs to someone else."""
    return jobs.resign_job(client, liaison, job_id)
