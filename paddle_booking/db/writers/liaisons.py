from typing import Optional

import structlog

from paddle_booking.network.client import BackendClient
from paddle_booking.normalizers.rows import normalize_liaison_row
from paddle_booking.schemas.entities import CompanyLiaison

logger = structlog.get_logger(__name__)


def insert_liaison(client: BackendClient, user_id: str, max_concurrent_jobs: int) -> CompanyLiaison:
    """
    Create a liaison profile for a user.

    Args:
        client (BackendClient): Backend client.
        user_id (str): User id.
        max_concurrent_jobs (int): Workload ceiling.

    Returns:
        CompanyLiaison: Stored profile with a zero job count.
    """
    rows = client.insert(
        "company_liaisons",
        [
            {
                "user_id": user_id,
                "is_active": True,
                "current_job_count": 0,
                "max_concurrent_jobs": max_concurrent_jobs,
            }
        ],
    )
    logger.info("liaison_registered", user_id=user_id, liaison_id=rows[0].get("id"))
    return CompanyLiaison.model_validate(normalize_liaison_row(rows[0]))


def update_liaison_location(
    client: BackendClient, liaison_id: str, lat: float, lng: float
) -> Optional[CompanyLiaison]:
    rows = client.update(
        "company_liaisons", {"current_location": {"lat": lat, "lng": lng}}, {"id": liaison_id}
    )
    return CompanyLiaison.model_validate(normalize_liaison_row(rows[0])) if rows else None
