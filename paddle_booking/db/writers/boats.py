from typing import Any, Optional

import structlog

from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import Boat, BoatStatus

logger = structlog.get_logger(__name__)


def update_boat_status(
    client: BackendClient,
    boat_id: str,
    status: BoatStatus,
    expected: Optional[BoatStatus] = None,
) -> Optional[Boat]:
    """
    Set a boat's status, optionally only if it currently has another status.

    Args:
        client (BackendClient): Backend client.
        boat_id (str): Boat id.
        status (BoatStatus): New status.
        expected (Optional[BoatStatus]): Required current status; None means unconditional.

    Returns:
        Optional[Boat]: Updated boat, or None if no row matched.
    """
    filters: dict[str, Any] = {"id": boat_id}
    if expected is not None:
        filters["status"] = expected.value

    rows = client.update("boats", {"status": status.value}, filters)
    if not rows:
        logger.info("boat_status_unchanged", boat_id=boat_id, target=status.value)
        return None

    logger.info("boat_status_updated", boat_id=boat_id, status=status.value)
    return Boat.model_validate(rows[0])


def insert_boats(client: BackendClient, data: list[dict[str, Any]]) -> list[Boat]:
    """Insert boat rows (sample data and fleet onboarding)."""
    rows = client.insert("boats", data)
    logger.info("boats_inserted", count=len(rows))
    return [Boat.model_validate(row) for row in rows]
