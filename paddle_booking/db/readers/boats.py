from typing import Optional

from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import Boat, BoatStatus


def list_boats(client: BackendClient, status: Optional[BoatStatus] = None) -> list[Boat]:
    """
    Fetch boats, optionally restricted to one status.

    Args:
        client (BackendClient): Backend client.
        status (Optional[BoatStatus]): Only return boats in this status.

    Returns:
        list[Boat]: Boats ordered by name.
    """
    filters = {"status": status.value} if status else None
    rows = client.select("boats", filters=filters, order="boat_name")
    return [Boat.model_validate(row) for row in rows]


def get_boat(client: BackendClient, boat_id: str) -> Optional[Boat]:
    rows = client.select("boats", filters={"id": boat_id}, limit=1)
    return Boat.model_validate(rows[0]) if rows else None
