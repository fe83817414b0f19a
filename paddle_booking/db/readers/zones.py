from typing import Optional

from paddle_booking.network.client import BackendClient
from paddle_booking.normalizers.rows import normalize_zone_row
from paddle_booking.schemas.entities import Zone


def list_zones(client: BackendClient) -> list[Zone]:
    """
    Fetch all pickup/dropoff zones ordered by name.

    Args:
        client (BackendClient): Backend client.

    Returns:
        list[Zone]: Zones with normalized coordinates.
    """
    rows = client.select("zones", order="zone_name")
    return [Zone.model_validate(normalize_zone_row(row)) for row in rows]


def get_zone(client: BackendClient, zone_id: str) -> Optional[Zone]:
    rows = client.select("zones", filters={"id": zone_id}, limit=1)
    return Zone.model_validate(normalize_zone_row(rows[0])) if rows else None
