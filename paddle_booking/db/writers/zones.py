from typing import Any, Optional

import structlog

from paddle_booking.errors import NotFound, ZoneInUse
from paddle_booking.network.client import BackendClient
from paddle_booking.normalizers.rows import normalize_zone_row
from paddle_booking.schemas.entities import Zone

logger = structlog.get_logger(__name__)


def insert_zones(client: BackendClient, data: list[dict[str, Any]]) -> list[Zone]:
    """
    Insert zone rows.

    Args:
        client (BackendClient): Backend client with admin rights.
        data (list[dict[str, Any]]): Zone rows; coordinates as {"center": {...}, "radius": m}.

    Returns:
        list[Zone]: Stored zones.
    """
    rows = client.insert("zones", data)
    logger.info("zones_inserted", count=len(rows))
    return [Zone.model_validate(normalize_zone_row(row)) for row in rows]


def create_zone(
    client: BackendClient,
    zone_name: str,
    lat: float,
    lng: float,
    is_premium: bool = False,
    description: Optional[str] = None,
    radius_m: Optional[float] = None,
) -> Zone:
    """
    Create one pickup/dropoff zone.

    Coordinates are stored as a bare point, or as centre plus radius when a
    radius is given.

    Returns:
        Zone: Stored zone.
    """
    center = {"lat": lat, "lng": lng}
    coordinates: dict[str, Any] = {"center": center, "radius": radius_m} if radius_m else center
    zone = insert_zones(
        client,
        [
            {
                "zone_name": zone_name,
                "is_premium": is_premium,
                "description": description,
                "coordinates": coordinates,
            }
        ],
    )[0]
    logger.info("zone_created", zone_id=zone.id, zone_name=zone_name, is_premium=is_premium)
    return zone


def delete_zone(client: BackendClient, zone_id: str) -> Zone:
    """
    Delete a zone that no reservation references.

    Args:
        client (BackendClient): Backend client with admin rights.
        zone_id (str): Zone id.

    Returns:
        Zone: The deleted zone.

    Raises:
        ZoneInUse: A reservation starts or ends in the zone.
        NotFound: No such zone.
    """
    for column in ("start_zone_id", "end_zone_id"):
        if client.select("reservations", columns="id", filters={column: zone_id}, limit=1):
            raise ZoneInUse(f"Zone {zone_id} is used by existing reservations")

    rows = client.delete("zones", {"id": zone_id})
    if not rows:
        raise NotFound(f"Zone {zone_id} not found")
    logger.info("zone_deleted", zone_id=zone_id)
    return Zone.model_validate(normalize_zone_row(rows[0]))
