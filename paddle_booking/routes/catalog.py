"""Catalog endpoints: zones, boats, waivers, price quotes and client config."""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from paddle_booking.config import MAPS_API_KEY
from paddle_booking.db.readers.boats import list_boats
from paddle_booking.db.readers.waivers import get_latest_waiver
from paddle_booking.db.readers.zones import get_zone, list_zones
from paddle_booking.db.writers.zones import create_zone, delete_zone
from paddle_booking.dependencies import get_current_user, get_user_client
from paddle_booking.errors import NotFound, ValidationError
from paddle_booking.network.client import BackendClient
from paddle_booking.routes._helpers import require_role
from paddle_booking.schemas.entities import (
    Boat,
    BoatStatus,
    Role,
    TripEstimate,
    UserProfile,
    Waiver,
    Zone,
)
from paddle_booking.schemas.requests import TripEstimatePayload, ZoneCreatePayload
from paddle_booking.services.pricing import estimate_trip
from paddle_booking.services.reservations import accept_waiver

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/zones")
def zones(client: BackendClient = Depends(get_user_client)) -> list[Zone]:
    return list_zones(client)


@router.post("/zones", status_code=status.HTTP_201_CREATED)
def add_zone(
    payload: ZoneCreatePayload,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Zone:
    """Create a pickup/dropoff zone (admin)."""
    require_role(user, Role.ADMIN)
    return create_zone(
        client,
        payload.zone_name,
        payload.lat,
        payload.lng,
        is_premium=payload.is_premium,
        description=payload.description,
        radius_m=payload.radius_m,
    )


@router.delete("/zones/{zone_id}")
def remove_zone(
    zone_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> Zone:
    """
    Delete a zone (admin).

    Raises:
        ZoneInUse (409): Reservations still start or end in the zone
        NotFound (404): No such zone
    """
    require_role(user, Role.ADMIN)
    return delete_zone(client, zone_id)


@router.get("/boats")
def boats(
    boat_status: Optional[BoatStatus] = Query(None, alias="status", description="Filter by boat status"),
    client: BackendClient = Depends(get_user_client),
) -> list[Boat]:
    return list_boats(client, boat_status)


@router.get("/waivers/latest")
def latest_waiver(client: BackendClient = Depends(get_user_client)) -> Waiver:
    """
    Latest published waiver version, which must be accepted before booking.

    Raises:
        NotFound: No waiver has been published.
    """
    waiver = get_latest_waiver(client)
    if waiver is None:
        raise NotFound("No waiver has been published")
    return waiver


@router.post("/waivers/{waiver_id}/accept", status_code=status.HTTP_201_CREATED)
def accept(
    waiver_id: str,
    user: UserProfile = Depends(get_current_user),
    client: BackendClient = Depends(get_user_client),
) -> dict[str, Any]:
    acceptance = accept_waiver(client, user.id, waiver_id)
    return {"waiver_id": waiver_id, "accepted": True, "already_accepted": acceptance is None}


@router.post("/pricing/estimate")
def price_estimate(
    payload: TripEstimatePayload, client: BackendClient = Depends(get_user_client)
) -> TripEstimate:
    """
    Quote a trip between two zones.

    Returns:
        TripEstimate: Distance, minutes, premium flag and rounded-up cost
    """
    start_zone = get_zone(client, payload.start_zone_id)
    end_zone = get_zone(client, payload.end_zone_id)
    if start_zone is None or end_zone is None:
        raise ValidationError("Both zones must exist to quote a trip")
    return estimate_trip(start_zone, end_zone, payload.minutes)


@router.get("/config")
def client_config() -> dict[str, Optional[str]]:
    """Public settings the app needs to render zone maps."""
    return {"maps_api_key": MAPS_API_KEY}
