"""
Advisory pre-booking price estimation.

Prices are quoted from the straight-line (haversine) distance between zone
centres and an assumed paddling speed. The estimate is stored on the
reservation for display only; settlement uses final_cost.
"""

from __future__ import annotations

import math
from typing import Optional

from paddle_booking.errors import ValidationError
from paddle_booking.schemas.entities import LatLng, TripEstimate, Zone

EARTH_RADIUS_KM = 6371.0
AVERAGE_SPEED_KMH = 5.0

BASE_FEE = 10.0
PER_KM_RATE = 2.5
PER_MINUTE_RATE = 0.25
PREMIUM_MULTIPLIER = 1.5


def haversine_km(origin: LatLng, destination: LatLng) -> float:
    """
    Great-circle distance between two points in kilometres.

    Example:
        >>> round(haversine_km(LatLng(lat=0, lng=0), LatLng(lat=0, lng=1)), 1)
        111.2
    """
    d_lat = math.radians(destination.lat - origin.lat)
    d_lng = math.radians(destination.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat))
        * math.cos(math.radians(destination.lat))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_minutes(distance_km: float, speed_kmh: float = AVERAGE_SPEED_KMH) -> int:
    """Travel time in whole minutes at an assumed average paddling speed."""
    # Halves round up
    return math.floor(distance_km / speed_kmh * 60 + 0.5)


def estimate_cost(distance_km: float, minutes: float, is_premium_zone: bool = False) -> int:
    """
    Price a trip, rounded up to the next whole currency unit.

    Args:
        distance_km: Trip distance
        minutes: Trip duration
        is_premium_zone: Apply the premium multiplier

    Returns:
        int: Estimated cost

    Example:
        >>> estimate_cost(3.0, 40)
        28
        >>> estimate_cost(3.0, 40, is_premium_zone=True)
        42
    """
    if distance_km < 0 or minutes < 0:
        raise ValidationError("Distance and duration must not be negative")

    total = BASE_FEE + distance_km * PER_KM_RATE + minutes * PER_MINUTE_RATE
    multiplier = PREMIUM_MULTIPLIER if is_premium_zone else 1
    # Round before ceil so float noise (e.g. 42.0000001) does not add a unit
    return math.ceil(round(total * multiplier, 6))


def estimate_trip(start_zone: Zone, end_zone: Zone, minutes: Optional[int] = None) -> TripEstimate:
    """
    Estimate distance, duration and cost between two zones.

    A trip is premium when either zone is premium. Zones without coordinates
    contribute zero distance, leaving only the base and time fees.

    Args:
        start_zone: Pickup zone
        end_zone: Dropoff zone
        minutes: Known duration; estimated from distance when None

    Returns:
        TripEstimate: Advisory quote
    """
    if start_zone.center and end_zone.center:
        distance_km = haversine_km(start_zone.center, end_zone.center)
    else:
        distance_km = 0.0

    trip_minutes = estimate_minutes(distance_km) if minutes is None else minutes
    is_premium = start_zone.is_premium or end_zone.is_premium

    return TripEstimate(
        distance_km=round(distance_km, 3),
        minutes=trip_minutes,
        is_premium=is_premium,
        estimated_cost=estimate_cost(distance_km, trip_minutes, is_premium),
    )


def format_distance(distance_km: float) -> str:
    """
    Human-readable distance: metres below 1 km, otherwise one decimal km.

    Example:
        >>> format_distance(0.4567)
        '457 m'
        >>> format_distance(3.26)
        '3.3 km'
    """
    if distance_km < 1:
        return f"{round(distance_km * 1000)} m"
    return f"{distance_km:.1f} km"
