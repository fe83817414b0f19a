"""
Normalization of backend row shapes.

Embedded joins come back as an object, a one-element list, an empty list or
null depending on how the relationship is declared; zone coordinates have
been stored both as ``{"center": {"lat", "lng"}, "radius"}`` and as a bare
``{"lat", "lng"}``. Every reader passes rows through here so business logic
only ever sees optional-single joins and a flat ``center``.
"""

import json
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

# Embed aliases used by older select expressions, mapped to the canonical key
JOIN_ALIASES = {
    "users": "user",
    "boats": "boat",
    "reservations": "reservation",
}


def first_or_none(value: Any) -> Optional[Dict[str, Any]]:
    """
    Collapse a join value into a single row or None.

    Args:
        value: dict, list of dicts, or None

    Returns:
        The row, the first row of a list, or None

    Example:
        >>> first_or_none([{"id": "a"}])
        {'id': 'a'}
        >>> first_or_none([]) is None
        True
    """
    if value is None:
        return None
    if isinstance(value, list):
        if len(value) > 1:
            logger.warning("join_returned_multiple_rows", count=len(value))
        return value[0] if value else None
    if isinstance(value, dict):
        return value
    return None


def normalize_coordinates(raw: Any) -> tuple[Optional[Dict[str, float]], Optional[float]]:
    """
    Extract a (center, radius) pair from stored zone coordinates.

    Args:
        raw: Coordinates in any stored shape (dict, JSON string, [lat, lng] or None)

    Returns:
        Tuple of {"lat", "lng"} (or None) and radius in metres (or None)
    """
    if raw is None:
        return None, None

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("zone_coordinates_unparseable", raw=raw)
            return None, None

    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return {"lat": float(raw[0]), "lng": float(raw[1])}, None

    if not isinstance(raw, dict):
        return None, None

    radius = raw.get("radius")
    point = raw.get("center", raw)
    if not isinstance(point, dict) or point.get("lat") is None or point.get("lng") is None:
        return None, float(radius) if radius is not None else None

    center = {"lat": float(point["lat"]), "lng": float(point["lng"])}
    return center, float(radius) if radius is not None else None


def normalize_zone_row(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Flatten a zone row's coordinates into center/radius_m."""
    if row is None:
        return None
    zone = dict(row)
    center, radius = normalize_coordinates(zone.pop("coordinates", None))
    zone["center"] = center
    zone["radius_m"] = radius
    return zone


def normalize_liaison_row(row: Dict[str, Any]) -> Dict[str, Any]:
    liaison = dict(row)
    location, _ = normalize_coordinates(liaison.get("current_location"))
    liaison["current_location"] = location
    return liaison


def _rename_aliases(row: Dict[str, Any]) -> Dict[str, Any]:
    renamed = dict(row)
    for alias, canonical in JOIN_ALIASES.items():
        if alias in renamed and canonical not in renamed:
            renamed[canonical] = renamed.pop(alias)
    return renamed


def normalize_reservation_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a reservation row and its embedded user, boat and zones.

    Args:
        row: Raw reservation row

    Returns:
        Row with optional-single joins and normalized zones
    """
    reservation = _rename_aliases(row)
    for key in ("user", "boat"):
        if key in reservation:
            reservation[key] = first_or_none(reservation[key])
    for key in ("start_zone", "end_zone"):
        if key in reservation:
            reservation[key] = normalize_zone_row(first_or_none(reservation[key]))
    return reservation


def normalize_job_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize a delivery job row and its embedded reservation."""
    job = _rename_aliases(row)
    if "reservation" in job:
        reservation = first_or_none(job["reservation"])
        job["reservation"] = normalize_reservation_row(reservation) if reservation else None
    return job
