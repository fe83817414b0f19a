from typing import Optional

from paddle_booking.network.client import BackendClient
from paddle_booking.normalizers.rows import normalize_reservation_row
from paddle_booking.schemas.entities import Reservation, ReservationStatus

RESERVATION_COLUMNS = (
    "*,"
    "user:user_id(id,email,full_name,phone_number),"
    "boat:boat_id(*),"
    "start_zone:start_zone_id(*),"
    "end_zone:end_zone_id(*)"
)


def get_reservation(client: BackendClient, reservation_id: str) -> Optional[Reservation]:
    """
    Fetch one reservation with its user, boat and zones.

    Args:
        client (BackendClient): Backend client.
        reservation_id (str): Reservation id.

    Returns:
        Optional[Reservation]: Reservation or None if not found.
    """
    rows = client.select(
        "reservations", columns=RESERVATION_COLUMNS, filters={"id": reservation_id}, limit=1
    )
    return Reservation.model_validate(normalize_reservation_row(rows[0])) if rows else None


def list_reservations(
    client: BackendClient,
    status: Optional[ReservationStatus] = None,
) -> list[Reservation]:
    """
    Fetch reservations newest first, optionally filtered by status (admin view).

    Args:
        client (BackendClient): Backend client.
        status (Optional[ReservationStatus]): Status filter; None means all.

    Returns:
        list[Reservation]: Matching reservations.
    """
    filters = {"status": status.value} if status else None
    rows = client.select(
        "reservations", columns=RESERVATION_COLUMNS, filters=filters, order="-created_at"
    )
    return [Reservation.model_validate(normalize_reservation_row(row)) for row in rows]


def list_user_reservations(client: BackendClient, user_id: str) -> list[Reservation]:
    rows = client.select(
        "reservations",
        columns=RESERVATION_COLUMNS,
        filters={"user_id": user_id},
        order="-created_at",
    )
    return [Reservation.model_validate(normalize_reservation_row(row)) for row in rows]
