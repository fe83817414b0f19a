from typing import Any, Optional

import structlog

from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import Reservation, ReservationStatus
from paddle_booking.utils.datetime import utc_now_iso

logger = structlog.get_logger(__name__)


def insert_reservation(client: BackendClient, data: dict[str, Any]) -> Reservation:
    """
    Insert a new reservation row.

    Args:
        client (BackendClient): Client acting as the booking customer.
        data (dict[str, Any]): Reservation columns (status is forced to pending).

    Returns:
        Reservation: Stored reservation.
    """
    row = {**data, "status": ReservationStatus.PENDING.value}
    rows = client.insert("reservations", [row])
    logger.info("reservation_inserted", reservation_id=rows[0].get("id"), user_id=row.get("user_id"))
    return Reservation.model_validate(rows[0])


def update_reservation_status(
    client: BackendClient,
    reservation_id: str,
    expected: ReservationStatus,
    target: ReservationStatus,
    extra: Optional[dict[str, Any]] = None,
) -> Optional[Reservation]:
    """
    Compare-and-set a reservation's status.

    The write only applies while the row still has the expected status, so a
    concurrent status change makes it match nothing.

    Args:
        client (BackendClient): Backend client.
        reservation_id (str): Reservation id.
        expected (ReservationStatus): Status the caller read.
        target (ReservationStatus): Status to write.
        extra (Optional[dict[str, Any]]): Additional columns (boat_id, start_time, ...).

    Returns:
        Optional[Reservation]: Updated reservation, or None if the status had changed.
    """
    values = {**(extra or {}), "status": target.value, "updated_at": utc_now_iso()}
    rows = client.update(
        "reservations", values, {"id": reservation_id, "status": expected.value}
    )
    return Reservation.model_validate(rows[0]) if rows else None
