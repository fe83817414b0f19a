from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import Payment


def list_reservation_payments(client: BackendClient, reservation_id: str) -> list[Payment]:
    """
    Fetch the payments recorded against a reservation, oldest first.

    Args:
        client (BackendClient): Backend client.
        reservation_id (str): Reservation id.

    Returns:
        list[Payment]: Payment rows.
    """
    rows = client.select(
        "payments", filters={"reservation_id": reservation_id}, order="created_at"
    )
    return [Payment.model_validate(row) for row in rows]
