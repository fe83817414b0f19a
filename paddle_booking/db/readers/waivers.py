from typing import Optional

from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import Waiver


def get_latest_waiver(client: BackendClient) -> Optional[Waiver]:
    """
    Fetch the most recently published waiver version.

    Args:
        client (BackendClient): Backend client.

    Returns:
        Optional[Waiver]: Latest waiver, or None if none has been published.
    """
    rows = client.select("waivers", order="-created_at", limit=1)
    return Waiver.model_validate(rows[0]) if rows else None


def has_accepted_waiver(client: BackendClient, user_id: str, waiver_id: str) -> bool:
    """
    Check whether a user has an acceptance record for a waiver version.

    Args:
        client (BackendClient): Backend client.
        user_id (str): User id.
        waiver_id (str): Waiver version id.

    Returns:
        bool: True if an acceptance exists.
    """
    rows = client.select(
        "waiver_acceptances",
        columns="id",
        filters={"user_id": user_id, "waiver_id": waiver_id},
        limit=1,
    )
    return bool(rows)


def get_waiver(client: BackendClient, waiver_id: str) -> Optional[Waiver]:
    rows = client.select("waivers", filters={"id": waiver_id}, limit=1)
    return Waiver.model_validate(rows[0]) if rows else None
