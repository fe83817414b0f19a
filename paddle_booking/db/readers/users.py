from typing import Optional

import structlog

from paddle_booking.errors import BookingError
from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import UserProfile

logger = structlog.get_logger(__name__)

FALLBACK_DISPLAY_NAME = "Unknown user"


def get_user_profile(client: BackendClient, user_id: str) -> Optional[UserProfile]:
    """
    Fetch the profile row for an identity.

    Args:
        client (BackendClient): Backend client.
        user_id (str): Identity id (shared by auth user and profile row).

    Returns:
        Optional[UserProfile]: Profile or None if no row exists yet.
    """
    rows = client.select("users", filters={"id": user_id}, limit=1)
    return UserProfile.model_validate(rows[0]) if rows else None


def get_display_name(client: BackendClient, user_id: str) -> str:
    """
    Best-effort lookup of a user's display name.

    Failures degrade to a fallback value and are logged, never raised.

    Args:
        client (BackendClient): Backend client.
        user_id (str): User id.

    Returns:
        str: Full name, email local part, or a fallback.
    """
    try:
        profile = get_user_profile(client, user_id)
    except BookingError as e:
        logger.warning("display_name_lookup_failed", user_id=user_id, error=str(e))
        return FALLBACK_DISPLAY_NAME
    return profile.display_name if profile else FALLBACK_DISPLAY_NAME
