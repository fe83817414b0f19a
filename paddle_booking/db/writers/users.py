from typing import Any, Optional

import structlog

from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import Role, UserProfile

logger = structlog.get_logger(__name__)


def insert_user_profile(
    client: BackendClient,
    user_id: str,
    email: str,
    full_name: Optional[str] = None,
    role: Role = Role.CUSTOMER,
) -> UserProfile:
    """
    Create the profile row for a freshly signed-in identity.

    Args:
        client (BackendClient): Client acting as the new user.
        user_id (str): Identity id; becomes the profile primary key.
        email (str): Account email.
        full_name (Optional[str]): Display name from sign-up metadata.
        role (Role): Initial role, customer unless created by setup tooling.

    Returns:
        UserProfile: The stored profile.
    """
    row: dict[str, Any] = {"id": user_id, "email": email, "full_name": full_name, "role": role.value}
    inserted = client.insert("users", [row])
    logger.info("user_profile_created", user_id=user_id, role=role.value)
    return UserProfile.model_validate(inserted[0])


def update_user_role(client: BackendClient, user_id: str, role: Role) -> Optional[UserProfile]:
    rows = client.update("users", {"role": role.value}, {"id": user_id})
    return UserProfile.model_validate(rows[0]) if rows else None
