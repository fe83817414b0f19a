from typing import Optional

from paddle_booking.network.client import BackendClient
from paddle_booking.normalizers.rows import normalize_liaison_row
from paddle_booking.schemas.entities import CompanyLiaison


def get_liaison(client: BackendClient, liaison_id: str) -> Optional[CompanyLiaison]:
    """
    Fetch a liaison profile by its id.

    Args:
        client (BackendClient): Backend client.
        liaison_id (str): Liaison profile id.

    Returns:
        Optional[CompanyLiaison]: Profile or None.
    """
    rows = client.select("company_liaisons", filters={"id": liaison_id}, limit=1)
    return CompanyLiaison.model_validate(normalize_liaison_row(rows[0])) if rows else None


def get_liaison_by_user(client: BackendClient, user_id: str) -> Optional[CompanyLiaison]:
    """
    Fetch the liaison profile belonging to a user.

    Args:
        client (BackendClient): Backend client.
        user_id (str): User id.

    Returns:
        Optional[CompanyLiaison]: Profile or None if the user is not a liaison.
    """
    rows = client.select("company_liaisons", filters={"user_id": user_id}, limit=1)
    return CompanyLiaison.model_validate(normalize_liaison_row(rows[0])) if rows else None
