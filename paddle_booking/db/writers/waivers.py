import structlog

from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import Waiver, WaiverAcceptance
from paddle_booking.utils.datetime import utc_now_iso

logger = structlog.get_logger(__name__)


def insert_waiver_acceptance(client: BackendClient, user_id: str, waiver_id: str) -> WaiverAcceptance:
    """
    Record that a user accepted a waiver version.

    Args:
        client (BackendClient): Client acting as the user.
        user_id (str): User id.
        waiver_id (str): Accepted waiver version.

    Returns:
        WaiverAcceptance: Stored acceptance.
    """
    rows = client.insert(
        "waiver_acceptances",
        [{"user_id": user_id, "waiver_id": waiver_id, "accepted_at": utc_now_iso()}],
    )
    logger.info("waiver_accepted", user_id=user_id, waiver_id=waiver_id)
    return WaiverAcceptance.model_validate(rows[0])


def insert_waiver(client: BackendClient, version_label: str, waiver_text: str) -> Waiver:
    rows = client.insert("waivers", [{"version_label": version_label, "waiver_text": waiver_text}])
    logger.info("waiver_published", version_label=version_label)
    return Waiver.model_validate(rows[0])
