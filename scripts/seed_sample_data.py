import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import structlog

from paddle_booking.config import BACKEND_SERVICE_KEY
from paddle_booking.db.readers.boats import list_boats
from paddle_booking.db.readers.waivers import get_latest_waiver
from paddle_booking.db.readers.zones import list_zones
from paddle_booking.db.writers.boats import insert_boats
from paddle_booking.db.writers.waivers import insert_waiver
from paddle_booking.db.writers.zones import insert_zones
from paddle_booking.logging_config import setup_logging
from paddle_booking.network.client import BackendClient

setup_logging()
logger = structlog.get_logger(__name__)

WAIVER_TEXT = (
    "I understand that paddleboating involves inherent risks including capsizing, "
    "cold water and changing weather. I agree to wear the provided life jacket at all "
    "times, stay within the marked zones and follow staff instructions. I release the "
    "operator from liability for injuries arising from my own negligence."
)

SAMPLE_ZONES = [
    {
        "zone_name": "North Harbor",
        "is_premium": False,
        "description": "Calm water near the marina, good for beginners",
        "coordinates": {"center": {"lat": 47.6205, "lng": -122.3493}, "radius": 400},
    },
    {
        "zone_name": "Lighthouse Point",
        "is_premium": True,
        "description": "Scenic route along the cliffs",
        "coordinates": {"center": {"lat": 47.6310, "lng": -122.3620}, "radius": 300},
    },
    {
        "zone_name": "South Cove",
        "is_premium": False,
        "description": "Sheltered cove with a sandy launch",
        "coordinates": {"center": {"lat": 47.6050, "lng": -122.3400}, "radius": 500},
    },
]

SAMPLE_BOATS = [
    {"boat_name": "Blue Heron", "status": "available", "gps_device_id": "GPS-001"},
    {"boat_name": "Sea Otter", "status": "available", "gps_device_id": "GPS-002"},
    {"boat_name": "Sandpiper", "status": "available", "gps_device_id": "GPS-003"},
    {"boat_name": "Kingfisher", "status": "available", "gps_device_id": "GPS-004"},
    {"boat_name": "Pelican", "status": "maintenance", "gps_device_id": "GPS-005"},
]


def main() -> None:
    """
    Seed a waiver, three zones and five boats. Tables that already hold rows
    are left alone, so the script can be re-run safely.
    """
    if not BACKEND_SERVICE_KEY:
        logger.error("service_key_missing", hint="set BACKEND_SERVICE_KEY")
        sys.exit(1)

    client = BackendClient(api_key=BACKEND_SERVICE_KEY)

    if get_latest_waiver(client) is None:
        insert_waiver(client, "v1.0", WAIVER_TEXT)
    else:
        logger.info("seed_skipped", table="waivers")

    if not list_zones(client):
        insert_zones(client, SAMPLE_ZONES)
    else:
        logger.info("seed_skipped", table="zones")

    if not list_boats(client):
        insert_boats(client, SAMPLE_BOATS)
    else:
        logger.info("seed_skipped", table="boats")

    logger.info("seed_completed")


if __name__ == "__main__":
    main()
