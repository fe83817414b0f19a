import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse

import structlog

from paddle_booking.config import BACKEND_SERVICE_KEY
from paddle_booking.db.schema import apply_schema
from paddle_booking.logging_config import setup_logging
from paddle_booking.network.client import BackendClient

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Create tables, job functions and the reservation trigger on the backend.

    Requires BACKEND_SERVICE_KEY; the exec_sql function is not callable with
    the anon key.
    """
    parser = argparse.ArgumentParser(description="Apply the booking schema to the backend")
    parser.add_argument("--dry-run", action="store_true", help="Log statements without executing")
    args = parser.parse_args()

    if not BACKEND_SERVICE_KEY and not args.dry_run:
        logger.error("service_key_missing", hint="set BACKEND_SERVICE_KEY")
        sys.exit(1)

    client = BackendClient(api_key=BACKEND_SERVICE_KEY or "")
    try:
        result = apply_schema(client, dry_run=args.dry_run)
    except Exception:
        logger.exception("schema_setup_failed")
        raise

    logger.info("schema_setup_finished", **result)


if __name__ == "__main__":
    main()
