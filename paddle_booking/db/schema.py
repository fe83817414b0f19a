"""
Backend schema definition and setup.

Builds the PostgreSQL DDL for every table from the SQLAlchemy models, adds
the database functions and trigger the lifecycle controllers depend on, and
pushes the whole script to the backend through its exec_sql RPC. Run once per
project (see scripts/setup_schema.py); every statement is idempotent.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from paddle_booking.errors import NetworkError
from paddle_booking.models.base import Base
from paddle_booking.models.fleet import Boat, BoatLocation  # noqa: F401
from paddle_booking.models.liaisons import BoatDelivery, CompanyLiaison, DeliveryJob  # noqa: F401
from paddle_booking.models.notifications import Notification  # noqa: F401
from paddle_booking.models.reservations import Payment, Reservation  # noqa: F401
from paddle_booking.models.users import User  # noqa: F401
from paddle_booking.models.waivers import Waiver, WaiverAcceptance  # noqa: F401
from paddle_booking.models.zones import Zone  # noqa: F401
from paddle_booking.network.client import BackendClient

logger = structlog.get_logger(__name__)

ASSIGN_DELIVERY_JOB_SQL = """
CREATE OR REPLACE FUNCTION assign_delivery_job(job_id uuid, assign_to_liaison_id uuid)
RETURNS json
LANGUAGE plpgsql
SECURITY DEFINER
AS $$
DECLARE
    job_row delivery_jobs%ROWTYPE;
    liaison_row company_liaisons%ROWTYPE;
BEGIN
    SELECT * INTO job_row FROM delivery_jobs WHERE id = job_id FOR UPDATE;
    IF NOT FOUND THEN
        RETURN json_build_object('success', false, 'code', 'not_found',
                                 'message', 'Job not found');
    END IF;

    IF job_row.status <> 'available' THEN
        RETURN json_build_object('success', false, 'code', 'job_unavailable',
                                 'message', 'This job is no longer available');
    END IF;

    SELECT * INTO liaison_row FROM company_liaisons WHERE id = assign_to_liaison_id FOR UPDATE;
    IF NOT FOUND OR NOT liaison_row.is_active THEN
        RETURN json_build_object('success', false, 'code', 'liaison_inactive',
                                 'message', 'Liaison profile is missing or inactive');
    END IF;

    IF liaison_row.current_job_count >= liaison_row.max_concurrent_jobs THEN
        RETURN json_build_object('success', false, 'code', 'capacity_reached',
                                 'message', 'Liaison has reached maximum job capacity');
    END IF;

    UPDATE delivery_jobs
       SET status = 'assigned', liaison_id = assign_to_liaison_id, assigned_at = now()
     WHERE id = job_id;

    UPDATE company_liaisons
       SET current_job_count = current_job_count + 1
     WHERE id = assign_to_liaison_id;

    RETURN json_build_object('success', true, 'code', 'assigned', 'message', 'Job assigned');
END;
$$
"""

UPDATE_DELIVERY_JOB_ASSIGNMENT_SQL = """
CREATE OR REPLACE FUNCTION update_delivery_job_assignment(
    job_id uuid, for_liaison_id uuid, new_status text
)
RETURNS json
LANGUAGE plpgsql
SECURITY DEFINER
AS $$
DECLARE
    job_row delivery_jobs%ROWTYPE;
BEGIN
    SELECT * INTO job_row FROM delivery_jobs WHERE id = job_id FOR UPDATE;
    IF NOT FOUND THEN
        RETURN json_build_object('success', false, 'code', 'not_found',
                                 'message', 'Job not found');
    END IF;

    IF job_row.liaison_id IS DISTINCT FROM for_liaison_id THEN
        RETURN json_build_object('success', false, 'code', 'not_owner',
                                 'message', 'Job is not assigned to this liaison');
    END IF;

    IF new_status = 'available' AND job_row.status IN ('assigned', 'in_progress') THEN
        UPDATE delivery_jobs
           SET status = 'available', liaison_id = NULL, assigned_at = NULL
         WHERE id = job_id;
    ELSIF new_status = 'completed' AND job_row.status = 'in_progress' THEN
        UPDATE delivery_jobs
           SET status = 'completed', completed_at = now()
         WHERE id = job_id;
    ELSE
        RETURN json_build_object('success', false, 'code', 'invalid_status',
                                 'message', 'Job cannot move from ' || job_row.status
                                            || ' to ' || new_status);
    END IF;

    UPDATE company_liaisons
       SET current_job_count = GREATEST(current_job_count - 1, 0)
     WHERE id = for_liaison_id;

    RETURN json_build_object('success', true, 'code', 'updated', 'message', 'Job updated');
END;
$$
"""

JOB_TRIGGER_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION create_delivery_job_for_reservation()
RETURNS trigger
LANGUAGE plpgsql
SECURITY DEFINER
AS $$
BEGIN
    IF NEW.status IS DISTINCT FROM OLD.status THEN
        IF NEW.status = 'confirmed' THEN
            INSERT INTO delivery_jobs (reservation_id, job_type, status)
            VALUES (NEW.id, 'delivery', 'available')
            ON CONFLICT DO NOTHING;
        ELSIF NEW.status = 'awaiting_pickup' THEN
            INSERT INTO delivery_jobs (reservation_id, job_type, status)
            VALUES (NEW.id, 'pickup', 'available')
            ON CONFLICT DO NOTHING;
        END IF;
    END IF;
    RETURN NEW;
END;
$$
"""

JOB_TRIGGER_SQL = [
    "DROP TRIGGER IF EXISTS reservations_create_delivery_job ON reservations",
    """
CREATE TRIGGER reservations_create_delivery_job
AFTER UPDATE OF status ON reservations
FOR EACH ROW EXECUTE FUNCTION create_delivery_job_for_reservation()
""",
]


def table_statements() -> list[str]:
    """
    Compile CREATE TABLE / CREATE INDEX statements for every model.

    Returns:
        list[str]: DDL in dependency order, each guarded with IF NOT EXISTS.
    """
    dialect = postgresql.dialect()
    statements: list[str] = []
    for table in Base.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in sorted(table.indexes, key=lambda idx: idx.name or ""):
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return [stmt.strip() for stmt in statements]


def schema_statements() -> list[str]:
    """Full setup script: tables, job functions and the reservation trigger."""
    return [
        *table_statements(),
        ASSIGN_DELIVERY_JOB_SQL.strip(),
        UPDATE_DELIVERY_JOB_ASSIGNMENT_SQL.strip(),
        JOB_TRIGGER_FUNCTION_SQL.strip(),
        *[stmt.strip() for stmt in JOB_TRIGGER_SQL],
    ]


def apply_schema(client: BackendClient, dry_run: bool = False) -> dict[str, Any]:
    """
    Execute the setup script through the exec_sql RPC.

    Statements that fail because the object already exists are skipped;
    any other failure stops the run.

    Args:
        client (BackendClient): Client bound to the service key.
        dry_run (bool): If True, log the statements without executing them.

    Returns:
        dict[str, Any]: Counts of executed and skipped statements.
    """
    statements = schema_statements()
    executed = 0
    skipped = 0

    logger.info("schema_setup_started", statements=len(statements), dry_run=dry_run)

    for number, statement in enumerate(statements, start=1):
        if dry_run:
            logger.info("schema_statement_dry_run", number=number, sql=statement)
            continue
        try:
            client.rpc("exec_sql", {"sql_query": statement})
            executed += 1
        except NetworkError as e:
            if "already exists" in str(e):
                logger.info("schema_statement_skipped", number=number, reason=str(e))
                skipped += 1
                continue
            logger.error("schema_statement_failed", number=number, error=str(e))
            raise

    logger.info("schema_setup_completed", executed=executed, skipped=skipped)
    return {"executed": executed, "skipped": skipped}
