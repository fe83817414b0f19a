"""
Shared fixtures.

Environment variables are set before anything imports paddle_booking.config,
which refuses to load without a backend URL and anon key.
"""

from __future__ import annotations

import os

os.environ.setdefault("BACKEND_URL", "http://backend.test")
os.environ.setdefault("BACKEND_ANON_KEY", "anon-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import copy
import threading
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional

import pytest

from paddle_booking.errors import NetworkError
from paddle_booking.network.client import BackendClient

EPOCH = datetime(2026, 6, 1, 9, 0, tzinfo=timezone.utc)

# Primary keys that are supplied by the caller rather than generated
UNIQUE_COLUMNS = {
    "users": ("id",),
    "company_liaisons": ("user_id",),
}


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    for column, expected in (filters or {}).items():
        actual = row.get(column)
        if expected is None:
            if actual is not None:
                return False
        elif isinstance(expected, (list, tuple, set)):
            if actual not in {_plain(v) for v in expected}:
                return False
        elif actual != _plain(expected):
            return False
    return True


class FakeBackend(BackendClient):
    """
    In-memory stand-in for the backend REST API.

    Implements table reads and conditional writes, the two job-assignment
    database functions and the reservation trigger that queues delivery and
    pickup jobs. Embedded joins in select expressions are ignored.
    """

    def __init__(self) -> None:
        super().__init__(base_url="http://backend.test", api_key="anon-key")
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.executed_sql: List[str] = []
        self.rpc_calls: List[str] = []
        self._lock = threading.RLock()
        self._ticks = 0

    def with_token(self, access_token: Optional[str]) -> "FakeBackend":
        # Shared tables; remember the last token so identity lookups can resolve it
        self.access_token = access_token
        return self

    def _now(self) -> str:
        with self._lock:
            self._ticks += 1
            return (EPOCH + timedelta(seconds=self._ticks)).isoformat()

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            rows = [copy.deepcopy(r) for r in self.tables[table] if _matches(r, filters)]
        if order:
            column = order.lstrip("-")
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""))
            if order.startswith("-"):
                rows.reverse()
        return rows[:limit] if limit is not None else rows

    def insert(self, table: str, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        stored = []
        with self._lock:
            for row in rows:
                new = {k: _plain(v) for k, v in row.items()}
                new.setdefault("id", str(uuid.uuid4()))
                new.setdefault("created_at", self._now())
                for column in UNIQUE_COLUMNS.get(table, ()):
                    if any(r.get(column) == new.get(column) for r in self.tables[table]):
                        raise NetworkError(
                            f"duplicate key value violates unique constraint on {table}.{column}",
                            status_code=409,
                        )
                self.tables[table].append(new)
                stored.append(copy.deepcopy(new))
        return stored

    def update(
        self, table: str, values: Dict[str, Any], filters: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to update without filters")
        updated = []
        with self._lock:
            for row in self.tables[table]:
                if not _matches(row, filters):
                    continue
                previous = row.get("status")
                row.update({k: _plain(v) for k, v in values.items()})
                if table == "reservations" and row.get("status") != previous:
                    self._reservation_trigger(row)
                updated.append(copy.deepcopy(row))
        return updated

    def delete(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        with self._lock:
            deleted = [r for r in self.tables[table] if _matches(r, filters)]
            self.tables[table] = [r for r in self.tables[table] if not _matches(r, filters)]
        return copy.deepcopy(deleted)

    def _reservation_trigger(self, reservation: Dict[str, Any]) -> None:
        job_type = {"confirmed": "delivery", "awaiting_pickup": "pickup"}.get(
            reservation["status"]
        )
        if job_type is None:
            return
        # Partial unique index: one open job per (reservation, type)
        for job in self.tables["delivery_jobs"]:
            if (
                job["reservation_id"] == reservation["id"]
                and job["job_type"] == job_type
                and job["status"] != "cancelled"
            ):
                return
        self.tables["delivery_jobs"].append(
            {
                "id": str(uuid.uuid4()),
                "reservation_id": reservation["id"],
                "liaison_id": None,
                "job_type": job_type,
                "status": "available",
                "assigned_at": None,
                "completed_at": None,
                "created_at": self._now(),
            }
        )

    def _find(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        for row in self.tables[table]:
            if row["id"] == row_id:
                return row
        return None

    def _assign_delivery_job(self, job_id: str, assign_to_liaison_id: str) -> Dict[str, Any]:
        job = self._find("delivery_jobs", job_id)
        if job is None:
            return {"success": False, "code": "not_found", "message": "Job not found"}
        if job["status"] != "available":
            return {"success": False, "code": "job_unavailable", "message": "Job unavailable"}
        liaison = self._find("company_liaisons", assign_to_liaison_id)
        if liaison is None or not liaison.get("is_active", True):
            return {"success": False, "code": "liaison_inactive", "message": "Inactive"}
        if liaison["current_job_count"] >= liaison["max_concurrent_jobs"]:
            return {"success": False, "code": "capacity_reached", "message": "At capacity"}
        job.update(status="assigned", liaison_id=assign_to_liaison_id, assigned_at=self._now())
        liaison["current_job_count"] += 1
        return {"success": True, "code": "assigned", "message": "Job assigned"}

    def _update_delivery_job_assignment(
        self, job_id: str, for_liaison_id: str, new_status: str
    ) -> Dict[str, Any]:
        job = self._find("delivery_jobs", job_id)
        if job is None:
            return {"success": False, "code": "not_found", "message": "Job not found"}
        if job["liaison_id"] != for_liaison_id:
            return {"success": False, "code": "not_owner", "message": "Not your job"}
        if new_status == "available" and job["status"] in ("assigned", "in_progress"):
            job.update(status="available", liaison_id=None, assigned_at=None)
        elif new_status == "completed" and job["status"] == "in_progress":
            job.update(status="completed", completed_at=self._now())
        else:
            return {"success": False, "code": "invalid_status", "message": "Invalid status"}
        liaison = self._find("company_liaisons", for_liaison_id)
        if liaison is not None:
            liaison["current_job_count"] = max(liaison["current_job_count"] - 1, 0)
        return {"success": True, "code": "updated", "message": "Job updated"}

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        params = params or {}
        with self._lock:
            self.rpc_calls.append(function)
            if function == "assign_delivery_job":
                return self._assign_delivery_job(**params)
            if function == "update_delivery_job_assignment":
                return self._update_delivery_job_assignment(**params)
            if function == "exec_sql":
                self.executed_sql.append(params["sql_query"])
                return None
        raise NetworkError(f"Could not find the function {function}", status_code=404)

    def ping(self) -> bool:
        return True

    def row(self, table: str, row_id: str) -> Dict[str, Any]:
        """Current stored row, for assertions."""
        found = self._find(table, row_id)
        assert found is not None, f"{table} row {row_id} missing"
        return copy.deepcopy(found)

    def jobs_for(self, reservation_id: str, job_type: Optional[str] = None) -> List[Dict[str, Any]]:
        filters: Dict[str, Any] = {"reservation_id": reservation_id}
        if job_type:
            filters["job_type"] = job_type
        return self.select("delivery_jobs", filters=filters)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def world(backend: FakeBackend) -> SimpleNamespace:
    """
    A seeded backend: one waiver the customer has accepted, a regular and a
    premium zone, two available boats, an admin, and two liaisons.
    """
    waiver = backend.insert("waivers", [{"version_label": "v1.0", "waiver_text": "Be careful."}])[0]

    harbor, point = backend.insert(
        "zones",
        [
            {
                "zone_name": "North Harbor",
                "is_premium": False,
                "coordinates": {"center": {"lat": 47.6205, "lng": -122.3493}, "radius": 400},
            },
            {
                "zone_name": "Lighthouse Point",
                "is_premium": True,
                "coordinates": {"lat": 47.6310, "lng": -122.3620},
            },
        ],
    )
    heron, otter = backend.insert(
        "boats",
        [
            {"boat_name": "Blue Heron", "status": "available"},
            {"boat_name": "Sea Otter", "status": "available"},
        ],
    )

    customer = backend.insert(
        "users", [{"id": "user-customer", "email": "rider@example.com", "role": "customer"}]
    )[0]
    other = backend.insert(
        "users", [{"id": "user-other", "email": "other@example.com", "role": "customer"}]
    )[0]
    admin = backend.insert(
        "users", [{"id": "user-admin", "email": "admin@example.com", "role": "admin"}]
    )[0]
    backend.insert("users", [{"id": "user-liaison-a", "email": "a@example.com", "role": "liaison"}])
    backend.insert("users", [{"id": "user-liaison-b", "email": "b@example.com", "role": "liaison"}])

    backend.insert("waiver_acceptances", [{"user_id": customer["id"], "waiver_id": waiver["id"]}])

    liaison_a, liaison_b = backend.insert(
        "company_liaisons",
        [
            {"user_id": "user-liaison-a", "is_active": True, "current_job_count": 0, "max_concurrent_jobs": 2},
            {"user_id": "user-liaison-b", "is_active": True, "current_job_count": 0, "max_concurrent_jobs": 1},
        ],
    )

    return SimpleNamespace(
        waiver_id=waiver["id"],
        harbor_id=harbor["id"],
        point_id=point["id"],
        heron_id=heron["id"],
        otter_id=otter["id"],
        customer_id=customer["id"],
        other_id=other["id"],
        admin_id=admin["id"],
        liaison_a_id=liaison_a["id"],
        liaison_b_id=liaison_b["id"],
    )
