"""
Client for the backend-as-a-service REST API.

Wraps table reads/writes and RPC calls, records request metrics and maps
transport and HTTP failures onto the booking error taxonomy. Requests are
never retried here; retries are user-initiated.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Iterable, List, Optional, cast

import requests
import structlog

from paddle_booking.config import BACKEND_ANON_KEY, BACKEND_TIMEOUT_SECONDS, BACKEND_URL
from paddle_booking.errors import AuthError, NetworkError, NotFound, PermissionDenied
from paddle_booking.metrics import backend_latency, backend_requests

logger = structlog.get_logger(__name__)

REST_PATH = "rest/v1/"


def format_filter(value: Any) -> str:
    """
    Render a Python value as a PostgREST filter expression.

    Scalars become ``eq.<value>``, lists/tuples/sets become ``in.(a,b)``
    and ``None`` becomes ``is.null``.

    Args:
        value: Filter value

    Returns:
        str: PostgREST operator expression

    Example:
        >>> format_filter("available")
        'eq.available'
        >>> format_filter(["assigned", "in_progress"])
        'in.(assigned,in_progress)'
    """
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    if isinstance(value, (list, tuple, set)):
        return "in.(" + ",".join(str(v) for v in value) + ")"
    return f"eq.{value}"


def build_params(
    filters: Optional[Dict[str, Any]] = None,
    columns: Optional[str] = None,
    order: Optional[str] = None,
    limit: Optional[int] = None,
) -> Dict[str, str]:
    """
    Build PostgREST query parameters.

    Args:
        filters: Column -> value mapping, see format_filter()
        columns: Select expression, including embedded joins
        order: Column to order by; prefix with "-" for descending
        limit: Maximum number of rows

    Returns:
        Dict[str, str]: Query string parameters
    """
    params: Dict[str, str] = {}
    if columns:
        params["select"] = columns
    for column, value in (filters or {}).items():
        params[column] = format_filter(value)
    if order:
        params["order"] = f"{order[1:]}.desc" if order.startswith("-") else f"{order}.asc"
    if limit is not None:
        params["limit"] = str(limit)
    return params


def _error_message(res: requests.Response) -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text or res.reason or "backend error"
    if isinstance(body, dict):
        return str(
            body.get("message") or body.get("msg") or body.get("error_description") or body
        )
    return str(body)


class BackendClient:
    """
    REST client bound to one backend project and, optionally, one user token.

    The anon key identifies the project; the access token (when present)
    identifies the user so the backend's row-level security applies.

    Example:
        >>> client = BackendClient().with_token(access_token)
        >>> boats = client.select("boats", filters={"status": "available"})
    """

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        api_key: str = BACKEND_ANON_KEY,
        access_token: Optional[str] = None,
        timeout: float = BACKEND_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout

    def with_token(self, access_token: Optional[str]) -> "BackendClient":
        """Return a copy of this client acting on behalf of another user token."""
        return BackendClient(self.base_url, self.api_key, access_token, self.timeout)

    def headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        """
        Send one request to the backend.

        Args:
            method: HTTP method
            path: Path relative to the project URL (e.g. "rest/v1/boats")
            params: Query parameters
            json: JSON body
            headers: Extra headers

        Returns:
            requests.Response: Successful (2xx) response

        Raises:
            AuthError: 401 from the backend
            PermissionDenied: 403 from the backend (row-level security)
            NotFound: 404 from the backend
            NetworkError: Transport failure, timeout or any other non-2xx status
        """
        url = self.base_url + path
        resource = path.replace(REST_PATH, "", 1)
        start_time = time.time()

        try:
            res = requests.request(
                method,
                url,
                params=params,
                json=json,
                headers=self.headers(headers),
                timeout=self.timeout,
            )
        except requests.RequestException as err:
            backend_requests.labels(resource=resource, method=method, status_code="error").inc()
            logger.warning("backend_request_failed", resource=resource, method=method, error=str(err))
            raise NetworkError(f"Backend request to {resource} failed: {err}") from err

        backend_latency.labels(resource=resource).observe(time.time() - start_time)
        backend_requests.labels(
            resource=resource, method=method, status_code=str(res.status_code)
        ).inc()

        if res.status_code < 400:
            logger.debug("backend_request", resource=resource, method=method, status=res.status_code)
            return res

        message = _error_message(res)
        logger.warning(
            "backend_request_rejected",
            resource=resource,
            method=method,
            status=res.status_code,
            error=message,
        )
        if res.status_code == 401:
            raise AuthError(message)
        if res.status_code == 403:
            raise PermissionDenied(message)
        if res.status_code == 404:
            raise NotFound(message)
        raise NetworkError(message, status_code=res.status_code)

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read rows from a table.

        Args:
            table: Table name
            columns: Select expression (may embed joins)
            filters: Column -> value filters
            order: Order column, "-col" for descending
            limit: Maximum number of rows

        Returns:
            List[Dict[str, Any]]: Matching rows
        """
        params = build_params(filters, columns=columns, order=order, limit=limit)
        res = self.request("GET", REST_PATH + table, params=params)
        return cast(List[Dict[str, Any]], res.json())

    def insert(self, table: str, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Insert rows and return them as stored.

        Args:
            table: Table name
            rows: Rows to insert

        Returns:
            List[Dict[str, Any]]: Inserted rows including server defaults
        """
        res = self.request(
            "POST",
            REST_PATH + table,
            json=list(rows),
            headers={"Prefer": "return=representation"},
        )
        return cast(List[Dict[str, Any]], res.json())

    def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        """
        Update rows matching filters and return the updated rows.

        An empty result means no row matched, which callers use to detect
        conditional-update conflicts.

        Args:
            table: Table name
            values: Column values to set
            filters: Column -> value filters; must not be empty

        Returns:
            List[Dict[str, Any]]: Updated rows
        """
        if not filters:
            raise ValueError("Refusing to update without filters")

        res = self.request(
            "PATCH",
            REST_PATH + table,
            params=build_params(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return cast(List[Dict[str, Any]], res.json())

    def delete(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Delete rows matching filters and return the deleted rows.

        Args:
            table: Table name
            filters: Column -> value filters; must not be empty

        Returns:
            List[Dict[str, Any]]: Deleted rows (empty if nothing matched)
        """
        if not filters:
            raise ValueError("Refusing to delete without filters")

        res = self.request(
            "DELETE",
            REST_PATH + table,
            params=build_params(filters),
            headers={"Prefer": "return=representation"},
        )
        return cast(List[Dict[str, Any]], res.json())

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call a database function exposed by the backend.

        Args:
            function: Function name (e.g. "assign_delivery_job")
            params: Named arguments

        Returns:
            Any: Decoded JSON result, or None for void functions
        """
        res = self.request("POST", REST_PATH + f"rpc/{function}", json=params or {})
        if not res.content:
            return None
        return res.json()

    def ping(self) -> bool:
        """Return True if the backend REST endpoint answers."""
        try:
            self.request("GET", REST_PATH)
        except (NetworkError, AuthError, PermissionDenied, NotFound):
            return False
        return True
