"""
Unit tests for middleware components.
"""

from __future__ import annotations

import pytest
import structlog
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from paddle_booking.middleware import RequestIDMiddleware


@pytest.fixture
def app_with_middleware() -> FastAPI:
    """Create FastAPI app with RequestIDMiddleware for testing."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/test")
    async def test_endpoint(request: Request) -> dict[str, str]:
        """Return the request ID and the bound log context."""
        context = structlog.contextvars.get_contextvars()
        return {"request_id": request.state.request_id, "logged_path": context["path"]}

    return app


@pytest.fixture
def client(app_with_middleware: FastAPI) -> TestClient:
    return TestClient(app_with_middleware)


@pytest.mark.unit
def test_request_id_middleware_adds_header(client: TestClient) -> None:
    """Test that RequestIDMiddleware adds X-Request-ID header to response."""
    response = client.get("/test")

    assert response.status_code == 200
    assert len(response.headers["X-Request-ID"]) == 36  # UUID length


@pytest.mark.unit
def test_request_id_matches_header_and_state(client: TestClient) -> None:
    response = client.get("/test")

    assert response.headers["X-Request-ID"] == response.json()["request_id"]


@pytest.mark.unit
def test_request_id_unique_per_request(client: TestClient) -> None:
    first = client.get("/test").headers["X-Request-ID"]
    second = client.get("/test").headers["X-Request-ID"]

    assert first != second


@pytest.mark.unit
def test_incoming_request_id_is_reused(client: TestClient) -> None:
    """Test that a caller-supplied X-Request-ID is echoed rather than replaced."""
    response = client.get("/test", headers={"X-Request-ID": "app-trace-42"})

    assert response.headers["X-Request-ID"] == "app-trace-42"
    assert response.json()["request_id"] == "app-trace-42"


@pytest.mark.unit
def test_request_context_is_bound_for_logging(client: TestClient) -> None:
    response = client.get("/test")

    assert response.json()["logged_path"] == "/test"
    assert structlog.contextvars.get_contextvars() == {}
