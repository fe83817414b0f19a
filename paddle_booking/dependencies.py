"""
FastAPI dependency injection providers.

Every request gets its own backend client and auth session. The caller's
bearer token is forwarded to the backend so its row-level security applies
to the caller, not to this service.

Dependencies can be overridden in tests using app.dependency_overrides, e.g.
to hand routes a client pointed at a fake backend.
"""

from __future__ import annotations

from typing import Generator, Optional

from fastapi import Depends, Header

from paddle_booking.errors import AuthError
from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import UserProfile
from paddle_booking.services.session import AuthSession


def get_backend_client() -> Generator[BackendClient, None, None]:
    """
    Provide an anon-key backend client for dependency injection.

    Yields:
        BackendClient: Client bound to the project anon key.
    """
    yield BackendClient()


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Authorization header must be 'Bearer <token>'")
    return token.strip()


def get_session(
    client: BackendClient = Depends(get_backend_client),
    token: Optional[str] = Depends(bearer_token),
) -> AuthSession:
    """
    Resolve the caller's session from their bearer token.

    Returns:
        AuthSession: Authenticated, or anonymous when no valid token was sent.
    """
    session = AuthSession(client)
    session.restore(token)
    return session


def get_current_user(session: AuthSession = Depends(get_session)) -> UserProfile:
    """
    Require a signed-in caller.

    Raises:
        AuthError: No valid bearer token.
    """
    if not session.is_authenticated or session.user is None:
        raise AuthError("Sign-in required")
    return session.user


def get_user_client(session: AuthSession = Depends(get_session)) -> BackendClient:
    """Backend client acting as the caller (anon key when not signed in)."""
    return session.client
