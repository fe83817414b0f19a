from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from paddle_booking.dependencies import get_backend_client, get_current_user, get_session
from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import UserProfile
from paddle_booking.schemas.requests import LoginPayload, OAuthCallbackPayload, SignupPayload
from paddle_booking.services.session import AuthSession

logger = structlog.get_logger(__name__)
router = APIRouter()


def _session_body(session: AuthSession) -> dict[str, Any]:
    return {"access_token": session.access_token, "user": session.user}


@router.post("/login")
def login(payload: LoginPayload, client: BackendClient = Depends(get_backend_client)) -> dict[str, Any]:
    """
    Sign in with email and password.

    Returns:
        dict: access_token to send as a bearer token, and the user profile
    """
    session = AuthSession(client)
    session.login(payload.email, payload.password)
    return _session_body(session)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupPayload, client: BackendClient = Depends(get_backend_client)) -> dict[str, Any]:
    """
    Register a new customer account.

    When email confirmation is required no session is issued and
    confirmation_required is true.
    """
    session = AuthSession(client)
    user = session.signup(payload.email, payload.password, payload.full_name)
    return {**_session_body(session), "confirmation_required": user is None}


@router.post("/logout")
def logout(session: AuthSession = Depends(get_session)) -> dict[str, str]:
    session.logout()
    return {"message": "Signed out"}


@router.get("/oauth/{provider}")
def oauth_start(
    provider: str,
    redirect_to: Optional[str] = Query(None, description="Override the configured redirect URL"),
    client: BackendClient = Depends(get_backend_client),
) -> dict[str, str]:
    """Return the URL that starts an OAuth sign-in with the provider."""
    return {"url": AuthSession(client).login_with_oauth_provider(provider, redirect_to)}


@router.post("/oauth/callback")
def oauth_callback(
    payload: OAuthCallbackPayload, client: BackendClient = Depends(get_backend_client)
) -> dict[str, Any]:
    """Finish an OAuth sign-in with the access token from the redirect."""
    session = AuthSession(client)
    session.complete_oauth_login(payload.access_token)
    return _session_body(session)


@router.get("/me")
def me(user: UserProfile = Depends(get_current_user)) -> UserProfile:
    return user
