"""Identity-provider calls against the backend's auth API."""

from __future__ import annotations

from typing import Any, Dict, Optional, cast
from urllib.parse import urlencode

import structlog

from paddle_booking.errors import AuthError, NetworkError
from paddle_booking.network.client import BackendClient

logger = structlog.get_logger(__name__)

AUTH_PATH = "auth/v1/"

# The identity API answers bad credentials and duplicate sign-ups with these
CREDENTIAL_FAILURE_CODES = {400, 422}


def _auth_call(
    client: BackendClient,
    method: str,
    path: str,
    params: Optional[Dict[str, str]] = None,
    json: Any = None,
) -> Dict[str, Any]:
    try:
        res = client.request(method, AUTH_PATH + path, params=params, json=json)
    except NetworkError as err:
        if err.status_code in CREDENTIAL_FAILURE_CODES:
            raise AuthError(str(err)) from err
        raise
    if not res.content:
        return {}
    return cast(Dict[str, Any], res.json())


def sign_in_with_password(client: BackendClient, email: str, password: str) -> Dict[str, Any]:
    """
    Exchange email and password for a session.

    Args:
        client (BackendClient): Client bound to the project anon key.
        email (str): Account email.
        password (str): Account password.

    Returns:
        Dict[str, Any]: Session with access_token, refresh_token and user.

    Raises:
        AuthError: If the credentials are rejected or no token is returned.
    """
    logger.info("sign_in_requested", email=email)
    session = _auth_call(
        client,
        "POST",
        "token",
        params={"grant_type": "password"},
        json={"email": email, "password": password},
    )
    if not isinstance(session.get("access_token"), str):
        raise AuthError("No access_token in sign-in response.")
    return session


def sign_up(
    client: BackendClient,
    email: str,
    password: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Register a new identity.

    The response carries a session only when the project does not require
    email confirmation; otherwise it carries the pending user.

    Args:
        client (BackendClient): Client bound to the project anon key.
        email (str): Account email.
        password (str): Account password.
        metadata (Optional[Dict[str, Any]]): User metadata (e.g. full_name).

    Returns:
        Dict[str, Any]: Session or pending user.
    """
    logger.info("sign_up_requested", email=email)
    return _auth_call(
        client,
        "POST",
        "signup",
        json={"email": email, "password": password, "data": metadata or {}},
    )


def sign_out(client: BackendClient) -> None:
    """Revoke the session of the token the client is bound to."""
    if not client.access_token:
        return
    _auth_call(client, "POST", "logout")


def get_user(client: BackendClient) -> Dict[str, Any]:
    """
    Resolve the identity behind the client's access token.

    Returns:
        Dict[str, Any]: Identity with at least id and email.

    Raises:
        AuthError: If the client carries no token or the token is invalid.
    """
    if not client.access_token:
        raise AuthError("No access token to resolve")
    user = _auth_call(client, "GET", "user")
    if not user.get("id"):
        raise AuthError("Identity response is missing the user id")
    return user


def build_oauth_url(client: BackendClient, provider: str, redirect_to: str) -> str:
    """
    Build the authorize URL that starts an OAuth sign-in.

    Args:
        client (BackendClient): Client bound to the project.
        provider (str): Provider name, e.g. "google".
        redirect_to (str): Where the provider sends the user back.

    Returns:
        str: URL to redirect the user to.
    """
    if not provider:
        raise AuthError("OAuth provider is required")
    query = urlencode({"provider": provider, "redirect_to": redirect_to})
    return f"{client.base_url}{AUTH_PATH}authorize?{query}"
