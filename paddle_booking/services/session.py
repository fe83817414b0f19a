"""
Authentication session.

An AuthSession holds the signed-in identity and its profile for one caller.
It starts in the unknown state until a sign-in, sign-up or restore resolves
it; subscribers are told about every state change. Sessions are passed
explicitly to whatever needs them rather than living in a module global.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import structlog

from paddle_booking.config import OAUTH_REDIRECT_URL
from paddle_booking.db.readers.users import get_user_profile
from paddle_booking.db.writers.users import insert_user_profile
from paddle_booking.errors import AuthError, BookingError, NetworkError, ValidationError
from paddle_booking.network.auth import (
    build_oauth_url,
    get_user,
    sign_in_with_password,
    sign_out,
    sign_up,
)
from paddle_booking.network.client import BackendClient
from paddle_booking.schemas.entities import UserProfile

logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


SessionListener = Callable[[SessionState, Optional[UserProfile]], None]


def fetch_or_create_profile(
    client: BackendClient,
    identity: Dict[str, Any],
    full_name: Optional[str] = None,
) -> UserProfile:
    """
    Load the profile row for an identity, creating it on first sign-in.

    New profiles always get the customer role. When two sign-ins race to
    create the row, the loser re-reads the winner's row.

    Args:
        client (BackendClient): Client bound to the identity's token.
        identity (Dict[str, Any]): Identity from the auth API (id, email, user_metadata).
        full_name (Optional[str]): Name supplied at sign-up.

    Returns:
        UserProfile: The stored profile.
    """
    user_id = identity["id"]
    profile = get_user_profile(client, user_id)
    if profile is not None:
        return profile

    metadata = identity.get("user_metadata") or {}
    try:
        return insert_user_profile(
            client,
            user_id,
            identity.get("email") or "",
            full_name=full_name or metadata.get("full_name"),
        )
    except NetworkError as e:
        if e.status_code != 409:
            raise
        logger.info("user_profile_created_concurrently", user_id=user_id)
        profile = get_user_profile(client, user_id)
        if profile is None:
            raise
        return profile


class AuthSession:
    """
    Session state for a single caller.

    Example:
        >>> session = AuthSession(BackendClient())
        >>> unsubscribe = session.subscribe(lambda state, user: print(state.value))
        >>> session.login("paddler@example.com", "secret")  # prints "authenticated"
        >>> unsubscribe()
    """

    def __init__(self, client: Optional[BackendClient] = None) -> None:
        self._anon_client = client or BackendClient()
        self._state = SessionState.UNKNOWN
        self._user: Optional[UserProfile] = None
        self._access_token: Optional[str] = None
        self._listeners: List[SessionListener] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def user(self) -> Optional[UserProfile]:
        """
        The signed-in profile, or None when anonymous.

        Raises:
            AuthError: If the session has not been resolved yet.
        """
        if self._state == SessionState.UNKNOWN:
            raise AuthError("Session has not been resolved yet")
        return self._user

    @property
    def client(self) -> BackendClient:
        """Backend client acting as the signed-in user (anon key when signed out)."""
        if self._access_token:
            return self._anon_client.with_token(self._access_token)
        return self._anon_client

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener for state changes.

        Returns:
            Callable[[], None]: Call to unsubscribe.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _set_state(
        self,
        state: SessionState,
        user: Optional[UserProfile] = None,
        access_token: Optional[str] = None,
    ) -> None:
        with self._lock:
            self._state = state
            self._user = user
            self._access_token = access_token
            listeners = list(self._listeners)

        logger.info(
            "session_state_changed", state=state.value, user_id=user.id if user else None
        )
        for listener in listeners:
            try:
                listener(state, user)
            except Exception:
                logger.exception("session_listener_failed", state=state.value)

    def _settle_after_failure(self) -> None:
        # A failed first attempt resolves to anonymous; an existing session is kept
        if self._state == SessionState.UNKNOWN:
            self._set_state(SessionState.ANONYMOUS)

    def _establish(
        self,
        access_token: str,
        identity: Optional[Dict[str, Any]] = None,
        full_name: Optional[str] = None,
    ) -> UserProfile:
        bound = self._anon_client.with_token(access_token)
        if not identity or not identity.get("id"):
            identity = get_user(bound)
        profile = fetch_or_create_profile(bound, identity, full_name)
        self._set_state(SessionState.AUTHENTICATED, profile, access_token)
        return profile

    def login(self, email: str, password: str) -> UserProfile:
        """
        Sign in with email and password.

        Raises:
            ValidationError: Email or password missing.
            AuthError: Credentials rejected.
        """
        try:
            if not email or not password:
                raise ValidationError("Email and password are required")
            session = sign_in_with_password(self._anon_client, email, password)
            return self._establish(session["access_token"], session.get("user"))
        except BookingError:
            self._settle_after_failure()
            raise

    def signup(self, email: str, password: str, full_name: Optional[str] = None) -> Optional[UserProfile]:
        """
        Register a new account.

        When the project requires email confirmation no session is issued;
        the session stays anonymous and None is returned.

        Args:
            email (str): Account email.
            password (str): Account password.
            full_name (Optional[str]): Display name stored in the profile.

        Returns:
            Optional[UserProfile]: Profile when signed in straight away.
        """
        try:
            if not email or not password:
                raise ValidationError("Email and password are required")
            result = sign_up(self._anon_client, email, password, {"full_name": full_name})
            access_token = result.get("access_token")
            if not isinstance(access_token, str):
                logger.info("sign_up_confirmation_required", email=email)
                self._set_state(SessionState.ANONYMOUS)
                return None
            return self._establish(access_token, result.get("user"), full_name)
        except BookingError:
            self._settle_after_failure()
            raise

    def logout(self) -> None:
        """Sign out. Local state is cleared even if the remote revoke fails."""
        try:
            sign_out(self.client)
        except BookingError as e:
            logger.warning("remote_sign_out_failed", error=str(e))
        finally:
            self._set_state(SessionState.ANONYMOUS)

    def login_with_oauth_provider(self, provider: str, redirect_to: Optional[str] = None) -> str:
        """Return the URL that starts an OAuth sign-in with the given provider."""
        url = build_oauth_url(self._anon_client, provider, redirect_to or OAUTH_REDIRECT_URL)
        logger.info("oauth_sign_in_started", provider=provider)
        return url

    def complete_oauth_login(self, access_token: str) -> UserProfile:
        """Finish an OAuth sign-in with the token from the redirect."""
        try:
            if not access_token:
                raise AuthError("OAuth redirect did not carry an access token")
            return self._establish(access_token)
        except BookingError:
            self._settle_after_failure()
            raise

    def restore(self, access_token: Optional[str]) -> Optional[UserProfile]:
        """
        Resolve the session from a previously issued token.

        A missing, expired or revoked token leaves the session anonymous.

        Returns:
            Optional[UserProfile]: Profile if the token is still valid.
        """
        if not access_token:
            self._set_state(SessionState.ANONYMOUS)
            return None
        try:
            return self._establish(access_token)
        except AuthError as e:
            logger.info("session_restore_failed", error=str(e))
            self._set_state(SessionState.ANONYMOUS)
            return None
