"""
Unit tests for AuthSession state handling.

Identity API calls are patched; profile rows live in the in-memory backend.
"""

from __future__ import annotations

from typing import Any, Optional
from unittest.mock import Mock, patch

import pytest

from paddle_booking.errors import AuthError, NetworkError, ValidationError
from paddle_booking.schemas.entities import Role, UserProfile
from paddle_booking.services.session import AuthSession, SessionState, fetch_or_create_profile

IDENTITY = {
    "id": "user-new",
    "email": "new.rider@example.com",
    "user_metadata": {"full_name": "New Rider"},
}


class Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[SessionState, Optional[str]]] = []

    def __call__(self, state: SessionState, user: Optional[UserProfile]) -> None:
        self.events.append((state, user.id if user else None))


@pytest.fixture
def session(backend: Any) -> AuthSession:
    return AuthSession(backend)


@pytest.mark.unit
def test_new_session_is_unknown_and_user_is_unreadable(session: AuthSession) -> None:
    """Test that the user cannot be read before the session is resolved."""
    assert session.state == SessionState.UNKNOWN

    with pytest.raises(AuthError):
        _ = session.user


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_out")
@patch("paddle_booking.services.session.sign_in_with_password")
def test_subscribers_see_unknown_then_authenticated_then_anonymous(
    mock_sign_in: Mock, mock_sign_out: Mock, session: AuthSession, backend: Any
) -> None:
    """Test the full sign-in / sign-out sequence as seen by a subscriber."""
    mock_sign_in.return_value = {"access_token": "tok-1", "user": IDENTITY}
    recorder = Recorder()
    session.subscribe(recorder)
    initial = session.state

    session.login("new.rider@example.com", "secret")
    session.logout()

    assert initial == SessionState.UNKNOWN
    assert recorder.events == [
        (SessionState.AUTHENTICATED, "user-new"),
        (SessionState.ANONYMOUS, None),
    ]
    mock_sign_out.assert_called_once()


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_in_with_password")
def test_first_login_creates_customer_profile(
    mock_sign_in: Mock, session: AuthSession, backend: Any
) -> None:
    """Test that a profile row with role customer is created on first sign-in."""
    mock_sign_in.return_value = {"access_token": "tok-1", "user": IDENTITY}

    user = session.login("new.rider@example.com", "secret")

    assert user.role == Role.CUSTOMER
    assert user.full_name == "New Rider"
    assert session.access_token == "tok-1"
    assert backend.row("users", "user-new")["role"] == "customer"


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_in_with_password")
def test_login_keeps_existing_profile(
    mock_sign_in: Mock, session: AuthSession, backend: Any, world: Any
) -> None:
    """Test that an existing profile is reused and its role preserved."""
    mock_sign_in.return_value = {
        "access_token": "tok-admin",
        "user": {"id": world.admin_id, "email": "admin@example.com"},
    }

    user = session.login("admin@example.com", "secret")

    assert user.role == Role.ADMIN
    assert len(backend.select("users", filters={"id": world.admin_id})) == 1


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_out")
@patch("paddle_booking.services.session.sign_in_with_password")
def test_logout_clears_session_when_remote_revoke_fails(
    mock_sign_in: Mock, mock_sign_out: Mock, session: AuthSession
) -> None:
    """Test that local state is torn down even if the backend logout fails."""
    mock_sign_in.return_value = {"access_token": "tok-1", "user": IDENTITY}
    mock_sign_out.side_effect = NetworkError("backend unavailable", 503)
    session.login("new.rider@example.com", "secret")

    session.logout()

    assert session.state == SessionState.ANONYMOUS
    assert session.user is None
    assert session.access_token is None


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_in_with_password")
def test_rejected_login_resolves_to_anonymous(mock_sign_in: Mock, session: AuthSession) -> None:
    """Test that a failed first sign-in settles the session instead of leaving it unknown."""
    mock_sign_in.side_effect = AuthError("Invalid login credentials")
    recorder = Recorder()
    session.subscribe(recorder)

    with pytest.raises(AuthError):
        session.login("new.rider@example.com", "wrong")

    assert session.state == SessionState.ANONYMOUS
    assert session.user is None
    assert recorder.events == [(SessionState.ANONYMOUS, None)]


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_in_with_password")
def test_rejected_login_keeps_existing_session(mock_sign_in: Mock, session: AuthSession) -> None:
    mock_sign_in.return_value = {"access_token": "tok-1", "user": IDENTITY}
    session.login("new.rider@example.com", "secret")
    mock_sign_in.side_effect = AuthError("Invalid login credentials")

    with pytest.raises(AuthError):
        session.login("new.rider@example.com", "wrong")

    assert session.state == SessionState.AUTHENTICATED
    assert session.access_token == "tok-1"


@pytest.mark.unit
def test_login_without_password_resolves_to_anonymous(session: AuthSession) -> None:
    with pytest.raises(ValidationError):
        session.login("new.rider@example.com", "")

    assert session.state == SessionState.ANONYMOUS


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_up")
def test_rejected_signup_resolves_to_anonymous(mock_sign_up: Mock, session: AuthSession) -> None:
    mock_sign_up.side_effect = NetworkError("User already registered", status_code=422)

    with pytest.raises(NetworkError):
        session.signup("new.rider@example.com", "secret", "New Rider")

    assert session.state == SessionState.ANONYMOUS


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_up")
def test_signup_pending_confirmation_is_anonymous(mock_sign_up: Mock, session: AuthSession) -> None:
    """Test that sign-up without an issued session resolves to anonymous."""
    mock_sign_up.return_value = {"id": "user-new", "email": "new.rider@example.com"}

    assert session.signup("new.rider@example.com", "secret", "New Rider") is None
    assert session.state == SessionState.ANONYMOUS
    assert mock_sign_up.call_args[0][3] == {"full_name": "New Rider"}


@pytest.mark.unit
@patch("paddle_booking.services.session.sign_up")
def test_signup_with_session_stores_full_name(
    mock_sign_up: Mock, session: AuthSession, backend: Any
) -> None:
    mock_sign_up.return_value = {
        "access_token": "tok-2",
        "user": {"id": "user-signup", "email": "signup@example.com"},
    }

    user = session.signup("signup@example.com", "secret", "Sign Up")

    assert user is not None
    assert user.full_name == "Sign Up"
    assert session.is_authenticated


@pytest.mark.unit
@patch("paddle_booking.services.session.get_user")
def test_restore_with_revoked_token_is_anonymous(mock_get_user: Mock, session: AuthSession) -> None:
    mock_get_user.side_effect = AuthError("JWT expired")

    assert session.restore("stale-token") is None
    assert session.state == SessionState.ANONYMOUS


@pytest.mark.unit
def test_restore_without_token_is_anonymous(session: AuthSession) -> None:
    assert session.restore(None) is None
    assert session.state == SessionState.ANONYMOUS


@pytest.mark.unit
@patch("paddle_booking.services.session.get_user")
def test_complete_oauth_login_resolves_identity(
    mock_get_user: Mock, session: AuthSession
) -> None:
    """Test that the redirect token is exchanged for the identity and profile."""
    mock_get_user.return_value = IDENTITY

    user = session.complete_oauth_login("oauth-token")

    assert user.id == "user-new"
    assert session.access_token == "oauth-token"


@pytest.mark.unit
def test_oauth_url_uses_configured_redirect(session: AuthSession) -> None:
    url = session.login_with_oauth_provider("google")

    assert "provider=google" in url
    assert "redirect_to=" in url


@pytest.mark.unit
def test_unsubscribe_stops_notifications(session: AuthSession) -> None:
    recorder = Recorder()
    unsubscribe = session.subscribe(recorder)

    unsubscribe()
    session.restore(None)

    assert recorder.events == []


@pytest.mark.unit
def test_failing_listener_does_not_block_others(session: AuthSession) -> None:
    """Test that one broken subscriber does not stop the others being told."""
    recorder = Recorder()
    session.subscribe(Mock(side_effect=RuntimeError("listener bug")))
    session.subscribe(recorder)

    session.restore(None)

    assert recorder.events == [(SessionState.ANONYMOUS, None)]


@pytest.mark.unit
@patch("paddle_booking.services.session.insert_user_profile")
@patch("paddle_booking.services.session.get_user_profile")
def test_profile_created_concurrently_is_reread(mock_get: Mock, mock_insert: Mock) -> None:
    """Test that losing the profile-creation race returns the winner's row."""
    winner = UserProfile(id="user-new", email="new.rider@example.com")
    mock_get.side_effect = [None, winner]
    mock_insert.side_effect = NetworkError("duplicate key", status_code=409)

    assert fetch_or_create_profile(Mock(), IDENTITY) == winner
