"""Tests for authentication and session lifecycle."""

import pytest
from unittest.mock import MagicMock

import requests

from src.config import FirebaseSettings
from src.services.auth import (
    AuthError,
    FirebaseAuthClient,
    LocalAuthClient,
    Session,
    SessionManager,
)


@pytest.fixture
def firebase_settings(tmp_path):
    credentials = tmp_path / "credentials.json"
    credentials.write_text("{}")
    return FirebaseSettings(
        credentials_path=str(credentials),
        web_api_key="test-key",
        app_id="test-app",
    )


def response(status_code, body):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = body
    return mock


class TestSession:
    """Tests for the Session model."""

    def test_display_name_from_email(self):
        assert Session(user_id="u1", email="ana.garcia@example.com").display_name == "ana.garcia"

    def test_display_name_default(self):
        assert Session(user_id="u1", is_anonymous=True).display_name == "User"

    def test_session_is_immutable(self):
        session = Session(user_id="u1")
        with pytest.raises(ValueError):
            session.user_id = "u2"

    def test_tokens_hidden_from_repr(self):
        session = Session(user_id="u1", id_token="secret-token")
        assert "secret-token" not in repr(session)


class TestFirebaseAuthClient:
    """Tests for the Identity Toolkit REST client (HTTP mocked)."""

    def test_anonymous_sign_in(self, firebase_settings):
        http = MagicMock()
        http.post.return_value = response(200, {
            "localId": "anon-1",
            "idToken": "id",
            "refreshToken": "refresh",
        })
        session = FirebaseAuthClient(firebase_settings, http=http).sign_in_anonymously()

        assert session.user_id == "anon-1"
        assert session.is_anonymous
        assert session.email is None
        url = http.post.call_args.args[0]
        assert url.endswith("/accounts:signUp")
        assert http.post.call_args.kwargs["params"] == {"key": "test-key"}
        assert http.post.call_args.kwargs["json"] == {"returnSecureToken": True}

    def test_password_sign_in(self, firebase_settings):
        http = MagicMock()
        http.post.return_value = response(200, {
            "localId": "u1",
            "email": "ana@example.com",
            "idToken": "id",
            "refreshToken": "refresh",
        })
        session = FirebaseAuthClient(firebase_settings, http=http).sign_in_with_password(
            " ana@example.com ", "secret1"
        )

        assert session.user_id == "u1"
        assert not session.is_anonymous
        assert http.post.call_args.args[0].endswith("/accounts:signInWithPassword")
        assert http.post.call_args.kwargs["json"]["email"] == "ana@example.com"

    def test_provider_error_is_translated(self, firebase_settings):
        http = MagicMock()
        http.post.return_value = response(400, {"error": {"message": "INVALID_LOGIN_CREDENTIALS"}})
        client = FirebaseAuthClient(firebase_settings, http=http)

        with pytest.raises(AuthError) as exc_info:
            client.sign_in_with_password("ana@example.com", "wrong")
        assert exc_info.value.code == "INVALID_LOGIN_CREDENTIALS"
        assert exc_info.value.message == "Email or password is incorrect."

    def test_error_with_detail_suffix(self, firebase_settings):
        http = MagicMock()
        http.post.return_value = response(400, {
            "error": {"message": "WEAK_PASSWORD : Password should be at least 6 characters"}
        })
        with pytest.raises(AuthError) as exc_info:
            FirebaseAuthClient(firebase_settings, http=http).sign_up("ana@example.com", "123")
        assert exc_info.value.code == "WEAK_PASSWORD"

    def test_unknown_error_keeps_provider_message(self, firebase_settings):
        http = MagicMock()
        http.post.return_value = response(400, {"error": {"message": "SOMETHING_NEW"}})
        with pytest.raises(AuthError) as exc_info:
            FirebaseAuthClient(firebase_settings, http=http).sign_in_anonymously()
        assert exc_info.value.message == "SOMETHING_NEW"

    def test_missing_api_key(self, firebase_settings):
        settings = firebase_settings.model_copy(update={"web_api_key": None})
        http = MagicMock()
        with pytest.raises(AuthError):
            FirebaseAuthClient(settings, http=http).sign_in_anonymously()
        http.post.assert_not_called()

    def test_non_retryable_request_error(self, firebase_settings):
        http = MagicMock()
        http.post.side_effect = requests.exceptions.InvalidURL("bad url")
        with pytest.raises(AuthError) as exc_info:
            FirebaseAuthClient(firebase_settings, http=http).sign_in_anonymously()
        assert exc_info.value.code == "NETWORK"
        assert http.post.call_count == 1


class TestLocalAuthClient:
    """Tests for the offline auth provider."""

    def test_sign_up_then_sign_in(self):
        client = LocalAuthClient()
        created = client.sign_up("Ana@Example.com", "secret1")
        signed_in = client.sign_in_with_password("ana@example.com", "secret1")
        assert created.user_id == signed_in.user_id

    def test_wrong_password(self):
        client = LocalAuthClient()
        client.sign_up("ana@example.com", "secret1")
        with pytest.raises(AuthError):
            client.sign_in_with_password("ana@example.com", "nope123")

    def test_duplicate_email(self):
        client = LocalAuthClient()
        client.sign_up("ana@example.com", "secret1")
        with pytest.raises(AuthError):
            client.sign_up("ana@example.com", "secret2")

    def test_anonymous_accounts_are_distinct(self):
        client = LocalAuthClient()
        assert client.sign_in_anonymously().user_id != client.sign_in_anonymously().user_id


class TestSessionManager:
    """Tests for session lifecycle."""

    def test_ensure_session_falls_back_to_anonymous(self):
        listener = MagicMock()
        manager = SessionManager(LocalAuthClient(), listener)
        session = manager.ensure_session()
        assert session.is_anonymous
        listener.start.assert_called_once_with(session)
        assert manager.ensure_session() is session

    def test_ensure_session_returns_none_on_failure(self):
        auth = MagicMock()
        auth.sign_in_anonymously.side_effect = AuthError("offline")
        listener = MagicMock()
        manager = SessionManager(auth, listener)
        assert manager.ensure_session() is None
        listener.start.assert_not_called()

    def test_switching_user_restarts_subscription(self):
        auth = LocalAuthClient()
        auth.sign_up("ana@example.com", "secret1")
        listener = MagicMock()
        manager = SessionManager(auth, listener)

        manager.ensure_session()
        manager.sign_in("ana@example.com", "secret1")

        assert listener.start.call_count == 2
        assert listener.stop.call_count == 1
        assert manager.current.email == "ana@example.com"

    def test_same_user_keeps_subscription(self):
        auth = LocalAuthClient()
        auth.sign_up("ana@example.com", "secret1")
        listener = MagicMock()
        manager = SessionManager(auth, listener)

        manager.sign_in("ana@example.com", "secret1")
        manager.sign_in("ana@example.com", "secret1")
        assert listener.start.call_count == 1
        listener.stop.assert_not_called()

    def test_sign_in_failure_propagates(self):
        listener = MagicMock()
        manager = SessionManager(LocalAuthClient(), listener)
        with pytest.raises(AuthError):
            manager.sign_in("nobody@example.com", "secret1")
        assert manager.current is None

    def test_sign_out_stops_subscription(self):
        listener = MagicMock()
        manager = SessionManager(LocalAuthClient(), listener)
        manager.ensure_session()
        manager.sign_out()
        listener.stop.assert_called_once()
        assert manager.current is None
