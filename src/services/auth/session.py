"""
Session Lifecycle

``SessionManager`` owns the current session and keeps exactly one data
subscription alive for it: switching to a different user stops the
previous subscription before the new one starts, and signing out stops it
without starting another.
"""

from typing import Optional, Protocol

from src.activity import ActivityLogger
from src.services.auth.interface import AuthClientInterface, AuthError, Session


class SessionListener(Protocol):
    """Anything that follows the signed-in identity (the expense tracker)."""

    def start(self, session: Session) -> None:
        ...

    def stop(self) -> None:
        ...


class SessionManager:
    """Holds the current session and drives its subscription."""

    def __init__(
        self,
        auth_client: AuthClientInterface,
        listener: SessionListener,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._auth = auth_client
        self._listener = listener
        self._activity = activity_logger or ActivityLogger()
        self._session: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._session

    def _set_session(self, session: Session) -> Session:
        if self._session is not None and self._session.user_id == session.user_id:
            # Same user (e.g. refreshed tokens): keep the running subscription
            self._session = session
            return session
        if self._session is not None:
            self._listener.stop()
        self._session = session
        self._activity.log_signed_in(session.user_id, session.is_anonymous)
        self._listener.start(session)
        return session

    def sign_in(self, email: str, password: str) -> Session:
        """Raises AuthError with a user-facing message on failure."""
        try:
            session = self._auth.sign_in_with_password(email, password)
        except AuthError as e:
            self._activity.log_auth_failed("password", e.message)
            raise
        return self._set_session(session)

    def sign_up(self, email: str, password: str) -> Session:
        try:
            session = self._auth.sign_up(email, password)
        except AuthError as e:
            self._activity.log_auth_failed("sign_up", e.message)
            raise
        return self._set_session(session)

    def sign_in_anonymously(self) -> Session:
        try:
            session = self._auth.sign_in_anonymously()
        except AuthError as e:
            self._activity.log_auth_failed("anonymous", e.message)
            raise
        return self._set_session(session)

    def ensure_session(self) -> Optional[Session]:
        """
        Current session, falling back to an anonymous account.

        Returns None (after logging) when even anonymous sign-in fails.
        """
        if self._session is not None:
            return self._session
        try:
            return self.sign_in_anonymously()
        except AuthError:
            return None

    def sign_out(self) -> None:
        if self._session is None:
            return
        user_id = self._session.user_id
        self._listener.stop()
        self._session = None
        self._activity.log_signed_out(user_id)
