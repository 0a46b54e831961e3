"""
Local Authentication

Process-local accounts for running without Firebase (paired with the
in-memory store). Nothing survives a restart.
"""

import hashlib
from uuid import uuid4

from src.services.auth.interface import AuthClientInterface, AuthError, Session


MIN_PASSWORD_LENGTH = 6


class LocalAuthClient(AuthClientInterface):
    """Keeps email/password accounts in a dict."""

    def __init__(self):
        # email -> (password digest, user_id)
        self._accounts: dict[str, tuple[str, str]] = {}

    @staticmethod
    def _digest(password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    def sign_in_anonymously(self) -> Session:
        return Session(user_id=f"local-{uuid4().hex}", is_anonymous=True)

    def sign_up(self, email: str, password: str) -> Session:
        email = email.strip().lower()
        if "@" not in email:
            raise AuthError("Please enter a valid email address.", code="INVALID_EMAIL")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError("Password should be at least 6 characters.", code="WEAK_PASSWORD")
        if email in self._accounts:
            raise AuthError("An account with this email already exists.", code="EMAIL_EXISTS")
        user_id = f"local-{uuid4().hex}"
        self._accounts[email] = (self._digest(password), user_id)
        return Session(user_id=user_id, email=email)

    def sign_in_with_password(self, email: str, password: str) -> Session:
        email = email.strip().lower()
        account = self._accounts.get(email)
        if account is None or account[0] != self._digest(password):
            raise AuthError("Email or password is incorrect.", code="INVALID_LOGIN_CREDENTIALS")
        return Session(user_id=account[1], email=email)
