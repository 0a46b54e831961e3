"""
Firebase Authentication

Signs users in through the Identity Toolkit REST API, which is what the
Firebase web SDK uses under the hood. Supports:
- Anonymous accounts (no credentials, used as the silent fallback)
- Email/password sign-up and sign-in
"""

from typing import Optional

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import FirebaseSettings, get_settings
from src.services.auth.interface import AuthClientInterface, AuthError, Session


IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"

# Provider error codes mapped to messages a user can act on
AUTH_ERROR_MESSAGES = {
    "EMAIL_EXISTS": "An account with this email already exists.",
    "EMAIL_NOT_FOUND": "Email or password is incorrect.",
    "INVALID_PASSWORD": "Email or password is incorrect.",
    "INVALID_LOGIN_CREDENTIALS": "Email or password is incorrect.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "MISSING_PASSWORD": "Please enter a password.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "USER_DISABLED": "This account has been disabled.",
    "OPERATION_NOT_ALLOWED": "This sign-in method is not enabled for the project.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
}


class FirebaseAuthClient(AuthClientInterface):
    """Thin client over the Identity Toolkit ``accounts:*`` endpoints."""

    def __init__(
        self,
        settings: Optional[FirebaseSettings] = None,
        http: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().firebase
        self._http = http or requests.Session()

    @retry(
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _post(self, endpoint: str, payload: dict) -> requests.Response:
        return self._http.post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:{endpoint}",
            params={"key": self._settings.web_api_key},
            json=payload,
            timeout=self._settings.auth_timeout_seconds,
        )

    def _call(self, endpoint: str, payload: dict) -> dict:
        if not self._settings.web_api_key:
            raise AuthError("Firebase web API key is not configured", code="CONFIGURATION")

        try:
            response = self._post(endpoint, payload)
        except requests.RequestException as e:
            raise AuthError(f"Could not reach the authentication service: {e}", code="NETWORK")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200:
            # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
            raw = str(body.get("error", {}).get("message", "") or f"HTTP {response.status_code}")
            code = raw.split(":", 1)[0].strip()
            raise AuthError(AUTH_ERROR_MESSAGES.get(code, raw), code=code)

        return body

    @staticmethod
    def _to_session(body: dict, is_anonymous: bool) -> Session:
        return Session(
            user_id=body["localId"],
            email=body.get("email") or None,
            is_anonymous=is_anonymous,
            id_token=body.get("idToken", ""),
            refresh_token=body.get("refreshToken", ""),
        )

    def sign_in_anonymously(self) -> Session:
        body = self._call("signUp", {"returnSecureToken": True})
        return self._to_session(body, is_anonymous=True)

    def sign_up(self, email: str, password: str) -> Session:
        body = self._call("signUp", {
            "email": email.strip(),
            "password": password,
            "returnSecureToken": True,
        })
        return self._to_session(body, is_anonymous=False)

    def sign_in_with_password(self, email: str, password: str) -> Session:
        body = self._call("signInWithPassword", {
            "email": email.strip(),
            "password": password,
            "returnSecureToken": True,
        })
        return self._to_session(body, is_anonymous=False)
