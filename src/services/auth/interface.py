"""
Abstract Authentication Interface

The signed-in identity is carried as an explicit, immutable ``Session``
rather than global state, and every auth provider hands one back.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """Identity of the signed-in user."""
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    is_anonymous: bool = False
    id_token: str = Field(default="", repr=False)
    refresh_token: str = Field(default="", repr=False)

    @property
    def display_name(self) -> str:
        """Greeting name: the part of the email before ``@``, or "User"."""
        if self.email and "@" in self.email:
            local_part = self.email.split("@", 1)[0]
            if local_part:
                return local_part
        return "User"


class AuthClientInterface(ABC):
    """
    Abstract interface for auth providers.

    Every method raises ``AuthError`` with a user-facing message on failure.
    """

    @abstractmethod
    def sign_in_anonymously(self) -> Session:
        """Create a fresh anonymous account."""

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Session:
        """Create an email/password account and sign in to it."""

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> Session:
        """Sign in to an existing email/password account."""


class AuthError(Exception):
    """Sign-in or sign-up was rejected, or the provider could not be reached."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)
