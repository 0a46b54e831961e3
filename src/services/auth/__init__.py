"""
Authentication Services Package

Firebase Auth (REST) is the production provider; the local provider pairs
with in-memory storage for runs without Firebase.
"""

from src.services.auth.interface import AuthClientInterface, AuthError, Session
from src.services.auth.firebase_auth import FirebaseAuthClient
from src.services.auth.local import LocalAuthClient
from src.services.auth.session import SessionListener, SessionManager

__all__ = [
    "AuthClientInterface",
    "AuthError",
    "FirebaseAuthClient",
    "LocalAuthClient",
    "Session",
    "SessionListener",
    "SessionManager",
]
