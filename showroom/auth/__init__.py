"""Admin session and credential verification"""

from .session import AdminSession, SessionStore
from .verifier import CredentialVerifier, HttpCredentialVerifier

__all__ = [
    "AdminSession",
    "SessionStore",
    "CredentialVerifier",
    "HttpCredentialVerifier",
]
