"""Authentication session lifecycle

The SessionManager is the only public entry point; it exclusively owns the
CredentialStore and the RefreshScheduler.
"""

from .errors import (
    AuthError,
    BrokerUnavailable,
    ExchangeFailed,
    NoRefreshToken,
    UnclassifiedLink,
)
from .models import Credential, SessionState, UserInfo
from .store import CredentialStore
from .scheduler import RefreshScheduler
from .manager import SessionManager

__all__ = [
    "AuthError",
    "BrokerUnavailable",
    "ExchangeFailed",
    "NoRefreshToken",
    "UnclassifiedLink",
    "Credential",
    "SessionState",
    "UserInfo",
    "CredentialStore",
    "RefreshScheduler",
    "SessionManager",
]
