"""Native credential broker boundary"""

from .base import CredentialBroker
from .http_broker import HttpCredentialBroker

__all__ = [
    "CredentialBroker",
    "HttpCredentialBroker",
]
