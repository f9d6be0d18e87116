"""Error kinds raised by the session core and its broker boundary"""


class AuthError(Exception):
    """Base class for authentication errors

    Attributes:
        kind: Stable name of the error kind, used in status payloads
    """
    kind = "auth_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class BrokerUnavailable(AuthError):
    """The native broker call could not be placed at all"""
    kind = "broker_unavailable"


class ExchangeFailed(AuthError):
    """The broker was reached but the exchange failed

    Covers expired or revoked refresh tokens, network failure during the
    exchange and malformed callback URLs.
    """
    kind = "exchange_failed"


class NoRefreshToken(AuthError):
    """Refresh attempted without a credential or a refresh token"""
    kind = "no_refresh_token"


class UnclassifiedLink(AuthError):
    """Deep link matched no known pattern (logged only)"""
    kind = "unclassified"
