"""
Boundary interface for the native credential broker.
The broker performs the OAuth exchanges and persists the credential;
the session core only calls these operations.
"""
from abc import ABC, abstractmethod
from typing import Optional

from session.models import Credential


class CredentialBroker(ABC):
    """Abstract base class for native credential brokers

    Implementations raise ``BrokerUnavailable`` when a call cannot be placed
    and ``ExchangeFailed`` when it is placed but fails.
    """

    @abstractmethod
    async def initiate_login(self) -> None:
        """Start the interactive login flow (result arrives out-of-process)"""
        pass

    @abstractmethod
    async def initiate_logout(self) -> None:
        """Tear down the broker's session and persisted credential"""
        pass

    @abstractmethod
    async def exchange_refresh_token(self, refresh_token: str) -> Credential:
        """Exchange a refresh token for a new credential

        Args:
            refresh_token: Refresh token of the current credential

        Returns:
            The renewed credential
        """
        pass

    @abstractmethod
    async def exchange_callback_url(self, url: str) -> Credential:
        """Exchange an OAuth redirect URL for a credential

        Args:
            url: Full callback URL including the authorization code

        Returns:
            The new credential
        """
        pass

    @abstractmethod
    async def get_persisted_credential(self) -> Optional[Credential]:
        """Return the credential the broker persisted, if any"""
        pass
