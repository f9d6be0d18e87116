"""Native broker bridge over local HTTP

Each broker command is a route on the broker's local bridge:

    POST /login
    POST /logout
    POST /refresh_token         {"refresh_token": ...}
    POST /handle_redirect_uri   {"url": ...}
    GET  /auth_data             -> credential JSON or null
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from settings import BROKER_URL, BROKER_TIMEOUT
from session.errors import BrokerUnavailable, ExchangeFailed
from session.models import Credential
from .base import CredentialBroker

logger = logging.getLogger(__name__)


class HttpCredentialBroker(CredentialBroker):
    """Invokes native broker commands through its HTTP bridge"""

    def __init__(
        self,
        base_url: str = BROKER_URL,
        timeout: Optional[float] = BROKER_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Broker bridge base URL
            timeout: Per-call timeout in seconds (None waits indefinitely)
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _invoke(
        self,
        command: str,
        payload: Optional[Dict[str, Any]] = None,
        method: str = "POST",
    ) -> Any:
        """Place a broker call and return its decoded JSON body

        Raises:
            BrokerUnavailable: If the bridge cannot be reached
            ExchangeFailed: If the broker answers with an error
        """
        url = f"{self.base_url}/{command}"
        logger.debug(f"Invoking broker command {command}")
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(method, url, json=payload)
        except httpx.RequestError as e:
            raise BrokerUnavailable(f"Broker command {command} could not be placed: {e}") from e

        if response.status_code >= 400:
            raise ExchangeFailed(
                f"Broker command {command} failed with status {response.status_code}: {response.text}"
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExchangeFailed(f"Failed to parse broker response for {command}: {e}") from e

    @staticmethod
    def _parse_credential(command: str, body: Any) -> Credential:
        if not isinstance(body, dict):
            raise ExchangeFailed(f"Broker command {command} returned no credential")
        try:
            return Credential.model_validate(body)
        except ValidationError as e:
            raise ExchangeFailed(f"Broker command {command} returned a malformed credential: {e}") from e

    async def initiate_login(self) -> None:
        await self._invoke("login")
        logger.info("Authorization flow opened by broker")

    async def initiate_logout(self) -> None:
        await self._invoke("logout")

    async def exchange_refresh_token(self, refresh_token: str) -> Credential:
        body = await self._invoke("refresh_token", {"refresh_token": refresh_token})
        return self._parse_credential("refresh_token", body)

    async def exchange_callback_url(self, url: str) -> Credential:
        body = await self._invoke("handle_redirect_uri", {"url": url})
        return self._parse_credential("handle_redirect_uri", body)

    async def get_persisted_credential(self) -> Optional[Credential]:
        body = await self._invoke("auth_data", method="GET")
        if body is None:
            return None
        return self._parse_credential("auth_data", body)
