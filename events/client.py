"""Client for a running event listener (used by the CLI)"""

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from settings import EVENT_BIND_ADDRESS, EVENT_PORT
from session.errors import AuthError, BrokerUnavailable, ExchangeFailed, NoRefreshToken
from .server import DEEP_LINK_PATH, SESSION_PATH

logger = logging.getLogger(__name__)

_ERROR_KINDS = {
    BrokerUnavailable.kind: BrokerUnavailable,
    ExchangeFailed.kind: ExchangeFailed,
    NoRefreshToken.kind: NoRefreshToken,
}


class ListenerUnavailable(Exception):
    """No session daemon is listening"""


class EventClient:
    """Talks to the session daemon's event listener"""

    def __init__(
        self,
        host: str = EVENT_BIND_ADDRESS,
        port: int = EVENT_PORT,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = f"http://{host}:{port}"
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, transport=self._transport, timeout=self.timeout
            ) as client:
                response = await client.request(method, path, json=payload)
        except httpx.RequestError as e:
            raise ListenerUnavailable(f"No session daemon at {self.base_url}: {e}") from e

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if response.status_code >= 400:
            if isinstance(data, dict) and data.get("kind") in _ERROR_KINDS:
                raise _ERROR_KINDS[data["kind"]](data.get("error", ""))
            raise AuthError(f"Session daemon returned {response.status_code}: {response.text}")
        return data

    async def forward_deep_link(self, urls: Sequence[str]) -> Dict[str, Any]:
        """Hand a deep-link batch to the running instance"""
        logger.debug(f"Forwarding {len(urls)} deep link(s) to {self.base_url}")
        return await self._request("POST", DEEP_LINK_PATH, {"urls": list(urls)})

    async def get_session(self) -> Dict[str, Any]:
        return await self._request("GET", SESSION_PATH)

    async def login(self) -> Dict[str, Any]:
        return await self._request("POST", f"{SESSION_PATH}/login")

    async def logout(self) -> Dict[str, Any]:
        return await self._request("POST", f"{SESSION_PATH}/logout")

    async def refresh(self) -> Dict[str, Any]:
        return await self._request("POST", f"{SESSION_PATH}/refresh")
