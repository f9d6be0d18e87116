"""
Local event listener for native auth events, deep links and control requests
"""
import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

from aiohttp import web
from pydantic import ValidationError

from settings import EVENT_BIND_ADDRESS, EVENT_PORT
from deeplink.router import DeepLinkRouter
from session.errors import AuthError, BrokerUnavailable, NoRefreshToken
from session.manager import SessionManager
from session.models import Credential, SessionState

logger = logging.getLogger(__name__)

AUTH_SUCCESS_PATH = "/events/auth-success"
AUTH_ERROR_PATH = "/events/auth-error"
DEEP_LINK_PATH = "/events/deep-link"
SESSION_PATH = "/session"


def describe_state(state: SessionState) -> Dict[str, Any]:
    """JSON summary of a session state without token material"""
    if state is None:
        return {"authenticated": False}
    return {"authenticated": True, **state.redacted()}


def _error_response(error: AuthError) -> web.Response:
    if isinstance(error, BrokerUnavailable):
        status = 503
    elif isinstance(error, NoRefreshToken):
        status = 409
    else:
        status = 502
    return web.json_response({"error": error.message, "kind": error.kind}, status=status)


class EventListenerServer:
    """Local HTTP server feeding external events into the session manager"""

    def __init__(
        self,
        session: SessionManager,
        router: DeepLinkRouter,
        host: str = EVENT_BIND_ADDRESS,
        port: int = EVENT_PORT,
    ):
        self.session = session
        self.router = router
        self.host = host
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._tasks: Set[asyncio.Task] = set()

        self.app.router.add_post(AUTH_SUCCESS_PATH, self._handle_auth_success)
        self.app.router.add_post(AUTH_ERROR_PATH, self._handle_auth_error)
        self.app.router.add_post(DEEP_LINK_PATH, self._handle_deep_link)
        self.app.router.add_get(SESSION_PATH, self._handle_session)
        self.app.router.add_post(f"{SESSION_PATH}/login", self._handle_login)
        self.app.router.add_post(f"{SESSION_PATH}/logout", self._handle_logout)
        self.app.router.add_post(f"{SESSION_PATH}/refresh", self._handle_refresh)

    @staticmethod
    async def _read_json(request: web.Request) -> Any:
        try:
            return await request.json()
        except json.JSONDecodeError:
            raise web.HTTPBadRequest(text="Request body is not valid JSON")

    async def _handle_auth_success(self, request: web.Request) -> web.Response:
        """Native broker reports a completed interactive login"""
        body = await self._read_json(request)
        try:
            credential = Credential.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Rejected malformed auth-success event: {e}")
            return web.Response(text="Malformed credential", status=400)

        self.session.on_native_auth_success(credential)
        return web.json_response(describe_state(self.session.get_current()))

    async def _handle_auth_error(self, request: web.Request) -> web.Response:
        """Native broker reports a failed interactive login"""
        body = await self._read_json(request)
        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str):
            return web.Response(text="Missing message", status=400)

        self.session.on_native_auth_error(message)
        return web.json_response(describe_state(self.session.get_current()))

    async def _handle_deep_link(self, request: web.Request) -> web.Response:
        """OS delivered a batch of deep-link URLs"""
        body = await self._read_json(request)
        urls = body.get("urls") if isinstance(body, dict) else None
        if not isinstance(urls, list) or not all(isinstance(url, str) for url in urls):
            return web.Response(text="Expected a list of URL strings", status=400)

        # Routing may wait on a broker exchange; answer without waiting
        task = asyncio.create_task(self.router.handle_urls(urls))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return web.json_response({"accepted": len(urls) > 0}, status=202)

    async def _handle_session(self, request: web.Request) -> web.Response:
        return web.json_response(describe_state(self.session.get_current()))

    async def _handle_login(self, request: web.Request) -> web.Response:
        try:
            await self.session.login()
        except AuthError as e:
            return _error_response(e)
        return web.json_response({"status": "login_started"}, status=202)

    async def _handle_logout(self, request: web.Request) -> web.Response:
        try:
            await self.session.logout()
        except AuthError as e:
            return _error_response(e)
        return web.json_response(describe_state(self.session.get_current()))

    async def _handle_refresh(self, request: web.Request) -> web.Response:
        try:
            await self.session.refresh()
        except AuthError as e:
            return _error_response(e)
        return web.json_response(describe_state(self.session.get_current()))

    async def start(self) -> None:
        """Start the event listener"""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        site = web.TCPSite(self.runner, host=self.host, port=self.port)
        await site.start()
        logger.info(f"Event listener running on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the listener and wait for in-flight deep links"""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self.runner:
            await self.runner.cleanup()
            self.runner = None


async def start_event_listener(
    session: SessionManager,
    router: DeepLinkRouter,
    host: str = EVENT_BIND_ADDRESS,
    port: int = EVENT_PORT,
) -> EventListenerServer:
    """
    Start the event listener.

    Returns:
        EventListenerServer instance
    """
    server = EventListenerServer(session, router, host=host, port=port)
    await server.start()
    return server
