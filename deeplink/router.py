"""Deep link classification and dispatch"""

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from settings import HOME_URL, ONBOARDING_URL, REDIRECT_URI
from session.errors import UnclassifiedLink
from session.manager import SessionManager

logger = logging.getLogger(__name__)

Hook = Callable[..., Union[None, Awaitable[None]]]


class LinkAction(str, Enum):
    """What an incoming deep link asks for"""
    NAVIGATE_HOME = "navigate-home"
    RESET_ONBOARDING = "reset-onboarding"
    OAUTH_CALLBACK = "oauth-callback"
    UNRECOGNIZED = "unrecognized"


def resolve_link(
    url: str,
    home_url: str = HOME_URL,
    onboarding_url: str = ONBOARDING_URL,
    redirect_uri: str = REDIRECT_URI,
) -> LinkAction:
    """Classify a deep link

    Order matters: the exact sentinels are checked before the redirect
    URI prefix.

    Raises:
        UnclassifiedLink: If the URL matches no known pattern
    """
    if url == home_url:
        return LinkAction.NAVIGATE_HOME
    if url == onboarding_url:
        return LinkAction.RESET_ONBOARDING
    if url.startswith(redirect_uri):
        return LinkAction.OAUTH_CALLBACK
    raise UnclassifiedLink(f"Deep link does not match any known pattern: {url}")


class DeepLinkRouter:
    """Routes deep-link batches to the session manager or app actions"""

    def __init__(
        self,
        session: SessionManager,
        redirect_uri: str = REDIRECT_URI,
        home_url: str = HOME_URL,
        onboarding_url: str = ONBOARDING_URL,
        on_navigate_home: Optional[Hook] = None,
        on_reset_onboarding: Optional[Hook] = None,
        on_login_completed: Optional[Hook] = None,
    ):
        """
        Args:
            session: Session manager receiving OAuth callbacks
            redirect_uri: Registered OAuth redirect URI (matched as a prefix)
            home_url: Exact URL that requests the home view
            onboarding_url: Exact URL that requests an onboarding reset
            on_navigate_home: Called for home links
            on_reset_onboarding: Called for onboarding links
            on_login_completed: Called with the credential after a
                successful callback exchange
        """
        self.session = session
        self.redirect_uri = redirect_uri
        self.home_url = home_url
        self.onboarding_url = onboarding_url
        self.on_navigate_home = on_navigate_home
        self.on_reset_onboarding = on_reset_onboarding
        self.on_login_completed = on_login_completed

    def classify(self, url: str) -> LinkAction:
        try:
            return resolve_link(url, self.home_url, self.onboarding_url, self.redirect_uri)
        except UnclassifiedLink:
            return LinkAction.UNRECOGNIZED

    async def handle_urls(self, urls: Sequence[str]) -> Optional[LinkAction]:
        """Handle one delivery batch

        Only the first URL of a batch is processed; the rest are ignored.

        Returns:
            The action taken, or None for an empty batch
        """
        if not urls:
            return None
        if len(urls) > 1:
            logger.debug(f"Ignoring {len(urls) - 1} extra URL(s) in deep link batch")
        return await self.route(urls[0])

    async def route(self, url: str) -> LinkAction:
        """Classify ``url`` and dispatch it"""
        try:
            action = resolve_link(url, self.home_url, self.onboarding_url, self.redirect_uri)
        except UnclassifiedLink as e:
            logger.warning(str(e))
            return LinkAction.UNRECOGNIZED

        if action is LinkAction.NAVIGATE_HOME:
            logger.info("Navigate to home")
            await self._run_hook(self.on_navigate_home)
        elif action is LinkAction.RESET_ONBOARDING:
            logger.info("Reset onboarding")
            await self._run_hook(self.on_reset_onboarding)
        else:
            logger.info("URL matches redirect URI, processing OAuth callback")
            credential = await self.session.on_deep_link(url)
            if credential is not None:
                await self._run_hook(self.on_login_completed, credential)
        return action

    @staticmethod
    async def _run_hook(hook: Optional[Hook], *args: Any) -> None:
        if hook is None:
            return
        try:
            result = hook(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Deep link action failed")
