"""Tests for deep link classification and routing"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from deeplink import DeepLinkRouter, LinkAction, resolve_link
from session import ExchangeFailed, SessionManager, UnclassifiedLink
from tests.conftest import make_credential

CALLBACK_URL = "waystation://oauth/callback?code=xyz"


@pytest.fixture
def session():
    session = MagicMock(spec=SessionManager)
    session.on_deep_link = AsyncMock(return_value=make_credential())
    return session


@pytest.mark.parametrize(
    "url, expected",
    [
        ("waystation://home", LinkAction.NAVIGATE_HOME),
        ("waystation://onboarding", LinkAction.RESET_ONBOARDING),
        (CALLBACK_URL, LinkAction.OAUTH_CALLBACK),
        ("waystation://oauth/callback", LinkAction.OAUTH_CALLBACK),
    ],
)
def test_resolve_known_links(url, expected):
    assert resolve_link(url) is expected


@pytest.mark.parametrize(
    "url",
    [
        "waystation://home/",
        "waystation://homepage",
        "https://waystation.ai/oauth/callback?code=xyz",
        "waystation://settings",
        "",
    ],
)
def test_resolve_rejects_unknown_links(url):
    with pytest.raises(UnclassifiedLink):
        resolve_link(url)


def test_classify_reports_unrecognized(session):
    router = DeepLinkRouter(session)

    assert router.classify("waystation://nowhere") is LinkAction.UNRECOGNIZED
    assert router.classify("waystation://home") is LinkAction.NAVIGATE_HOME


def test_custom_redirect_uri_is_used_as_prefix(session):
    router = DeepLinkRouter(session, redirect_uri="myapp://auth")

    assert router.classify("myapp://auth?code=1") is LinkAction.OAUTH_CALLBACK
    assert router.classify(CALLBACK_URL) is LinkAction.UNRECOGNIZED


@pytest.mark.asyncio
async def test_callback_is_forwarded_to_session(session):
    completed = MagicMock()
    router = DeepLinkRouter(session, on_login_completed=completed)

    action = await router.route(CALLBACK_URL)

    assert action is LinkAction.OAUTH_CALLBACK
    session.on_deep_link.assert_awaited_once_with(CALLBACK_URL)
    completed.assert_called_once_with(session.on_deep_link.return_value)


@pytest.mark.asyncio
async def test_failed_callback_skips_login_completed(session):
    session.on_deep_link.return_value = None
    completed = MagicMock()
    router = DeepLinkRouter(session, on_login_completed=completed)

    await router.route(CALLBACK_URL)

    completed.assert_not_called()


@pytest.mark.asyncio
async def test_home_and_onboarding_never_reach_session(session):
    home = MagicMock()
    onboarding = AsyncMock()
    router = DeepLinkRouter(session, on_navigate_home=home, on_reset_onboarding=onboarding)

    assert await router.route("waystation://home") is LinkAction.NAVIGATE_HOME
    assert await router.route("waystation://onboarding") is LinkAction.RESET_ONBOARDING

    home.assert_called_once_with()
    onboarding.assert_awaited_once_with()
    session.on_deep_link.assert_not_awaited()


@pytest.mark.asyncio
async def test_unrecognized_link_is_logged_and_discarded(session, caplog):
    router = DeepLinkRouter(session)

    action = await router.route("waystation://unknown")

    assert action is LinkAction.UNRECOGNIZED
    session.on_deep_link.assert_not_awaited()
    assert "does not match any known pattern" in caplog.text


@pytest.mark.asyncio
async def test_only_first_url_of_batch_is_processed(session):
    home = MagicMock()
    router = DeepLinkRouter(session, on_navigate_home=home)

    action = await router.handle_urls(["waystation://home", CALLBACK_URL])

    assert action is LinkAction.NAVIGATE_HOME
    home.assert_called_once_with()
    session.on_deep_link.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_batch_is_ignored(session):
    router = DeepLinkRouter(session)

    assert await router.handle_urls([]) is None
    session.on_deep_link.assert_not_awaited()


@pytest.mark.asyncio
async def test_failing_hook_is_logged(session, caplog):
    router = DeepLinkRouter(session, on_reset_onboarding=MagicMock(side_effect=OSError("read-only")))

    action = await router.route("waystation://onboarding")

    assert action is LinkAction.RESET_ONBOARDING
    assert "Deep link action failed" in caplog.text


@pytest.mark.asyncio
async def test_callback_through_real_manager(broker):
    manager = SessionManager(broker)
    broker.exchange_callback_url.side_effect = ExchangeFailed("No state found in redirect URI")
    manager.on_native_auth_success(make_credential())
    router = DeepLinkRouter(manager)

    await router.handle_urls([CALLBACK_URL])

    assert manager.get_current() is None
    manager.close()
