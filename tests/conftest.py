"""Shared fixtures for session tests"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from broker.base import CredentialBroker
from session import Credential, SessionManager, UserInfo

NOW = 1_700_000_000.0


class FakeClock:
    """Settable stand-in for time.time"""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_credential(
    access_token: str = "a1",
    refresh_token="r1",
    expires_at=None,
    sub: str = "user_1",
) -> Credential:
    return Credential(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at,
        user_info=UserInfo(sub=sub, name="Ada Lovelace", email="ada@example.com"),
    )


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Yield to the loop until ``predicate()`` is true"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def broker() -> AsyncMock:
    """Broker double; every operation succeeds unless a test says otherwise"""
    broker = AsyncMock(spec=CredentialBroker)
    broker.get_persisted_credential.return_value = None
    return broker


@pytest.fixture
def manager(broker, clock):
    manager = SessionManager(broker, clock=clock)
    yield manager
    manager.close()
