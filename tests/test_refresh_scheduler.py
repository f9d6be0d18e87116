"""Tests for the one-shot refresh scheduler"""

import asyncio

import pytest

from session import RefreshScheduler
from tests.conftest import FakeClock, NOW, make_credential, wait_until


def recorder(fired, label):
    async def action():
        fired.append(label)
    return action


@pytest.mark.asyncio
async def test_past_refresh_time_fires_immediately():
    scheduler = RefreshScheduler(clock=FakeClock())
    fired = []

    scheduler.arm(make_credential(), NOW - 60, recorder(fired, "late"))

    await wait_until(lambda: fired == ["late"])
    assert not scheduler.pending


@pytest.mark.asyncio
async def test_refresh_time_equal_to_now_fires_immediately():
    scheduler = RefreshScheduler(clock=FakeClock())
    fired = []

    scheduler.arm(make_credential(), NOW, recorder(fired, "now"))

    await wait_until(lambda: fired == ["now"])


@pytest.mark.asyncio
async def test_future_refresh_waits_for_its_time():
    scheduler = RefreshScheduler(clock=FakeClock())
    fired = []
    credential = make_credential()

    scheduler.arm(credential, NOW + 3300, recorder(fired, "later"))
    await asyncio.sleep(0.01)

    assert fired == []
    assert scheduler.pending
    assert scheduler.refresh_at == NOW + 3300
    assert scheduler.credential is credential
    scheduler.cancel()


@pytest.mark.asyncio
async def test_only_most_recent_arm_fires():
    scheduler = RefreshScheduler(clock=FakeClock())
    fired = []

    for i in range(5):
        scheduler.arm(make_credential(f"a{i}"), NOW, recorder(fired, i))

    await wait_until(lambda: fired)
    await asyncio.sleep(0.01)
    assert fired == [4]


@pytest.mark.asyncio
async def test_cancel_prevents_firing_and_is_idempotent():
    scheduler = RefreshScheduler(clock=FakeClock())
    fired = []

    scheduler.cancel()
    scheduler.arm(make_credential(), NOW, recorder(fired, "x"))
    scheduler.cancel()
    scheduler.cancel()
    await asyncio.sleep(0.01)

    assert fired == []
    assert not scheduler.pending
    assert scheduler.refresh_at is None


@pytest.mark.asyncio
async def test_arming_from_other_threads_keeps_only_last_action():
    scheduler = RefreshScheduler(loop=asyncio.get_running_loop(), clock=FakeClock())
    fired = []

    def arm_many():
        for i in range(19):
            scheduler.arm(make_credential(f"a{i}"), NOW + 3300, recorder(fired, i))
        scheduler.arm(make_credential("a19"), NOW, recorder(fired, 19))

    await asyncio.to_thread(arm_many)

    await wait_until(lambda: fired)
    await asyncio.sleep(0.01)
    assert fired == [19]
    assert not scheduler.pending


@pytest.mark.asyncio
async def test_action_can_rearm_without_cancelling_itself():
    scheduler = RefreshScheduler(clock=FakeClock())
    fired = []

    async def first():
        scheduler.arm(make_credential("a2"), NOW, recorder(fired, "second"))
        await asyncio.sleep(0)
        fired.append("first finished")

    scheduler.arm(make_credential("a1"), NOW, first)

    await wait_until(lambda: len(fired) == 2)
    assert sorted(fired) == ["first finished", "second"]


@pytest.mark.asyncio
async def test_failing_action_is_not_retried():
    scheduler = RefreshScheduler(clock=FakeClock())
    calls = []

    async def failing():
        calls.append(1)
        raise RuntimeError("exchange failed")

    scheduler.arm(make_credential(), NOW, failing)

    await wait_until(lambda: calls)
    await asyncio.sleep(0.01)
    assert calls == [1]
    assert not scheduler.pending


def test_arm_without_loop_raises():
    scheduler = RefreshScheduler(clock=FakeClock())

    with pytest.raises(RuntimeError):
        scheduler.arm(make_credential(), NOW, recorder([], "x"))
