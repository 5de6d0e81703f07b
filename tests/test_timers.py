"""Tests for OwnedTimer: single pending callback, cancel semantics, repeating ticks."""

import asyncio

import pytest

from mcdu.timers import OwnedTimer


@pytest.mark.asyncio
async def test_schedule_replaces_pending_callback():
    timer = OwnedTimer("test")
    fired = []

    async def first():
        fired.append("first")

    async def second():
        fired.append("second")

    timer.schedule(0.05, first)
    timer.schedule(0.0, second)
    await timer.wait()
    await asyncio.sleep(0.1)

    assert fired == ["second"]
    assert not timer.pending


@pytest.mark.asyncio
async def test_cancel_prevents_callback():
    timer = OwnedTimer("test")
    fired = []

    async def callback():
        fired.append(True)

    timer.schedule(0.01, callback)
    assert timer.pending
    timer.cancel()
    await asyncio.sleep(0.03)

    assert fired == []
    assert not timer.pending


@pytest.mark.asyncio
async def test_cancel_from_own_callback_lets_it_finish():
    timer = OwnedTimer("test")
    steps = []

    async def callback():
        timer.cancel()
        await asyncio.sleep(0)
        steps.append("finished")

    timer.schedule(0.0, callback)
    await timer.wait()

    assert steps == ["finished"]
    assert not timer.pending


@pytest.mark.asyncio
async def test_repeating_until_callback_returns_false():
    timer = OwnedTimer("test")
    ticks = []

    async def tick():
        ticks.append(len(ticks) + 1)
        return len(ticks) < 3

    timer.schedule_repeating(0.0, tick)
    await timer.wait()

    assert ticks == [1, 2, 3]
    assert not timer.pending


@pytest.mark.asyncio
async def test_failing_callback_is_logged_and_stops(capsys):
    timer = OwnedTimer("boom")
    calls = []

    async def tick():
        calls.append(True)
        raise RuntimeError("tick exploded")

    timer.schedule_repeating(0.0, tick)
    await timer.wait()

    assert calls == [True]
    assert "boom tick failed: tick exploded" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_wait_without_pending_returns():
    timer = OwnedTimer("idle")
    await timer.wait()
    assert not timer.pending
