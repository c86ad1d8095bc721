"""Tests for the asyncio scheduler adapter."""

import asyncio

from field_runs.adapters.asyncio_scheduler import AsyncioScheduler


def test_call_later_runs_callback() -> None:
    fired: list[str] = []

    async def scenario() -> None:
        scheduler = AsyncioScheduler()
        scheduler.call_later(0.01, lambda: fired.append("done"))
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert fired == ["done"]


def test_cancelled_callback_never_runs() -> None:
    fired: list[str] = []

    async def scenario() -> None:
        scheduler = AsyncioScheduler()
        handle = scheduler.call_later(0.01, lambda: fired.append("done"))
        handle.cancel()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert fired == []
