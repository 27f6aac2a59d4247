"""Tests for the background ticker and the shutdown sequence."""

import asyncio

import pytest

from config import STATE_KEY
from engine.accrual import AccrualEngine
from engine.errors import PersistenceError
from engine.persistence import Autosaver
from engine.ticker import run_ticker, shutdown

from conftest import FakeClock, MemoryStore


def test_ticker_advances_and_saves_each_tick(engine, clock):
    store = MemoryStore()
    saver = Autosaver(store)
    saved_counts = []

    async def scenario():
        stop = asyncio.Event()

        def on_tick(report):
            restored = AccrualEngine(clock=FakeClock(clock()))
            restored.restore(store.get(STATE_KEY))
            saved_counts.append(restored.count("villager"))
            clock.tick(1)
            if len(saved_counts) == 3:
                stop.set()

        clock.tick(1)
        return await run_ticker(engine, saver, stop, interval=0.01, on_tick=on_tick)

    ticks = asyncio.run(scenario())
    assert ticks == 3
    assert saved_counts == [1, 2, 3]


def test_ticker_stops_promptly(engine):
    async def scenario():
        stop = asyncio.Event()
        task = asyncio.create_task(run_ticker(engine, None, stop, interval=60))
        await asyncio.sleep(0)
        stop.set()
        return await asyncio.wait_for(task, timeout=1)

    assert asyncio.run(scenario()) == 0


def test_ticker_rejects_non_positive_interval(engine):
    with pytest.raises(ValueError):
        asyncio.run(run_ticker(engine, None, asyncio.Event(), interval=0))


def test_ticker_keeps_accruing_when_saves_fail(engine, clock):
    class DownStore(MemoryStore):
        def put(self, key, value):
            raise PersistenceError("read-only filesystem")

    saver = Autosaver(DownStore())

    async def scenario():
        stop = asyncio.Event()

        def on_tick(report):
            clock.tick(1)
            if saver.failures == 4:
                stop.set()

        clock.tick(1)
        await run_ticker(engine, saver, stop, interval=0.01, on_tick=on_tick)

    asyncio.run(scenario())
    assert saver.failures == 4
    assert engine.count("villager") == 4


def test_shutdown_does_final_advance_and_save(engine, clock):
    store = MemoryStore()
    saver = Autosaver(store)

    async def scenario():
        stop = asyncio.Event()
        task = asyncio.create_task(run_ticker(engine, saver, stop, interval=60))
        await asyncio.sleep(0)
        clock.tick(42)
        return await shutdown(engine, saver, stop, task)

    assert asyncio.run(scenario()) is True
    assert _saved_villagers(store) == 42


def _saved_villagers(store) -> int:
    restored = AccrualEngine(clock=FakeClock())
    restored.restore(store.get(STATE_KEY))
    return restored.count("villager")
