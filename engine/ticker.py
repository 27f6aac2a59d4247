"""
The single background ticker: advance the engine once per tick, then save.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional

from config import TICK_SECONDS
from engine.accrual import AccrualEngine
from engine.economy import AccrualReport
from engine.persistence import Autosaver

logger = logging.getLogger(__name__)


async def run_ticker(
    engine: AccrualEngine,
    saver: Optional[Autosaver],
    stop_event: asyncio.Event,
    interval: float = TICK_SECONDS,
    on_tick: Optional[Callable[[AccrualReport], None]] = None,
) -> int:
    """
    Tick until stop_event is set. Returns the number of ticks run.
    Sleeping is done on the stop event so shutdown does not wait a full tick.
    """
    if interval <= 0:
        raise ValueError("tick interval must be positive")
    ticks = 0
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
            break
        except asyncio.TimeoutError:
            pass

        report = engine.advance()
        ticks += 1
        if saver is not None:
            await saver.save_async(engine)
        if on_tick:
            on_tick(report)
    logger.debug("Ticker stopped after %d tick(s)", ticks)
    return ticks


async def shutdown(
    engine: AccrualEngine,
    saver: Optional[Autosaver],
    stop_event: asyncio.Event,
    ticker_task: Optional[asyncio.Task] = None,
) -> bool:
    """
    Stop the ticker, wait for it, then do one final advance and save.
    Returns whether the final save succeeded.
    """
    stop_event.set()
    if ticker_task is not None:
        try:
            await ticker_task
        except asyncio.CancelledError:
            pass
    engine.advance()
    if saver is None:
        return True
    return await saver.save_async(engine)
