"""
Loading the saved game at startup and saving snapshots to the state store.
"""
from __future__ import annotations
import asyncio
import logging
import threading
from typing import Optional

from config import STATE_KEY
from engine.accrual import AccrualEngine
from engine.errors import CorruptState, PersistenceError
from store.base import StateStore

logger = logging.getLogger(__name__)

FIRST_RUN = "first_run"
RESTORED = "restored"
CORRUPT = "corrupt"


def load_state(engine: AccrualEngine, store: StateStore, key: str = STATE_KEY) -> str:
    """
    Restore the engine from the store.

    Returns FIRST_RUN when nothing was saved, RESTORED on success and CORRUPT
    when a saved snapshot had to be discarded (the engine keeps its defaults).
    PersistenceError from the store itself propagates.
    """
    try:
        data = store.get(key)
    except CorruptState as e:
        logger.error("Discarding unreadable save in %s: %s", store.path, e)
        _set_aside_store_file(store)
        engine.reset()
        return CORRUPT
    if data is None:
        logger.info("No saved state under %r in %s, starting a new game", key, store.path)
        return FIRST_RUN
    try:
        engine.restore(data)
    except CorruptState as e:
        logger.error("Discarding corrupt saved state in %s: %s", store.path, e)
        _keep_corrupt_copy(store, key, data)
        engine.reset()
        return CORRUPT
    logger.info("Loaded saved state from %s", store.path)
    return RESTORED


def _set_aside_store_file(store: StateStore) -> None:
    try:
        backup_path = store.set_aside()
    except PersistenceError as e:
        logger.warning("Could not keep a copy of the unreadable save: %s", e)
        return
    if backup_path:
        logger.warning("Unreadable save kept at %s", backup_path)


def _keep_corrupt_copy(store: StateStore, key: str, data: bytes) -> None:
    """Park the unreadable snapshot under <key>.corrupt before it is overwritten."""
    backup_key = f"{key}.corrupt"
    try:
        store.put(backup_key, data)
    except PersistenceError as e:
        logger.warning("Could not keep a copy of the corrupt save: %s", e)
        return
    logger.warning("Corrupt save kept under key %r", backup_key)


class Autosaver:
    """
    Writes engine snapshots to a store.

    A failed save is logged and remembered; since every save writes the
    whole resource set, the next successful save catches up everything.
    Writes and clear() are serialised, and a snapshot taken before the last
    clear() is dropped instead of written.
    """

    def __init__(self, store: StateStore, key: str = STATE_KEY):
        self.store = store
        self.key = key
        self.failures = 0
        self.last_error: Optional[PersistenceError] = None
        self._write_lock = threading.Lock()
        self._generation = 0

    @property
    def healthy(self) -> bool:
        return self.failures == 0

    def save(self, engine: AccrualEngine) -> bool:
        generation = self._generation
        return self._write(engine.snapshot(), generation)

    async def save_async(self, engine: AccrualEngine) -> bool:
        # Snapshot under the engine lock, write without it
        generation = self._generation
        data = engine.snapshot()
        return await asyncio.to_thread(self._write, data, generation)

    def _write(self, data: bytes, generation: int) -> bool:
        with self._write_lock:
            if generation != self._generation:
                logger.debug("Dropping snapshot taken before the save was cleared")
                return True
            try:
                self.store.put(self.key, data)
            except PersistenceError as e:
                self.failures += 1
                self.last_error = e
                logger.error("Error while saving state (attempt %d): %s", self.failures, e)
                return False
        if self.failures:
            logger.warning("Saving state recovered after %d failed attempt(s)", self.failures)
        self.failures = 0
        self.last_error = None
        return True

    def clear(self) -> None:
        """Remove the saved snapshot. Raises PersistenceError."""
        with self._write_lock:
            self._generation += 1
            self.store.delete(self.key)
