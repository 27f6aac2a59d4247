import sys
from io import StringIO
from pathlib import Path

import pytest

# Ensure the repository root is importable when tests are invoked from arbitrary
# working directories (e.g., running a single file from within ``tests/``).
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from rich.console import Console

from typing import Dict, Optional

from display.renderer import Renderer
from engine.accrual import AccrualEngine
from store.base import StateStore

T0 = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock; call it to read the time."""

    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def tick(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class MemoryStore(StateStore):
    """In-process store for tests; nothing survives the process."""

    def __init__(self, path: str = ":memory:"):
        super().__init__(path)
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def engine(clock):
    return AccrualEngine(clock=clock)


@pytest.fixture()
def renderer():
    """Renderer writing into a buffer; read it back with renderer.console.file.getvalue()."""
    return Renderer(Console(file=StringIO(), width=120, color_system=None))
