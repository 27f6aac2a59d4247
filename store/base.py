"""
Abstract StateStore: opaque single-key durable storage for snapshots.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional


class StateStore(ABC):
    def __init__(self, path: str):
        self.path = path

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes for key, or None if nothing is stored."""
        ...

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Durably store value under key. Raises PersistenceError on failure."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def set_aside(self) -> Optional[str]:
        """
        Copy an unreadable backing file out of the way before it is rewritten.
        Returns where the copy went, or None if the store keeps no such file.
        """
        return None

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
