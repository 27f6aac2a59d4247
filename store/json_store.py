"""
JSON file store: one file holding every key, values base64-encoded.
Writes go to a temporary file that replaces the original, so a crash
mid-write leaves the previous save intact.
"""
from __future__ import annotations
import base64
import binascii
import json
import logging
import os
import shutil
import threading
from typing import Dict, Optional

from engine.errors import CorruptState, PersistenceError
from store.base import StateStore

logger = logging.getLogger(__name__)

FILE_FORMAT = 1


class JsonFileStore(StateStore):
    def __init__(self, path: str):
        super().__init__(path)
        self._lock = threading.Lock()
        directory = os.path.dirname(os.path.abspath(path))
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"cannot create directory for {path}: {e}") from e

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except OSError as e:
            raise PersistenceError(f"cannot read {self.path}: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptState(f"{self.path} is not valid JSON: {e}") from e
        if not isinstance(doc, dict) or not isinstance(doc.get("entries"), dict):
            raise CorruptState(f"{self.path} has no entries table")
        return doc["entries"]

    def _write(self, entries: Dict[str, str]) -> None:
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"format": FILE_FORMAT, "entries": entries}, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"cannot write {self.path}: {e}") from e

    def set_aside(self) -> Optional[str]:
        backup_path = f"{self.path}.corrupt"
        with self._lock:
            if not os.path.exists(self.path):
                return None
            try:
                shutil.copyfile(self.path, backup_path)
            except OSError as e:
                raise PersistenceError(f"cannot copy {self.path} to {backup_path}: {e}") from e
        return backup_path

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            encoded = self._read().get(key)
        if encoded is None:
            return None
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, TypeError) as e:
            raise CorruptState(f"value for {key!r} in {self.path} is not base64: {e}") from e

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            try:
                entries = self._read()
            except CorruptState as e:
                logger.warning("Overwriting unreadable store file %s: %s", self.path, e)
                entries = {}
            entries[key] = base64.b64encode(value).decode("ascii")
            self._write(entries)

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                entries = self._read()
            except CorruptState:
                entries = {}
            entries.pop(key, None)
            self._write(entries)
