"""
Resource and GameState dataclasses, plus the versioned snapshot codec.
"""
from __future__ import annotations
import copy
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from config import RESOURCES, SCHEMA_NAME, SCHEMA_VERSION
from engine.errors import CorruptState

logger = logging.getLogger(__name__)


def _finite_number(value: Any) -> bool:
    # json.loads accepts NaN and Infinity; huge ints overflow float()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


@dataclass
class Resource:
    name: str
    count: int = 0
    rate: float = 0.0           # seconds per accrual period, 0 = never accrues
    last_updated: float = 0.0   # epoch seconds of the last reconciliation
    unlocked: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "count": self.count,
            "rate": self.rate,
            "last_updated": self.last_updated,
            "unlocked": self.unlocked,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Resource":
        if not isinstance(data, dict):
            raise CorruptState(f"resource entry must be an object, got {type(data).__name__}")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise CorruptState(f"resource entry has no valid name: {data!r}")
        count = data.get("count")
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise CorruptState(f"resource {name}: count must be a non-negative integer, got {count!r}")
        rate = data.get("rate")
        if not _finite_number(rate) or rate < 0:
            raise CorruptState(f"resource {name}: rate must be a finite non-negative number, got {rate!r}")
        last_updated = data.get("last_updated")
        if not _finite_number(last_updated):
            raise CorruptState(f"resource {name}: last_updated must be a finite number, got {last_updated!r}")
        unlocked = data.get("unlocked")
        if not isinstance(unlocked, bool):
            raise CorruptState(f"resource {name}: unlocked must be a boolean, got {unlocked!r}")
        return cls(
            name=name,
            count=count,
            rate=float(rate),
            last_updated=float(last_updated),
            unlocked=unlocked,
        )


def default_resource(name: str, definition: Mapping[str, Any], now: float) -> Resource:
    return Resource(
        name=name,
        count=definition.get("starting_count", 0),
        rate=float(definition.get("rate", 0.0)),
        last_updated=now,
        unlocked=definition.get("unlock") is None,
    )


@dataclass
class GameState:
    resources: Dict[str, Resource] = field(default_factory=dict)

    @classmethod
    def new_game(cls, now: float, definitions: Optional[Mapping[str, dict]] = None) -> "GameState":
        definitions = RESOURCES if definitions is None else definitions
        gs = cls()
        for name, definition in definitions.items():
            gs.resources[name] = default_resource(name, definition, now)
        return gs

    def get(self, name: str) -> Resource:
        return self.resources[name]

    def count(self, name: str) -> int:
        res = self.resources.get(name)
        return res.count if res else 0

    def to_dict(self, saved_at: float) -> dict:
        return {
            "schema": SCHEMA_NAME,
            "version": SCHEMA_VERSION,
            "saved_at": saved_at,
            "resources": [r.to_dict() for r in self.resources.values()],
        }

    def deep_copy(self) -> "GameState":
        return copy.deepcopy(self)


# ── Snapshot codec ──────────────────────────────────────────────────────────


def _migrate_v0(doc: dict) -> dict:
    """Unversioned saves keyed resources by name and called the gate flag town_enabled."""
    legacy = doc.get("resources", {})
    if not isinstance(legacy, dict):
        raise CorruptState(f"legacy resources must be an object, got {type(legacy).__name__}")
    entries = []
    for name, raw in legacy.items():
        if not isinstance(raw, dict):
            raise CorruptState(f"legacy resource {name!r} is not an object")
        entries.append({
            "name": name,
            "count": raw.get("count"),
            "rate": raw.get("rate"),
            "last_updated": raw.get("last_updated"),
            "unlocked": raw.get("unlocked", raw.get("town_enabled", True)),
        })
    return {
        "schema": SCHEMA_NAME,
        "version": 1,
        "saved_at": doc.get("saved_at"),
        "resources": entries,
    }


# version -> function upgrading a document of that version by one step
_MIGRATIONS: Dict[int, Callable[[dict], dict]] = {
    0: _migrate_v0,
}


def encode_state(gs: GameState, saved_at: float) -> bytes:
    return json.dumps(gs.to_dict(saved_at), indent=2).encode("utf-8")


def decode_state(
    data: bytes,
    now: float,
    definitions: Optional[Mapping[str, dict]] = None,
) -> GameState:
    """
    Decode a snapshot produced by encode_state.
    Raises CorruptState if the bytes cannot be turned back into a GameState.
    """
    definitions = RESOURCES if definitions is None else definitions
    try:
        doc = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptState(f"snapshot is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise CorruptState("snapshot root must be an object")

    version = doc.get("version", 0)
    if version != 0 and doc.get("schema") != SCHEMA_NAME:
        raise CorruptState(f"unexpected snapshot schema {doc.get('schema')!r}")
    if isinstance(version, bool) or not isinstance(version, int):
        raise CorruptState(f"snapshot version must be an integer, got {version!r}")
    if version > SCHEMA_VERSION:
        raise CorruptState(
            f"snapshot version {version} is newer than supported version {SCHEMA_VERSION}"
        )
    while version < SCHEMA_VERSION:
        migrate = _MIGRATIONS.get(version)
        if migrate is None:
            raise CorruptState(f"no migration from snapshot version {version}")
        doc = migrate(doc)
        version = doc["version"]

    entries = doc.get("resources")
    if not isinstance(entries, list):
        raise CorruptState("snapshot has no resource list")

    gs = GameState()
    for entry in entries:
        res = Resource.from_dict(entry)
        if res.name not in definitions:
            logger.warning("Dropping saved resource %r: no longer defined", res.name)
            continue
        if res.name in gs.resources:
            raise CorruptState(f"resource {res.name!r} appears twice in snapshot")
        gs.resources[res.name] = res

    # Keep the definition order and fill in resources added since the save
    ordered = {}
    for name, definition in definitions.items():
        if name in gs.resources:
            ordered[name] = gs.resources[name]
        else:
            logger.info("Snapshot has no %r, starting it from defaults", name)
            ordered[name] = default_resource(name, definition, now)
    gs.resources = ordered
    return gs
