"""
Accrual: converts elapsed wall-clock time into resource gains, and unlock gates.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from engine.state import GameState


@dataclass
class AccrualReport:
    gains: Dict[str, int] = field(default_factory=dict)
    stalled: List[str] = field(default_factory=list)   # targets with rate == 0
    unlocked: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.gains.values())


def is_accrual_target(name: str, definitions: Mapping[str, dict]) -> bool:
    if definitions[name].get("yield", 0) > 0:
        return True
    return any(name in d.get("produces", {}) for d in definitions.values())


def increment_per_period(gs: GameState, target: str, definitions: Mapping[str, dict]) -> int:
    """Units the target gains per whole period, from its own yield and its producers."""
    increment = definitions[target].get("yield", 0)
    for name, definition in definitions.items():
        per_unit = definition.get("produces", {}).get(target, 0)
        if per_unit:
            increment += gs.count(name) * per_unit
    return increment


def production_rate(gs: GameState, target: str, definitions: Mapping[str, dict]) -> float:
    """Derived units per second for target. Never stored."""
    rate = gs.get(target).rate
    if rate <= 0:
        return 0.0
    return increment_per_period(gs, target, definitions) / rate


def accrue(gs: GameState, now: float, definitions: Mapping[str, dict]) -> AccrualReport:
    """
    Reconcile every accrual target against now.

    Only whole periods are consumed: last_updated moves forward by
    periods * rate, so the unconsumed remainder counts toward the next call.
    Producer counts are read before any target is updated.
    """
    report = AccrualReport()
    increments = {
        name: increment_per_period(gs, name, definitions)
        for name in gs.resources
        if is_accrual_target(name, definitions)
    }
    for name, increment in increments.items():
        res = gs.get(name)
        if res.rate <= 0:
            report.stalled.append(name)
            continue
        elapsed = now - res.last_updated
        if elapsed <= 0:
            # Clock went backwards or no time passed
            continue
        periods = math.floor(elapsed / res.rate)
        if periods <= 0:
            continue
        gained = periods * increment
        res.count += gained
        res.last_updated += periods * res.rate
        if gained:
            report.gains[name] = gained

    report.unlocked = check_unlocks(gs, definitions)
    return report


def check_unlocks(gs: GameState, definitions: Mapping[str, dict]) -> List[str]:
    """Flip Locked -> Unlocked for every gate that is now satisfied. One-way."""
    newly = []
    for name, res in gs.resources.items():
        if res.unlocked:
            continue
        gate = definitions.get(name, {}).get("unlock")
        if gate is None:
            res.unlocked = True
            newly.append(name)
            continue
        requires, threshold = gate
        if gs.count(requires) >= threshold:
            res.unlocked = True
            newly.append(name)
    return newly
