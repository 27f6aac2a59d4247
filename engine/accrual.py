"""
AccrualEngine: the single owner of the resource set.

Both the background ticker and the command loop call into the same engine;
every public method holds one lock over the full resource set so an advance
and a purchase never interleave partial updates.
"""
from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from config import PRIMARY_RESOURCE, RESOURCES, UNLOCK_MESSAGES
from engine.economy import AccrualReport, accrue, check_unlocks, production_rate
from engine.state import GameState, decode_state, encode_state
from engine.validator import max_affordable, purchasable, validate_purchase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    name: str
    quantity: int
    cost: int
    cost_resource: str
    count: int                 # producer count after the purchase
    production_rate: float     # derived PRIMARY_RESOURCE per second after the purchase


@dataclass(frozen=True)
class GameView:
    """Read-only picture of the game for rendering."""
    counts: Dict[str, int]
    unlocked: Dict[str, bool]
    affordable: Dict[str, int]
    costs: Dict[str, int]
    production_rate: float


class AccrualEngine:
    def __init__(
        self,
        state: Optional[GameState] = None,
        definitions: Optional[Mapping[str, dict]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.definitions = RESOURCES if definitions is None else definitions
        self._clock = clock
        self._lock = threading.RLock()
        self._state = state if state is not None else GameState.new_game(clock(), self.definitions)
        self._stall_warned: set = set()
        self._notices: List[str] = []

    # ── Accrual ─────────────────────────────────────────────────────────────

    def now(self) -> float:
        return self._clock()

    def advance(self, now: Optional[float] = None) -> AccrualReport:
        """Reconcile every resource against now. Returns what was gained."""
        with self._lock:
            now = self._clock() if now is None else now
            report = accrue(self._state, now, self.definitions)
            self._after_accrual(report)
            return report

    def _after_accrual(self, report: AccrualReport) -> None:
        for name in report.stalled:
            if name not in self._stall_warned:
                self._stall_warned.add(name)
                logger.warning("Rate for resource %s is 0, not updating its count", name)
        for name in report.unlocked:
            self._announce_unlock(name)

    def _announce_unlock(self, name: str) -> None:
        message = UNLOCK_MESSAGES.get(name, f"{name.capitalize()}s are now available for purchase")
        logger.info("Resource %s unlocked", name)
        self._notices.append(message)

    # ── Purchases ───────────────────────────────────────────────────────────

    def purchase(self, name: str, quantity, now: Optional[float] = None) -> PurchaseResult:
        """
        Buy quantity units of name (an int, or "all" for as many as affordable).

        The purchase is a reconciliation point: accrual up to now is applied on
        a staged copy, the request is validated against that copy, and the copy
        replaces the live state only if every check passes.
        """
        with self._lock:
            now = self._clock() if now is None else now
            staged = self._state.deep_copy()
            report = accrue(staged, now, self.definitions)

            qty, cost = validate_purchase(staged, name, quantity, self.definitions)

            definition = self.definitions[name]
            payer = staged.get(definition["cost_resource"])
            producer = staged.get(name)
            payer.count -= cost
            producer.count += qty
            # The payer keeps its last whole-period boundary from accrue() so its
            # partial period survives; units bought now share that period's credit.
            producer.last_updated = max(producer.last_updated, now)
            report.unlocked.extend(check_unlocks(staged, self.definitions))

            self._state = staged
            self._after_accrual(report)
            rate = self.production_rate()
            logger.info("Bought %d %s(s) for %d %ss", qty, name, cost, payer.name)
            return PurchaseResult(
                name=name,
                quantity=qty,
                cost=cost,
                cost_resource=payer.name,
                count=producer.count,
                production_rate=rate,
            )

    def affordable(self, name: str) -> int:
        with self._lock:
            return max_affordable(self._state, name, self.definitions)

    def production_rate(self, target: str = PRIMARY_RESOURCE) -> float:
        with self._lock:
            return production_rate(self._state, target, self.definitions)

    # ── Queries ─────────────────────────────────────────────────────────────

    def count(self, name: str) -> int:
        with self._lock:
            return self._state.count(name)

    def query(self) -> GameView:
        with self._lock:
            gs = self._state
            buyable = [n for n in gs.resources if purchasable(n, self.definitions)]
            return GameView(
                counts={n: r.count for n, r in gs.resources.items()},
                unlocked={n: r.unlocked for n, r in gs.resources.items()},
                affordable={n: self.affordable(n) for n in buyable},
                costs={n: self.definitions[n]["cost"] for n in buyable},
                production_rate=self.production_rate(),
            )

    def state(self) -> GameState:
        """A detached copy of the resource set."""
        with self._lock:
            return self._state.deep_copy()

    # ── Persistence ─────────────────────────────────────────────────────────

    def snapshot(self) -> bytes:
        with self._lock:
            return encode_state(self._state, saved_at=self._clock())

    def restore(self, data: bytes) -> None:
        """Replace the live state with a decoded snapshot. Raises CorruptState."""
        with self._lock:
            gs = decode_state(data, now=self._clock(), definitions=self.definitions)
            self._state = gs
            for name in check_unlocks(gs, self.definitions):
                self._announce_unlock(name)

    def reset(self, now: Optional[float] = None) -> None:
        with self._lock:
            now = self._clock() if now is None else now
            self._state = GameState.new_game(now, self.definitions)
            self._stall_warned.clear()
            logger.info("Game state reset")

    # ── Notices ─────────────────────────────────────────────────────────────

    def pop_notices(self) -> List[str]:
        """Messages the player has not been shown yet (unlock announcements)."""
        with self._lock:
            notices, self._notices = self._notices, []
            return notices
