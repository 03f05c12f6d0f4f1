"""
Decision cycle orchestration.

A cycle runs the pure stages in a fixed order for a set of symbols:

1. MCL: classify every symbol's market context
2. BRAINS: evaluate every enabled Brain, in registry order, on every snapshot
3. PM: decide on every intent against the same portfolio state

Position monitoring is a separate pass (``monitor``) that runs the edge
health monitor on every open position. EHM cooldowns reach the portfolio
manager on the next cycle through ``apply_cooldowns``.

Identifiers are never generated here: the caller supplies an iterator of
event ids and every Brain evaluation and PM decision consumes the next one.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from shared.errors import CycleError
from shared.logging import TraceContext
from shared.models import (
    ActivePositionState,
    BrainId,
    CooldownEntry,
    EhmAction,
    EventIds,
    MarketSnapshot,
    MclInput,
    PmDecision,
    PortfolioState,
    PositionResult,
    TradeIntent,
)
from decision_plane.brains import BRAIN_REGISTRY, Brain
from decision_plane.ehm import EdgeHealthMonitor
from decision_plane.mcl import MarketContextClassifier
from decision_plane.pm import PortfolioManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrainSkip:
    """A Brain looked at a symbol and abstained."""
    brain_id: BrainId
    symbol: str
    event_id: str


@dataclass(frozen=True)
class CycleResult:
    """Everything one decision cycle produced, in production order."""
    correlation_id: str
    timestamp: datetime
    snapshots: Tuple[MarketSnapshot, ...] = ()
    intents: Tuple[TradeIntent, ...] = ()
    decisions: Tuple[PmDecision, ...] = ()
    skips: Tuple[BrainSkip, ...] = ()
    # Input ids plus every id the cycle consumed; hand to ``monitor``
    used_event_ids: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation."""
        return {
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "snapshots": [s.model_dump(mode="json") for s in self.snapshots],
            "intents": [i.model_dump(mode="json") for i in self.intents],
            "decisions": [d.model_dump(mode="json") for d in self.decisions],
            "skips": [
                {"brain_id": s.brain_id.value, "symbol": s.symbol, "event_id": s.event_id}
                for s in self.skips
            ],
        }


class _IdSource:
    """Hands out caller-supplied event ids, refusing exhaustion and reuse."""

    def __init__(self, correlation_id: str, event_ids: Iterable[str], used: Iterable[str] = ()):
        self.correlation_id = correlation_id
        self._ids: Iterator[str] = iter(event_ids)
        self._used: Set[str] = set(used)

    def next(self) -> EventIds:
        try:
            event_id = next(self._ids)
        except StopIteration:
            raise CycleError("event id supply exhausted before the cycle finished") from None
        if event_id in self._used:
            raise CycleError(f"event id {event_id} used twice in one cycle")
        self._used.add(event_id)
        return EventIds(event_id=event_id, correlation_id=self.correlation_id)

    @property
    def used(self) -> FrozenSet[str]:
        return frozenset(self._used)


class DecisionCycle:
    """Runs MCL, the Brains and the PM (and EHM in ``monitor``) in order."""

    def __init__(
        self,
        classifier: Optional[MarketContextClassifier] = None,
        brains: Optional[Sequence[Brain]] = None,
        portfolio_manager: Optional[PortfolioManager] = None,
        health_monitor: Optional[EdgeHealthMonitor] = None,
    ):
        self.classifier = classifier or MarketContextClassifier()
        self.brains: List[Brain] = list(brains) if brains is not None else list(BRAIN_REGISTRY.values())
        self.portfolio_manager = portfolio_manager or PortfolioManager()
        self.health_monitor = health_monitor or EdgeHealthMonitor()

    @classmethod
    def with_brains(cls, enabled: Iterable[BrainId]) -> "DecisionCycle":
        """Cycle restricted to ``enabled`` Brains, still in registry order."""
        wanted = set(enabled)
        unknown = wanted - set(BRAIN_REGISTRY)
        if unknown:
            raise CycleError(f"not signal brains: {sorted(b.value for b in unknown)}")
        return cls(brains=[brain for bid, brain in BRAIN_REGISTRY.items() if bid in wanted])

    def run(
        self,
        mcl_inputs: Sequence[MclInput],
        portfolio: PortfolioState,
        timestamp: datetime,
        correlation_id: str,
        event_ids: Iterable[str],
    ) -> CycleResult:
        """
        Run one decision cycle.

        Raises:
            CycleError: inputs from another cycle, a symbol listed twice,
                or not enough (or repeated) event ids
        """
        symbols = [inp.symbol for inp in mcl_inputs]
        if len(set(symbols)) != len(symbols):
            raise CycleError(f"symbol listed twice in one cycle: {symbols}")
        for inp in mcl_inputs:
            if inp.correlation_id != correlation_id:
                raise CycleError(
                    f"{inp.symbol} input belongs to cycle {inp.correlation_id}, not {correlation_id}"
                )

        ids = _IdSource(correlation_id, event_ids, used=(inp.event_id for inp in mcl_inputs))
        snapshots: List[MarketSnapshot] = []
        intents: List[TradeIntent] = []
        decisions: List[PmDecision] = []
        skips: List[BrainSkip] = []

        for inp in mcl_inputs:
            with TraceContext(correlation_id, inp.event_id):
                snapshot = self.classifier.classify(inp)
            snapshots.append(snapshot)

            for brain in self.brains:
                brain_ids = ids.next()
                with TraceContext(correlation_id, brain_ids.event_id):
                    intent = brain.evaluate(snapshot, inp.symbol, timestamp, brain_ids)
                if intent is None:
                    skips.append(BrainSkip(brain.brain_id, inp.symbol, brain_ids.event_id))
                else:
                    intents.append(intent)

        # Every intent sees the same portfolio; the orchestrator books
        # accepted trades between cycles.
        for intent in intents:
            pm_ids = ids.next()
            with TraceContext(correlation_id, pm_ids.event_id):
                decisions.append(
                    self.portfolio_manager.evaluate(intent, portfolio, timestamp, pm_ids)
                )

        with TraceContext(correlation_id):
            logger.info(
                "Cycle %s: %d symbols, %d intents, %d decisions",
                correlation_id, len(snapshots), len(intents), len(decisions),
            )
        return CycleResult(
            correlation_id=correlation_id,
            timestamp=timestamp,
            snapshots=tuple(snapshots),
            intents=tuple(intents),
            decisions=tuple(decisions),
            skips=tuple(skips),
            used_event_ids=ids.used,
        )

    def monitor(
        self,
        positions: Sequence[ActivePositionState],
        recent_results: Sequence[PositionResult],
        snapshots: Sequence[MarketSnapshot],
        timestamp: datetime,
        correlation_id: str,
        event_ids: Iterable[str],
        used: Iterable[str] = (),
    ) -> Tuple[EhmAction, ...]:
        """
        Run the edge health monitor on every open position.

        ``used`` carries ids already spent in the same cycle (normally
        ``CycleResult.used_event_ids``); the snapshots' own ids are always
        treated as spent.

        Raises:
            CycleError: a position without a snapshot for its symbol, or
                not enough (or repeated) event ids
        """
        by_symbol = {s.symbol: s for s in snapshots}
        spent = set(used)
        spent.update(s.event_id for s in snapshots)
        ids = _IdSource(correlation_id, event_ids, used=spent)
        actions: List[EhmAction] = []

        for position in positions:
            snapshot = by_symbol.get(position.symbol)
            if snapshot is None:
                raise CycleError(f"no market snapshot for open position on {position.symbol}")
            ehm_ids = ids.next()
            with TraceContext(correlation_id, ehm_ids.event_id):
                action = self.health_monitor.evaluate(
                    position, recent_results, snapshot, timestamp, ehm_ids
                )
            if action is not None:
                actions.append(action)

        with TraceContext(correlation_id):
            logger.info("Monitor %s: %d positions, %d actions", correlation_id, len(positions), len(actions))
        return tuple(actions)


def apply_cooldowns(portfolio: PortfolioState, actions: Iterable[EhmAction]) -> PortfolioState:
    """New portfolio state carrying the cooldowns requested by ``actions``."""
    added = tuple(
        CooldownEntry(scope=a.cooldown.scope, target=a.cooldown.target, until=a.cooldown.until)
        for a in actions
        if a.cooldown is not None
    )
    if not added:
        return portfolio
    return portfolio.model_copy(update={"cooldowns": portfolio.cooldowns + added})
