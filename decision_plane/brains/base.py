"""Brain interface (template method pattern).

Every Brain evaluates a market snapshot in three steps:

1. ``gate``: hard conditions under which the Brain refuses to look at all
2. ``detect``: the Brain's edge, returned as an ``EdgeSignal`` or None
3. plan construction: entry, stop and target from the edge, shared by all Brains

Brains are pure. They see one snapshot and nothing else: no portfolio
state, no other Brain, no clock.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from shared.models import (
    BrainId,
    EventIds,
    IntentConstraints,
    IntentType,
    MarketSnapshot,
    ReasonCode,
    Severity,
    Timeframe,
    TradeIntent,
    TradePlan,
    WhyBlock,
)
from shared.models.intent import RR_TOLERANCE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeSignal:
    """What a Brain found, before any price is attached."""

    intent_type: IntentType
    risk_pct: float
    stop_atr: float          # Stop distance in ATR multiples
    target_atr: float        # Target distance in ATR multiples
    validity_minutes: int
    timeframe: Timeframe
    reason_code: ReasonCode
    note: str
    severity: Severity = Severity.INFO


def build_trade_plan(
    entry: float,
    atr: float,
    intent_type: IntentType,
    stop_atr: float,
    target_atr: float,
    min_rr_ratio: float,
    timeframe: Timeframe,
) -> Optional[TradePlan]:
    """
    Place stop and target around ``entry`` at ATR multiples.

    Short intents put the stop above the entry; every other intent type
    (hedges included) is planned as a long. Returns None when any price is
    not positive, the stop sits on the entry, or the reward:risk misses
    ``min_rr_ratio`` by more than the tolerance.
    """
    sign = -1.0 if intent_type == IntentType.OPEN_SHORT else 1.0
    stop_loss = entry - sign * atr * stop_atr
    take_profit = entry + sign * atr * target_atr

    if entry <= 0 or stop_loss <= 0 or take_profit <= 0:
        return None
    risk = abs(entry - stop_loss)
    if risk <= 0:
        return None
    if abs(take_profit - entry) / risk < min_rr_ratio - RR_TOLERANCE:
        return None

    return TradePlan(
        entry_price=entry,
        stop_loss=stop_loss,
        take_profit=take_profit,
        timeframe=timeframe,
    )


class Brain(ABC):
    """
    Signal generator base class.

    Subclasses set the class attributes and implement ``gate`` and
    ``detect``; ``evaluate`` is the public entry point and is final.
    """

    brain_id: BrainId
    name: str
    max_slippage_bps: float
    min_rr_ratio: float

    @abstractmethod
    def gate(self, snapshot: MarketSnapshot) -> Optional[str]:
        """Return why the Brain refuses this snapshot, or None to proceed."""

    @abstractmethod
    def detect(self, snapshot: MarketSnapshot) -> Optional[EdgeSignal]:
        """Return the edge found in the snapshot, or None."""

    def evaluate(
        self,
        snapshot: MarketSnapshot,
        symbol: str,
        timestamp: datetime,
        ids: EventIds,
    ) -> Optional[TradeIntent]:
        """
        Produce a trade intent for ``symbol`` or abstain (None).

        Args:
            snapshot: Market context of the symbol
            symbol: Instrument the intent is for
            timestamp: Logical time of the cycle; expiry is computed from it
            ids: Identifiers of the intent to emit
        """
        blocked = self.gate(snapshot)
        if blocked is not None:
            logger.debug("%s %s gated: %s", self.brain_id.value, symbol, blocked)
            return None

        edge = self.detect(snapshot)
        if edge is None:
            logger.debug("%s %s: no edge", self.brain_id.value, symbol)
            return None

        plan = build_trade_plan(
            entry=snapshot.metrics.last_close,
            atr=snapshot.metrics.atr,
            intent_type=edge.intent_type,
            stop_atr=edge.stop_atr,
            target_atr=edge.target_atr,
            min_rr_ratio=self.min_rr_ratio,
            timeframe=edge.timeframe,
        )
        if plan is None:
            logger.debug("%s %s: plan rejected", self.brain_id.value, symbol)
            return None

        intent = TradeIntent(
            event_id=ids.event_id,
            correlation_id=ids.correlation_id,
            timestamp=timestamp,
            severity=edge.severity,
            brain_id=self.brain_id,
            symbol=symbol,
            intent_type=edge.intent_type,
            proposed_risk_pct=edge.risk_pct,
            trade_plan=plan,
            constraints=IntentConstraints(
                max_slippage_bps=self.max_slippage_bps,
                valid_until=timestamp + timedelta(minutes=edge.validity_minutes),
                min_rr_ratio=self.min_rr_ratio,
            ),
            why=WhyBlock(
                reason_code=edge.reason_code,
                message=f"{self.name}: {edge.note} | RR {plan.reward_risk_ratio:.2f}",
            ),
        )
        logger.debug(
            "%s %s: %s risk=%.3f%%",
            self.brain_id.value, symbol, intent.intent_type.value, intent.proposed_risk_pct,
        )
        return intent
