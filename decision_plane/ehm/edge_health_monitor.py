"""
Edge health monitor.

Watches one open position at a time and orders a corrective action when
the trade, the Brain behind it, or the execution environment deteriorates.
Rules in priority order, first match wins:

1. Hard loss          (unrealized <= -3.0%)            -> EXIT_NOW
2. Dead edge                                            -> EXIT_NOW
3. Soft loss          (unrealized <= -1.5%)            -> REDUCE_RISK
4. Loss streak        (3 consecutive losses, same Brain) -> COOLDOWN 120 min
5. Execution health   DEGRADED -> REDUCE_RISK, BROKEN -> EXIT_NOW
6. High volatility while losing                         -> REDUCE_RISK
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from shared.models import (
    ActionType,
    ActivePositionState,
    BrainId,
    CooldownBlock,
    CooldownScope,
    EhmAction,
    EventIds,
    ExecutionHealth,
    MarketSnapshot,
    PositionResult,
    ReasonCode,
    Severity,
    VolatilityLevel,
    WhyBlock,
)

logger = logging.getLogger(__name__)

HARD_LOSS_PCT = -3.0
SOFT_LOSS_PCT = -1.5

# Dead edge
STALE_DURATION_MINUTES = 240
STALE_MIN_FAVORABLE_PCT = 0.3
MAX_ADVERSE_TO_FAVORABLE = 3.0
NO_MOVE_FAVORABLE_PCT = 0.1
NO_MOVE_LOSS_PCT = -0.5

LOSS_STREAK_LENGTH = 3
COOLDOWN_MINUTES = 120


def is_dead_edge(position: ActivePositionState) -> bool:
    """The trade has stopped behaving like the edge that opened it."""
    fav = position.max_favorable_pct
    adv = position.max_adverse_pct
    if position.duration_minutes > STALE_DURATION_MINUTES and fav < STALE_MIN_FAVORABLE_PCT:
        return True
    if fav > 0 and adv / fav > MAX_ADVERSE_TO_FAVORABLE:
        return True
    if fav < NO_MOVE_FAVORABLE_PCT and position.unrealized_pnl_pct < NO_MOVE_LOSS_PCT:
        return True
    return False


def consecutive_losses(results: Sequence[PositionResult], brain_id: BrainId) -> int:
    """Losses of ``brain_id`` counted back from the newest result, stopping at its first non-loss.

    ``results`` is ordered oldest first; other Brains' results are skipped.
    """
    count = 0
    for result in reversed(results):
        if result.brain_id != brain_id:
            continue
        if result.pnl_pct < 0:
            count += 1
        else:
            break
    return count


class EdgeHealthMonitor:
    """Stateless position health evaluator."""

    def evaluate(
        self,
        position: ActivePositionState,
        recent_results: Sequence[PositionResult],
        snapshot: MarketSnapshot,
        timestamp: datetime,
        ids: EventIds,
    ) -> Optional[EhmAction]:
        """
        Return the action the position needs, or None when it is healthy.

        Args:
            position: The open position
            recent_results: Closed trades, oldest first
            snapshot: Current market context of the position's symbol
            timestamp: Logical time; cooldown expiry is computed from it
            ids: Identifiers of the action to emit
        """
        pnl = position.unrealized_pnl_pct

        def act(
            action: ActionType,
            severity: Severity,
            reason: ReasonCode,
            message: str,
            cooldown: Optional[CooldownBlock] = None,
        ) -> EhmAction:
            logger.debug(
                "EHM %s %s: %s (%s)",
                position.brain_id.value, position.symbol, action.value, reason.value,
            )
            return EhmAction(
                event_id=ids.event_id,
                correlation_id=ids.correlation_id,
                timestamp=timestamp,
                severity=severity,
                action=action,
                affected_brains=(position.brain_id,),
                affected_symbols=(position.symbol,),
                cooldown=cooldown,
                why=WhyBlock(reason_code=reason, message=message),
            )

        if pnl <= HARD_LOSS_PCT:
            return act(
                ActionType.EXIT_NOW, Severity.ERROR, ReasonCode.EHM_EXIT_NOW,
                f"Unrealized loss {pnl:.2f}% at hard limit {HARD_LOSS_PCT:.1f}%",
            )

        if is_dead_edge(position):
            return act(
                ActionType.EXIT_NOW, Severity.WARN, ReasonCode.EHM_EXIT_NOW,
                f"Dead edge: {position.duration_minutes:.0f} min, favorable "
                f"{position.max_favorable_pct:.2f}%, adverse {position.max_adverse_pct:.2f}%",
            )

        if pnl <= SOFT_LOSS_PCT:
            return act(
                ActionType.REDUCE_RISK, Severity.WARN, ReasonCode.EHM_REDUCE_RISK,
                f"Unrealized loss {pnl:.2f}% past soft limit {SOFT_LOSS_PCT:.1f}%",
            )

        streak = consecutive_losses(recent_results, position.brain_id)
        if streak >= LOSS_STREAK_LENGTH:
            return act(
                ActionType.COOLDOWN, Severity.WARN, ReasonCode.EHM_LOSS_STREAK,
                f"{position.brain_id.value} lost {streak} trades in a row; "
                f"cooldown {COOLDOWN_MINUTES} min",
                cooldown=CooldownBlock(
                    scope=CooldownScope.BRAIN,
                    target=position.brain_id.value,
                    until=timestamp + timedelta(minutes=COOLDOWN_MINUTES),
                ),
            )

        if snapshot.execution_state == ExecutionHealth.DEGRADED:
            return act(
                ActionType.REDUCE_RISK, Severity.WARN, ReasonCode.EHM_HEALTH_DEGRADED,
                "Execution degraded",
            )
        if snapshot.execution_state == ExecutionHealth.BROKEN:
            return act(
                ActionType.EXIT_NOW, Severity.ERROR, ReasonCode.EHM_HEALTH_BROKEN,
                "Execution broken",
            )

        if snapshot.market_states.volatility == VolatilityLevel.HIGH and pnl < 0:
            return act(
                ActionType.REDUCE_RISK, Severity.WARN, ReasonCode.EHM_REDUCE_RISK,
                f"High volatility with position at {pnl:.2f}%",
            )

        return None
