"""A2 Liquidity Predator: trades liquidity build-ups and stop raids."""

from typing import Optional

from shared.models import (
    BrainId,
    EventProximity,
    ExecutionHealth,
    IntentType,
    LiquidityPhase,
    MarketSnapshot,
    ReasonCode,
    Timeframe,
    VolatilityLevel,
)
from decision_plane.brains.base import Brain, EdgeSignal

MAX_SPREAD_BPS = 15.0
BASE_RISK_PCT = 1.0
RAID_RISK_FACTOR = 0.75
STOP_ATR = 1.5
TARGET_ATR = 3.0
VALIDITY_MINUTES = 30


class LiquidityPredator(Brain):
    brain_id = BrainId.A2
    name = "A2 Liquidity Predator"
    max_slippage_bps = 15.0
    min_rr_ratio = 2.0

    def gate(self, snapshot: MarketSnapshot) -> Optional[str]:
        if snapshot.market_states.event_proximity == EventProximity.PRE_EVENT:
            return "pre-event"
        if snapshot.execution_state != ExecutionHealth.OK:
            return f"execution {snapshot.execution_state.value}"
        if snapshot.market_states.volatility == VolatilityLevel.HIGH:
            return "high volatility"
        return None

    def detect(self, snapshot: MarketSnapshot) -> Optional[EdgeSignal]:
        phase = snapshot.market_states.liquidity_phase
        metrics = snapshot.metrics
        if phase not in (LiquidityPhase.BUILDUP, LiquidityPhase.RAID):
            return None
        if metrics.spread_bps > MAX_SPREAD_BPS or metrics.atr <= 0:
            return None

        if phase == LiquidityPhase.BUILDUP:
            # Compression resolves upward
            intent_type = IntentType.OPEN_LONG
            risk = BASE_RISK_PCT
            reason = ReasonCode.MCL_LIQUIDITY_BUILDUP
        else:
            # Fade the raid in the direction of the correlated flow
            intent_type = (
                IntentType.OPEN_LONG if metrics.correlation_index >= 0 else IntentType.OPEN_SHORT
            )
            risk = BASE_RISK_PCT * RAID_RISK_FACTOR
            reason = ReasonCode.MCL_LIQUIDITY_RAID

        return EdgeSignal(
            intent_type=intent_type,
            risk_pct=risk,
            stop_atr=STOP_ATR,
            target_atr=TARGET_ATR,
            validity_minutes=VALIDITY_MINUTES,
            timeframe=Timeframe.M15,
            reason_code=reason,
            note=f"liquidity {phase.value}, spread {metrics.spread_bps:.1f}bps",
        )
