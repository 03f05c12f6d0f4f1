"""B3 Relative Value: trades correlation regimes against the reference basket."""

from typing import Optional

from shared.models import (
    BrainId,
    EventProximity,
    ExecutionHealth,
    IntentType,
    MarketSnapshot,
    ReasonCode,
    Timeframe,
    VolatilityLevel,
)
from decision_plane.brains.base import Brain, EdgeSignal

DIVERGENCE_MAX_CORR = 0.3
HIGH_CORR = 0.7
MIN_VOLUME_RATIO = 0.5
RISK_PCT = 0.75
STOP_ATR = 2.0
TARGET_ATR = 3.0
VALIDITY_MINUTES = 60


class RelativeValue(Brain):
    brain_id = BrainId.B3
    name = "B3 Relative Value"
    max_slippage_bps = 20.0
    min_rr_ratio = 1.5

    def gate(self, snapshot: MarketSnapshot) -> Optional[str]:
        if snapshot.market_states.volatility == VolatilityLevel.HIGH:
            return "high volatility"
        if snapshot.market_states.event_proximity != EventProximity.NONE:
            return f"event {snapshot.market_states.event_proximity.value}"
        if snapshot.execution_state == ExecutionHealth.BROKEN:
            return "execution BROKEN"
        return None

    def detect(self, snapshot: MarketSnapshot) -> Optional[EdgeSignal]:
        metrics = snapshot.metrics
        if metrics.atr <= 0 or metrics.volume_ratio < MIN_VOLUME_RATIO:
            return None

        corr = metrics.correlation_index
        if abs(corr) < DIVERGENCE_MAX_CORR:
            intent_type = IntentType.HEDGE
            note = f"divergence, corr {corr:+.2f}"
        elif abs(corr) > HIGH_CORR:
            intent_type = (
                IntentType.OPEN_LONG if metrics.volume_ratio >= 1.0 else IntentType.OPEN_SHORT
            )
            note = f"high correlation {corr:+.2f}, volume {metrics.volume_ratio:.2f}"
        else:
            return None

        return EdgeSignal(
            intent_type=intent_type,
            risk_pct=RISK_PCT,
            stop_atr=STOP_ATR,
            target_atr=TARGET_ATR,
            validity_minutes=VALIDITY_MINUTES,
            timeframe=Timeframe.H1,
            reason_code=ReasonCode.MCL_CORRELATION_SHIFT,
            note=note,
        )
