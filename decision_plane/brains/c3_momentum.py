"""C3 Momentum Two-Speed: joins clean trends at early or confirmed strength."""

from typing import Optional

from shared.models import (
    BrainId,
    ExecutionHealth,
    IntentType,
    LiquidityPhase,
    MarketSnapshot,
    MarketStructure,
    ReasonCode,
    Timeframe,
    VolatilityLevel,
)
from decision_plane.brains.base import Brain, EdgeSignal

BASE_SPREAD_BPS = 10.0
CONFIRMED_VOLUME_RATIO = 1.3
EARLY_VOLUME_RATIO = 0.9
STOP_ATR = 1.2
VALIDITY_MINUTES = 45

# speed -> (risk %, target in ATR)
SPEEDS = {
    "CONFIRMED": (1.0, 4.0),
    "EARLY": (0.5, 3.0),
}


class MomentumTwoSpeed(Brain):
    brain_id = BrainId.C3
    name = "C3 Momentum"
    max_slippage_bps = 10.0
    min_rr_ratio = 2.5

    def gate(self, snapshot: MarketSnapshot) -> Optional[str]:
        states = snapshot.market_states
        if states.structure != MarketStructure.TREND:
            return f"structure {states.structure.value}"
        if states.liquidity_phase != LiquidityPhase.CLEAN:
            return f"liquidity {states.liquidity_phase.value}"
        if snapshot.execution_state != ExecutionHealth.OK:
            return f"execution {snapshot.execution_state.value}"
        return None

    def detect(self, snapshot: MarketSnapshot) -> Optional[EdgeSignal]:
        metrics = snapshot.metrics
        if metrics.atr <= 0 or metrics.spread_bps > 2 * BASE_SPREAD_BPS:
            return None

        if metrics.volume_ratio >= CONFIRMED_VOLUME_RATIO:
            speed = "CONFIRMED"
        elif metrics.volume_ratio >= EARLY_VOLUME_RATIO:
            if snapshot.market_states.volatility == VolatilityLevel.HIGH:
                return None
            speed = "EARLY"
        else:
            return None

        risk, target_atr = SPEEDS[speed]
        intent_type = (
            IntentType.OPEN_LONG if metrics.correlation_index >= 0 else IntentType.OPEN_SHORT
        )
        return EdgeSignal(
            intent_type=intent_type,
            risk_pct=risk,
            stop_atr=STOP_ATR,
            target_atr=target_atr,
            validity_minutes=VALIDITY_MINUTES,
            timeframe=Timeframe.H1,
            reason_code=ReasonCode.MCL_STRUCTURE_CHANGE,
            note=f"{speed.lower()} trend continuation, volume {metrics.volume_ratio:.2f}",
        )
