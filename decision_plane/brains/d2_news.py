"""D2 News: hedges ahead of macro events and trades the post-event move.

D2 is the only Brain that needs an event; with no event in sight it never
produces an intent, whatever the rest of the snapshot says.
"""

from typing import Optional

from shared.models import (
    BrainId,
    EventProximity,
    ExecutionHealth,
    IntentType,
    MarketSnapshot,
    ReasonCode,
    Severity,
    Timeframe,
    VolatilityLevel,
)
from decision_plane.brains.base import Brain, EdgeSignal

TARGET_ATR = 5.0

PRE_EVENT_RISK_PCT = 0.5
PRE_EVENT_STOP_ATR = 2.5
PRE_EVENT_VALIDITY_MINUTES = 15

POST_EVENT_MIN_VOLUME_RATIO = 1.0
POST_EVENT_RISK_PCT = 0.75
HIGH_VOL_RISK_FACTOR = 0.5
POST_EVENT_STOP_ATR = 2.0
POST_EVENT_VALIDITY_MINUTES = 45


class NewsBrain(Brain):
    brain_id = BrainId.D2
    name = "D2 News"
    max_slippage_bps = 25.0
    min_rr_ratio = 2.0

    def gate(self, snapshot: MarketSnapshot) -> Optional[str]:
        if snapshot.market_states.event_proximity == EventProximity.NONE:
            return "no event"
        if snapshot.execution_state == ExecutionHealth.BROKEN:
            return "execution BROKEN"
        return None

    def detect(self, snapshot: MarketSnapshot) -> Optional[EdgeSignal]:
        metrics = snapshot.metrics
        if metrics.atr <= 0:
            return None

        if snapshot.market_states.event_proximity == EventProximity.PRE_EVENT:
            return EdgeSignal(
                intent_type=IntentType.HEDGE,
                risk_pct=PRE_EVENT_RISK_PCT,
                stop_atr=PRE_EVENT_STOP_ATR,
                target_atr=TARGET_ATR,
                validity_minutes=PRE_EVENT_VALIDITY_MINUTES,
                timeframe=Timeframe.M15,
                reason_code=ReasonCode.MCL_EVENT_PROXIMITY,
                note="pre-event hedge",
                severity=Severity.WARN,
            )

        if metrics.volume_ratio < POST_EVENT_MIN_VOLUME_RATIO:
            return None

        risk = POST_EVENT_RISK_PCT
        if snapshot.market_states.volatility == VolatilityLevel.HIGH:
            risk *= HIGH_VOL_RISK_FACTOR
        intent_type = (
            IntentType.OPEN_LONG if metrics.correlation_index >= 0 else IntentType.OPEN_SHORT
        )
        return EdgeSignal(
            intent_type=intent_type,
            risk_pct=risk,
            stop_atr=POST_EVENT_STOP_ATR,
            target_atr=TARGET_ATR,
            validity_minutes=POST_EVENT_VALIDITY_MINUTES,
            timeframe=Timeframe.H1,
            reason_code=ReasonCode.MCL_EVENT_PROXIMITY,
            note=f"post-event follow-through, volume {metrics.volume_ratio:.2f}",
        )
