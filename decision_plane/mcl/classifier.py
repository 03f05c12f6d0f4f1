"""
Market context classifier.

Turns candles, precomputed metrics and execution telemetry into a discrete
market snapshot. Each dimension is an ordered rule list evaluated against
fixed thresholds; the first matching rule wins.

The classifier never fails on business grounds: any well-formed input
yields a snapshot.
"""

import logging
from typing import Sequence

from shared.models import (
    EventProximity,
    ExecutionHealth,
    LiquidityPhase,
    MarketMetrics,
    MarketSnapshot,
    MarketStates,
    MarketStructure,
    MclInput,
    OhlcBar,
    ReasonCode,
    Severity,
    VolatilityLevel,
    WhyBlock,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Thresholds
# ============================================================================

STRUCTURE_LOOKBACK = 3
TREND_VOLUME_RATIO = 1.2
TRANSITION_RANGE_EXPANSION = 1.5

VOL_HIGH_ATR_PCT = 0.02
VOL_LOW_ATR_PCT = 0.005

RAID_MAX_WICK_RATIO = 0.3
RAID_MIN_VOLUME_RATIO = 1.5
RAID_MAX_SESSION_OVERLAP = 0.5
BUILDUP_MAX_COMPRESSION = 0.6
BUILDUP_MAX_VOLUME_RATIO = 0.8
BUILDUP_MIN_SESSION_OVERLAP = 0.3

DEGRADED_SPREAD_BPS = 30.0


# ============================================================================
# Dimension classifiers
# ============================================================================

def reference_price(h1: Sequence[OhlcBar]) -> float:
    """Last H1 close, or 0.0 when no bar is available."""
    return h1[-1].close if h1 else 0.0


def has_trend_pattern(bars: Sequence[OhlcBar]) -> bool:
    """Strict higher highs and higher lows, or lower highs and lower lows."""
    pairs = list(zip(bars, bars[1:]))
    higher = all(b.high > a.high and b.low > a.low for a, b in pairs)
    lower = all(b.high < a.high and b.low < a.low for a, b in pairs)
    return higher or lower


def classify_structure(h1: Sequence[OhlcBar], volume_ratio: float, range_expansion: float) -> MarketStructure:
    if len(h1) < STRUCTURE_LOOKBACK:
        return MarketStructure.RANGE

    pattern = has_trend_pattern(h1[-STRUCTURE_LOOKBACK:])
    if pattern and volume_ratio >= TREND_VOLUME_RATIO:
        return MarketStructure.TREND
    if range_expansion >= TRANSITION_RANGE_EXPANSION:
        return MarketStructure.TRANSITION
    if pattern:
        # Directional highs and lows without volume behind them
        return MarketStructure.TRANSITION
    return MarketStructure.RANGE


def classify_volatility(atr: float, ref_price: float) -> VolatilityLevel:
    if ref_price <= 0:
        return VolatilityLevel.NORMAL
    atr_pct = atr / ref_price
    if atr_pct >= VOL_HIGH_ATR_PCT:
        return VolatilityLevel.HIGH
    if atr_pct <= VOL_LOW_ATR_PCT:
        return VolatilityLevel.LOW
    return VolatilityLevel.NORMAL


def classify_liquidity(m15: Sequence[OhlcBar], volume_ratio: float, session_overlap: float) -> LiquidityPhase:
    if len(m15) < 2:
        return LiquidityPhase.CLEAN

    prev, last = m15[-2], m15[-1]

    wick_ratio = last.body / last.range if last.range > 0 else 1.0
    if (
        wick_ratio < RAID_MAX_WICK_RATIO
        and volume_ratio > RAID_MIN_VOLUME_RATIO
        and session_overlap < RAID_MAX_SESSION_OVERLAP
    ):
        return LiquidityPhase.RAID

    compression = last.range / prev.range if prev.range > 0 else 1.0
    if (
        compression < BUILDUP_MAX_COMPRESSION
        and volume_ratio < BUILDUP_MAX_VOLUME_RATIO
        and session_overlap > BUILDUP_MIN_SESSION_OVERLAP
    ):
        return LiquidityPhase.BUILDUP

    return LiquidityPhase.CLEAN


def classify_execution(health: ExecutionHealth, last_spread_bps: float) -> ExecutionHealth:
    if health == ExecutionHealth.BROKEN:
        return ExecutionHealth.BROKEN
    if last_spread_bps > DEGRADED_SPREAD_BPS:
        return ExecutionHealth.DEGRADED
    return health


def snapshot_severity(
    execution: ExecutionHealth,
    volatility: VolatilityLevel,
    event: EventProximity,
) -> Severity:
    if execution == ExecutionHealth.BROKEN:
        return Severity.ERROR
    if (
        volatility == VolatilityLevel.HIGH
        or execution == ExecutionHealth.DEGRADED
        or event == EventProximity.PRE_EVENT
    ):
        return Severity.WARN
    return Severity.INFO


_LIQUIDITY_REASONS = {
    LiquidityPhase.RAID: ReasonCode.MCL_LIQUIDITY_RAID,
    LiquidityPhase.BUILDUP: ReasonCode.MCL_LIQUIDITY_BUILDUP,
    LiquidityPhase.CLEAN: ReasonCode.MCL_LIQUIDITY_CLEAN,
}


def snapshot_reason(states: MarketStates) -> ReasonCode:
    """Most salient label wins: event, then volatility extreme, then liquidity."""
    if states.event_proximity != EventProximity.NONE:
        return ReasonCode.MCL_EVENT_PROXIMITY
    if states.volatility == VolatilityLevel.HIGH:
        return ReasonCode.MCL_VOLATILITY_SPIKE
    if states.volatility == VolatilityLevel.LOW:
        return ReasonCode.MCL_VOLATILITY_DROP
    return _LIQUIDITY_REASONS.get(states.liquidity_phase, ReasonCode.MCL_STRUCTURE_CHANGE)


def snapshot_message(states: MarketStates, execution: ExecutionHealth) -> str:
    parts = [
        f"Structure: {states.structure.value}",
        f"Volatility: {states.volatility.value}",
        f"Liquidity: {states.liquidity_phase.value}",
        f"Session: {states.session.value}",
    ]
    if states.event_proximity != EventProximity.NONE:
        parts.append(f"Event: {states.event_proximity.value}")
    if execution != ExecutionHealth.OK:
        parts.append(f"Execution: {execution.value}")
    return " | ".join(parts)


# ============================================================================
# Classifier
# ============================================================================

class MarketContextClassifier:
    """Stateless classifier; one instance can serve any number of symbols."""

    def classify(self, mcl_input: MclInput) -> MarketSnapshot:
        metrics = mcl_input.metrics
        h1 = mcl_input.ohlc.H1
        ref = reference_price(h1)

        states = MarketStates(
            structure=classify_structure(h1, metrics.volume_ratio, metrics.range_expansion),
            volatility=classify_volatility(metrics.atr, ref),
            liquidity_phase=classify_liquidity(
                mcl_input.ohlc.M15, metrics.volume_ratio, metrics.session_overlap
            ),
            session=mcl_input.session,
            event_proximity=mcl_input.event_state,
        )
        execution = classify_execution(
            mcl_input.execution.health, mcl_input.execution.last_spread_bps
        )

        snapshot = MarketSnapshot(
            event_id=mcl_input.event_id,
            correlation_id=mcl_input.correlation_id,
            timestamp=mcl_input.timestamp,
            severity=snapshot_severity(execution, states.volatility, states.event_proximity),
            symbol=mcl_input.symbol,
            global_mode=mcl_input.global_mode,
            market_states=states,
            metrics=MarketMetrics(
                atr=metrics.atr,
                spread_bps=metrics.spread_bps,
                volume_ratio=metrics.volume_ratio,
                correlation_index=metrics.correlation_index,
                last_close=ref,
            ),
            execution_state=execution,
            why=WhyBlock(
                reason_code=snapshot_reason(states),
                message=snapshot_message(states, execution),
            ),
        )
        logger.debug(
            "MCL %s: %s (%s)",
            snapshot.symbol, snapshot.why.message, snapshot.why.reason_code.value,
        )
        return snapshot


_default_classifier = MarketContextClassifier()


def compute_market_context(mcl_input: MclInput) -> MarketSnapshot:
    """Classify one symbol's market context."""
    return _default_classifier.classify(mcl_input)
