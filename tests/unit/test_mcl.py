"""
Unit tests for the market context classifier.
"""

import pytest

from decision_plane.mcl import MarketContextClassifier, compute_market_context
from decision_plane.mcl.classifier import (
    classify_execution,
    classify_liquidity,
    classify_structure,
    classify_volatility,
    has_trend_pattern,
    reference_price,
)
from shared.models import (
    EventProximity,
    ExecutionHealth,
    LiquidityPhase,
    MarketStructure,
    ReasonCode,
    Severity,
    VolatilityLevel,
)
from tests.factories import (
    CORRELATION_ID,
    EVENT_ID,
    NEUTRAL_M15,
    RANGING_H1,
    TRENDING_H1,
    TS,
    make_bars,
    make_execution,
    make_mcl_input,
    make_metrics,
)

DOWNTREND_H1 = (
    (1.1050, 1.1060, 1.0990, 1.1000),
    (1.1000, 1.1040, 1.0950, 1.0960),
    (1.0960, 1.1000, 1.0900, 1.0910),
)
RAID_M15 = (
    (1.1020, 1.1040, 1.1015, 1.1035),
    (1.1050, 1.1080, 1.1020, 1.1055),   # body 0.0005 on a 0.0060 range
)
BUILDUP_M15 = (
    (1.1020, 1.1040, 1.1015, 1.1035),
    (1.1035, 1.1045, 1.1035, 1.1040),   # range 0.0010 after 0.0025
)


# ============================================================================
# Structure
# ============================================================================


@pytest.mark.unit
class TestStructure:
    def test_trend_needs_volume(self):
        bars = make_bars(TRENDING_H1)
        assert classify_structure(bars, volume_ratio=1.3, range_expansion=1.0) == MarketStructure.TREND

    def test_pattern_without_volume_is_transition(self):
        bars = make_bars(TRENDING_H1)
        assert classify_structure(bars, volume_ratio=1.0, range_expansion=1.0) == MarketStructure.TRANSITION

    def test_downtrend(self):
        bars = make_bars(DOWNTREND_H1)
        assert has_trend_pattern(bars)
        assert classify_structure(bars, volume_ratio=1.2, range_expansion=1.0) == MarketStructure.TREND

    def test_range_expansion_is_transition(self):
        bars = make_bars(RANGING_H1)
        assert classify_structure(bars, volume_ratio=1.0, range_expansion=1.5) == MarketStructure.TRANSITION

    def test_ranging(self):
        bars = make_bars(RANGING_H1)
        assert not has_trend_pattern(bars)
        assert classify_structure(bars, volume_ratio=2.0, range_expansion=1.0) == MarketStructure.RANGE

    def test_too_few_bars_is_range(self):
        bars = make_bars(TRENDING_H1[:2])
        assert classify_structure(bars, volume_ratio=3.0, range_expansion=3.0) == MarketStructure.RANGE

    def test_only_last_three_bars_count(self):
        rows = ((1.2000, 1.2100, 1.1900, 1.2050),) + TRENDING_H1
        assert classify_structure(make_bars(rows), volume_ratio=1.3, range_expansion=1.0) == MarketStructure.TREND

    def test_equal_highs_break_the_pattern(self):
        rows = (
            (1.0900, 1.1000, 1.0880, 1.0940),
            (1.0940, 1.1000, 1.0920, 1.0990),
            (1.0990, 1.1060, 1.0970, 1.1050),
        )
        assert not has_trend_pattern(make_bars(rows))


# ============================================================================
# Volatility
# ============================================================================


@pytest.mark.unit
class TestVolatility:
    @pytest.mark.parametrize("atr, expected", [
        (0.0225, VolatilityLevel.HIGH),
        (0.008, VolatilityLevel.NORMAL),
        (0.0054, VolatilityLevel.LOW),
        (0.0, VolatilityLevel.LOW),
    ])
    def test_atr_relative_to_price(self, atr, expected):
        assert classify_volatility(atr, 1.1) == expected

    def test_no_reference_price_is_normal(self):
        assert classify_volatility(0.5, 0.0) == VolatilityLevel.NORMAL

    def test_reference_price_is_last_h1_close(self):
        assert reference_price(make_bars(TRENDING_H1)) == 1.1050
        assert reference_price(()) == 0.0


# ============================================================================
# Liquidity
# ============================================================================


@pytest.mark.unit
class TestLiquidity:
    def test_raid(self):
        bars = make_bars(RAID_M15)
        assert classify_liquidity(bars, volume_ratio=1.6, session_overlap=0.2) == LiquidityPhase.RAID

    def test_raid_needs_thin_session(self):
        bars = make_bars(RAID_M15)
        assert classify_liquidity(bars, volume_ratio=1.6, session_overlap=0.5) == LiquidityPhase.CLEAN

    def test_buildup(self):
        bars = make_bars(BUILDUP_M15)
        assert classify_liquidity(bars, volume_ratio=0.7, session_overlap=0.4) == LiquidityPhase.BUILDUP

    def test_buildup_needs_quiet_volume(self):
        bars = make_bars(BUILDUP_M15)
        assert classify_liquidity(bars, volume_ratio=0.8, session_overlap=0.4) == LiquidityPhase.CLEAN

    def test_clean(self):
        bars = make_bars(NEUTRAL_M15)
        assert classify_liquidity(bars, volume_ratio=1.0, session_overlap=0.4) == LiquidityPhase.CLEAN

    def test_single_bar_is_clean(self):
        bars = make_bars(RAID_M15[1:])
        assert classify_liquidity(bars, volume_ratio=2.0, session_overlap=0.0) == LiquidityPhase.CLEAN


# ============================================================================
# Execution
# ============================================================================


@pytest.mark.unit
class TestExecution:
    def test_broken_stays_broken(self):
        assert classify_execution(ExecutionHealth.BROKEN, 1.0) == ExecutionHealth.BROKEN

    def test_wide_spread_degrades(self):
        assert classify_execution(ExecutionHealth.OK, 30.5) == ExecutionHealth.DEGRADED

    def test_spread_at_threshold_is_ok(self):
        assert classify_execution(ExecutionHealth.OK, 30.0) == ExecutionHealth.OK

    def test_reported_degraded_kept(self):
        assert classify_execution(ExecutionHealth.DEGRADED, 2.0) == ExecutionHealth.DEGRADED


# ============================================================================
# Snapshot
# ============================================================================


@pytest.mark.unit
class TestSnapshot:
    def test_trending_snapshot(self):
        snapshot = compute_market_context(make_mcl_input(metrics=make_metrics(volume_ratio=1.3)))

        assert snapshot.event_id == EVENT_ID
        assert snapshot.correlation_id == CORRELATION_ID
        assert snapshot.timestamp == TS
        assert snapshot.symbol == "EURUSD"
        assert snapshot.market_states.structure == MarketStructure.TREND
        assert snapshot.market_states.volatility == VolatilityLevel.NORMAL
        assert snapshot.market_states.liquidity_phase == LiquidityPhase.CLEAN
        assert snapshot.execution_state == ExecutionHealth.OK
        assert snapshot.metrics.last_close == 1.1050
        assert snapshot.metrics.atr == 0.008
        assert snapshot.severity == Severity.INFO
        assert snapshot.why.reason_code == ReasonCode.MCL_LIQUIDITY_CLEAN
        assert snapshot.why.message == (
            "Structure: TREND | Volatility: NORMAL | Liquidity: CLEAN | Session: LONDON"
        )

    def test_broken_execution_is_error(self):
        snapshot = compute_market_context(
            make_mcl_input(execution=make_execution(health=ExecutionHealth.BROKEN))
        )
        assert snapshot.severity == Severity.ERROR
        assert snapshot.why.message.endswith("Execution: BROKEN")

    def test_pre_event_is_warn(self):
        snapshot = compute_market_context(make_mcl_input(event_state=EventProximity.PRE_EVENT))
        assert snapshot.severity == Severity.WARN
        assert snapshot.why.reason_code == ReasonCode.MCL_EVENT_PROXIMITY
        assert "Event: PRE_EVENT" in snapshot.why.message

    def test_high_volatility_reason(self):
        snapshot = compute_market_context(make_mcl_input(metrics=make_metrics(atr=0.03)))
        assert snapshot.market_states.volatility == VolatilityLevel.HIGH
        assert snapshot.severity == Severity.WARN
        assert snapshot.why.reason_code == ReasonCode.MCL_VOLATILITY_SPIKE

    def test_low_volatility_reason(self):
        snapshot = compute_market_context(make_mcl_input(metrics=make_metrics(atr=0.004)))
        assert snapshot.why.reason_code == ReasonCode.MCL_VOLATILITY_DROP

    def test_buildup_reason(self):
        snapshot = compute_market_context(
            make_mcl_input(m15=BUILDUP_M15, metrics=make_metrics(volume_ratio=0.7))
        )
        assert snapshot.why.reason_code == ReasonCode.MCL_LIQUIDITY_BUILDUP

    def test_deterministic(self):
        inp = make_mcl_input()
        assert MarketContextClassifier().classify(inp) == compute_market_context(inp)
