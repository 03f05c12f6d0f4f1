"""
Unit tests for the decision core records.

Covers:
- Envelope fields (ids, aware timestamps, symbols)
- Candle bounds
- Trade intent reward:risk and risk range invariants
- Cooldown activity window
- Reason code catalog
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from shared.models import (
    BrainId,
    CooldownBlock,
    CooldownEntry,
    CooldownScope,
    IntentType,
    REASON_CODE_CATALOG,
    ReasonCode,
    RiskLimits,
    Severity,
    TradePlan,
    Timeframe,
    WhyBlock,
    codes_for_family,
    describe_reason,
)
from shared.models.base import EventIds, normalize_symbol
from tests.factories import (
    CORRELATION_ID,
    TS,
    make_bar,
    make_id,
    make_intent,
    make_open_position,
    make_snapshot,
)


# ============================================================================
# Envelope
# ============================================================================


@pytest.mark.unit
class TestEnvelope:
    def test_event_ids_accept_uuid_v4(self):
        ids = EventIds(event_id=make_id(1), correlation_id=CORRELATION_ID)
        assert ids.event_id == "00000000-0000-4000-8000-000000000001"

    @pytest.mark.parametrize("bad", ["", "not-a-uuid", "a1b2c3d4-e5f6-1a7b-8c9d-0e1f2a3b4c5d"])
    def test_event_ids_reject_non_v4(self, bad):
        with pytest.raises(ValidationError):
            EventIds(event_id=bad, correlation_id=CORRELATION_ID)

    def test_records_are_frozen(self):
        snapshot = make_snapshot()
        with pytest.raises(ValidationError):
            snapshot.symbol = "GBPUSD"

    def test_timestamp_keeps_offset(self):
        snapshot = make_snapshot()
        assert snapshot.timestamp.utcoffset() == timedelta(hours=-3)

    def test_naive_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            make_bar(1.1, 1.2, 1.0, 1.15, ts=datetime(2025, 6, 15, 12, 0))

    def test_schema_version_defaults_to_one(self):
        assert make_snapshot().schema_version == 1

    def test_strict_labels(self):
        # Raw strings are accepted only through the JSON boundary
        with pytest.raises(ValidationError):
            WhyBlock(reason_code="PM_POSITION_ALLOWED", message="x")

    def test_why_message_length(self):
        with pytest.raises(ValidationError):
            WhyBlock(reason_code=ReasonCode.PM_POSITION_ALLOWED, message="")
        with pytest.raises(ValidationError):
            WhyBlock(reason_code=ReasonCode.PM_POSITION_ALLOWED, message="x" * 501)


@pytest.mark.unit
class TestSymbol:
    @pytest.mark.parametrize("raw, expected", [
        ("eurusd", "EURUSD"),
        (" XAUUSD ", "XAUUSD"),
        ("^SPX", "^SPX"),
        ("ES.c", "ES.C"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_symbol(raw) == expected

    @pytest.mark.parametrize("raw", ["EUR/USD", "EUR-USD", "", "ABCDEFGHIJKLM"])
    def test_reject(self, raw):
        with pytest.raises(ValueError):
            normalize_symbol(raw)

    def test_position_symbol_normalized(self):
        assert make_open_position(symbol="gbpusd").symbol == "GBPUSD"


# ============================================================================
# Market
# ============================================================================


@pytest.mark.unit
class TestOhlcBar:
    def test_range_and_body(self):
        bar = make_bar(1.10, 1.12, 1.09, 1.11)
        assert bar.range == pytest.approx(0.03)
        assert bar.body == pytest.approx(0.01)

    def test_high_below_close(self):
        with pytest.raises(ValidationError, match="High"):
            make_bar(1.10, 1.105, 1.09, 1.11)

    def test_low_above_open(self):
        with pytest.raises(ValidationError, match="Low"):
            make_bar(1.10, 1.12, 1.101, 1.11)

    def test_non_positive_price(self):
        with pytest.raises(ValidationError):
            make_bar(0.0, 1.12, 1.09, 1.11)

    def test_nan_rejected(self):
        with pytest.raises(ValidationError):
            make_bar(float("nan"), 1.12, 1.09, 1.11)


# ============================================================================
# Intent
# ============================================================================


@pytest.mark.unit
class TestTradeIntent:
    def test_valid_intent(self):
        intent = make_intent()
        assert intent.trade_plan.reward_risk_ratio == pytest.approx(2.0)
        assert intent.brain_id == BrainId.A2

    def test_rr_within_tolerance_accepted(self):
        # 0.009996 / 0.005 = 1.9992, short of 2.0 by less than the tolerance
        intent = make_intent(take_profit=1.109996)
        assert intent.trade_plan.reward_risk_ratio == pytest.approx(1.9992, abs=1e-3)

    def test_rr_below_minimum_rejected(self):
        with pytest.raises(ValidationError, match="Reward:risk"):
            make_intent(take_profit=1.1090)

    def test_stop_on_entry_rejected(self):
        with pytest.raises(ValidationError, match="Stop loss"):
            make_intent(stop_loss=1.1000)

    @pytest.mark.parametrize("risk", [0.0, -1.0, 100.5])
    def test_risk_out_of_range(self, risk):
        with pytest.raises(ValidationError):
            make_intent(risk=risk)

    def test_risk_upper_bound_inclusive(self):
        assert make_intent(risk=100.0).proposed_risk_pct == 100.0

    def test_short_plan_distances(self):
        intent = make_intent(
            intent_type=IntentType.OPEN_SHORT, entry=1.1000, stop_loss=1.1050, take_profit=1.0900
        )
        assert intent.trade_plan.risk_distance == pytest.approx(0.005)
        assert intent.trade_plan.reward_distance == pytest.approx(0.01)

    def test_plan_rr_zero_when_stop_on_entry(self):
        plan = TradePlan(entry_price=1.1, stop_loss=1.1, take_profit=1.2, timeframe=Timeframe.H1)
        assert plan.reward_risk_ratio == 0.0


# ============================================================================
# Portfolio
# ============================================================================


@pytest.mark.unit
class TestPortfolioModels:
    def test_production_limit_defaults(self):
        limits = RiskLimits()
        assert limits.max_drawdown_pct == 10.0
        assert limits.max_exposure_pct == 30.0
        assert limits.max_daily_loss_pct == 5.0
        assert limits.max_positions == 8
        assert limits.max_exposure_per_symbol_pct == 10.0
        assert limits.max_exposure_per_currency_pct == 20.0
        assert limits.max_correlated_exposure_pct == 25.0

    def test_cooldown_active_until_exclusive(self):
        cooldown = CooldownEntry(scope=CooldownScope.BRAIN, target="A2", until=TS + timedelta(minutes=5))
        assert cooldown.is_active(TS)
        assert not cooldown.is_active(TS + timedelta(minutes=5))

    def test_cooldown_compares_across_offsets(self):
        until_utc = datetime(2025, 6, 15, 13, 35, tzinfo=timezone.utc)  # 10:35 at -03:00
        cooldown = CooldownEntry(scope=CooldownScope.GLOBAL, target="*", until=until_utc)
        assert cooldown.is_active(TS)

    @pytest.mark.parametrize("model", [CooldownEntry, CooldownBlock])
    def test_cooldown_symbol_target_normalized(self, model):
        cooldown = model(scope=CooldownScope.SYMBOL, target=" eurusd", until=TS)
        assert cooldown.target == "EURUSD"

    @pytest.mark.parametrize("model", [CooldownEntry, CooldownBlock])
    @pytest.mark.parametrize("scope, target", [
        (CooldownScope.BRAIN, "a2"),
        (CooldownScope.BRAIN, "EURUSD"),
        (CooldownScope.GLOBAL, "EURUSD"),
        (CooldownScope.SYMBOL, "EUR/USD"),
    ])
    def test_cooldown_target_must_fit_scope(self, model, scope, target):
        with pytest.raises(ValidationError, match="target"):
            model(scope=scope, target=target, until=TS)

    def test_cooldown_parsed_from_json(self):
        cooldown = CooldownEntry.model_validate_json(
            '{"scope": "SYMBOL", "target": "gbpusd", "until": "2025-06-15T12:30:00-03:00"}'
        )
        assert cooldown.target == "GBPUSD"


# ============================================================================
# Reason codes
# ============================================================================


@pytest.mark.unit
class TestReasonCodes:
    def test_every_code_is_described(self):
        assert set(REASON_CODE_CATALOG) == set(ReasonCode)
        assert all(REASON_CODE_CATALOG[c] for c in ReasonCode)

    def test_family(self):
        assert ReasonCode.PM_EXPOSURE_LIMIT.family == "PM"
        assert ReasonCode.EHM_LOSS_STREAK.family == "EHM"

    def test_codes_for_family(self):
        pm_codes = codes_for_family("PM")
        assert ReasonCode.PM_POSITION_ALLOWED in pm_codes
        assert all(c.value.startswith("PM_") for c in pm_codes)

    def test_describe(self):
        assert describe_reason(ReasonCode.PM_DRAWDOWN_LIMIT) == "Drawdown limit reached"

    def test_severity_labels(self):
        assert [s.value for s in Severity] == ["INFO", "WARN", "ERROR"]
