"""
Unit tests for the exposure governor.

Test limits (see ``tests.factories.make_risk_limits``): drawdown 5,
exposure 10, daily loss 3, 5 positions, symbol 3, currency 6, correlated 5.
"""

import pytest

from decision_plane.pm import ExposureGovernor, split_currency_pair
from decision_plane.pm.exposure_governor import PASS, clip_to_headroom, currency_exposure
from shared.models import DecisionType, ReasonCode
from tests.factories import (
    make_intent,
    make_open_position,
    make_portfolio,
    make_risk_limits,
    make_risk_state,
)


@pytest.fixture
def governor():
    return ExposureGovernor()


# ============================================================================
# Helpers
# ============================================================================


@pytest.mark.unit
class TestHelpers:
    @pytest.mark.parametrize("symbol, expected", [
        ("EURUSD", ("EUR", "USD")),
        ("XAUUSD", ("XAU", "USD")),
        ("BTCUSDT", ("BTCU", "SDT")),
        ("SPX", ("SPX", "USD")),
    ])
    def test_split_currency_pair(self, symbol, expected):
        assert split_currency_pair(symbol) == expected

    @pytest.mark.parametrize("headroom, expected", [
        (2.0, 2.0),
        (1.99, 1.9),
        (0.3, 0.3),
        (0.7000000000000002, 0.7),
        (0.15, 0.1),
    ])
    def test_clip_to_headroom(self, headroom, expected):
        assert clip_to_headroom(headroom) == expected

    def test_currency_exposure_weights_quote(self):
        positions = [make_open_position(symbol="GBPUSD", risk_pct=2.0)]
        exposure = currency_exposure(positions, make_intent(symbol="EURUSD", risk=1.0))
        assert exposure == {"GBP": 2.0, "USD": 1.5, "EUR": 1.0}


# ============================================================================
# Ordered checks
# ============================================================================


@pytest.mark.unit
class TestLimits:
    def test_pass(self, governor):
        assert governor.check(make_intent(), make_portfolio()) == PASS

    def test_max_positions(self, governor):
        portfolio = make_portfolio(risk_state=make_risk_state(open_positions=5))
        verdict = governor.check(make_intent(), portfolio)
        assert verdict.decision == DecisionType.DENY
        assert verdict.reason_code == ReasonCode.PM_MAX_POSITIONS

    @pytest.mark.parametrize("drawdown", [-5.0, 5.0, -7.2])
    def test_drawdown_magnitude(self, governor, drawdown):
        portfolio = make_portfolio(risk_state=make_risk_state(current_drawdown_pct=drawdown))
        verdict = governor.check(make_intent(), portfolio)
        assert verdict.decision == DecisionType.DENY
        assert verdict.reason_code == ReasonCode.PM_DRAWDOWN_LIMIT

    def test_daily_loss(self, governor):
        portfolio = make_portfolio(risk_state=make_risk_state(daily_loss_pct=-3.0))
        verdict = governor.check(make_intent(), portfolio)
        assert verdict.reason_code == ReasonCode.PM_DAILY_LOSS_LIMIT

    def test_positions_checked_before_drawdown(self, governor):
        portfolio = make_portfolio(
            risk_state=make_risk_state(open_positions=5, current_drawdown_pct=-6.0)
        )
        assert governor.check(make_intent(), portfolio).reason_code == ReasonCode.PM_MAX_POSITIONS


@pytest.mark.unit
class TestTotalExposure:
    def test_clip_to_headroom(self, governor):
        portfolio = make_portfolio(risk_state=make_risk_state(current_exposure_pct=8.0))
        verdict = governor.check(make_intent(risk=5.0), portfolio)
        assert verdict.decision == DecisionType.MODIFY
        assert verdict.adjusted_risk_pct == 2.0
        assert verdict.reason_code == ReasonCode.PM_EXPOSURE_LIMIT

    def test_exactly_at_limit_passes(self, governor):
        portfolio = make_portfolio(risk_state=make_risk_state(current_exposure_pct=8.0))
        assert governor.check(make_intent(risk=2.0), portfolio) == PASS

    def test_just_over_limit_clips(self, governor):
        portfolio = make_portfolio(risk_state=make_risk_state(current_exposure_pct=8.0))
        verdict = governor.check(make_intent(risk=2.01), portfolio)
        assert verdict.decision == DecisionType.MODIFY
        assert verdict.adjusted_risk_pct == 2.0

    def test_binary_noise_does_not_block(self, governor):
        # 0.1 + 0.2 is 0.30000000000000004 in binary
        portfolio = make_portfolio(
            risk_state=make_risk_state(current_exposure_pct=0.1),
            risk_limits=make_risk_limits(max_exposure_pct=0.3),
        )
        assert governor.check(make_intent(risk=0.2), portfolio) == PASS

    def test_minimum_headroom_denies(self, governor):
        portfolio = make_portfolio(risk_state=make_risk_state(current_exposure_pct=9.9))
        verdict = governor.check(make_intent(risk=0.5), portfolio)
        assert verdict.decision == DecisionType.DENY
        assert verdict.reason_code == ReasonCode.PM_EXPOSURE_LIMIT

    def test_no_headroom_denies(self, governor):
        portfolio = make_portfolio(risk_state=make_risk_state(current_exposure_pct=10.0))
        assert governor.check(make_intent(risk=0.5), portfolio).decision == DecisionType.DENY


@pytest.mark.unit
class TestSymbolAndCurrency:
    def test_symbol_clip(self, governor):
        portfolio = make_portfolio(positions=[make_open_position(symbol="EURUSD", risk_pct=1.5)])
        verdict = governor.check(make_intent(symbol="EURUSD", risk=2.0), portfolio)
        assert verdict.decision == DecisionType.MODIFY
        assert verdict.adjusted_risk_pct == 1.5
        assert "EURUSD exposure" in verdict.message

    def test_symbol_full_denies(self, governor):
        portfolio = make_portfolio(positions=[make_open_position(symbol="EURUSD", risk_pct=3.0)])
        verdict = governor.check(make_intent(symbol="EURUSD", risk=0.5), portfolio)
        assert verdict.decision == DecisionType.DENY

    def test_other_symbols_ignored_for_symbol_limit(self, governor):
        portfolio = make_portfolio(positions=[make_open_position(symbol="GBPUSD", risk_pct=3.0)])
        assert governor.check(make_intent(symbol="EURUSD", risk=1.0), portfolio) == PASS

    def test_currency_limit_denies_without_clip(self, governor):
        # USD: three quoted legs at 1.25, USDJPY base 2.5, intent quote 0.5 = 6.75
        positions = [
            make_open_position(symbol="GBPUSD", risk_pct=2.5),
            make_open_position(symbol="AUDUSD", risk_pct=2.5),
            make_open_position(symbol="NZDUSD", risk_pct=2.5),
            make_open_position(symbol="USDJPY", risk_pct=2.5),
        ]
        portfolio = make_portfolio(positions=positions)
        verdict = governor.check(make_intent(symbol="EURUSD", risk=1.0), portfolio)
        assert verdict.decision == DecisionType.DENY
        assert verdict.reason_code == ReasonCode.PM_EXPOSURE_LIMIT
        assert verdict.message.startswith("USD exposure")

    def test_correlated_block(self, governor):
        positions = [
            make_open_position(symbol="EURGBP", risk_pct=2.5),
            make_open_position(symbol="EURJPY", risk_pct=2.0),
        ]
        portfolio = make_portfolio(positions=positions)
        verdict = governor.check(make_intent(symbol="EURUSD", risk=1.0), portfolio)
        assert verdict.decision == DecisionType.DENY
        assert verdict.reason_code == ReasonCode.PM_CORRELATION_BLOCK
