"""
Exposure governor.

Hard portfolio limits, checked in a fixed order; the first limit hit
decides:

1. Number of open positions
2. Drawdown
3. Daily loss
4. Total exposure (clipped to headroom when possible)
5. Per-symbol exposure (clipped to headroom when possible)
6. Per-currency exposure
7. Correlated exposure (same base currency on other symbols)

Drawdown and daily loss compare magnitudes, so both -5.0 and 5.0 hit a
5.0 limit.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from shared.models import (
    DecisionType,
    OpenPosition,
    PortfolioState,
    ReasonCode,
    TradeIntent,
)

logger = logging.getLogger(__name__)

# Smallest headroom worth a resized trade
MIN_CLIP_PCT = 0.1
# Quote currency carries half the risk of the base
QUOTE_CURRENCY_WEIGHT = 0.5
DEFAULT_QUOTE = "USD"
_PRECISION = 6


@dataclass(frozen=True)
class ExposureVerdict:
    """
    Outcome of the limit checks.

    ALLOW means no limit was hit and the portfolio manager continues;
    DENY and MODIFY are final.
    """
    decision: DecisionType
    reason_code: Optional[ReasonCode] = None
    message: str = ""
    adjusted_risk_pct: Optional[float] = None


PASS = ExposureVerdict(decision=DecisionType.ALLOW)


def split_currency_pair(symbol: str) -> Tuple[str, str]:
    """
    Base and quote currency of a symbol.

    EURUSD -> (EUR, USD); longer symbols quote in their last three letters;
    anything shorter is treated as quoted in USD.
    """
    if len(symbol) == 6:
        return symbol[:3], symbol[3:]
    if len(symbol) > 6:
        return symbol[:-3], symbol[-3:]
    return symbol, DEFAULT_QUOTE


def clip_to_headroom(headroom: float) -> float:
    """Floor headroom to one decimal, ignoring binary rounding noise."""
    return math.floor(round(headroom * 10, _PRECISION)) / 10


def currency_exposure(positions: Sequence[OpenPosition], intent: TradeIntent) -> Dict[str, float]:
    """Risk per currency: full risk on the base, half on the quote."""
    exposure: Dict[str, float] = defaultdict(float)
    legs = [(p.symbol, p.risk_pct) for p in positions] + [(intent.symbol, intent.proposed_risk_pct)]
    for symbol, risk in legs:
        base, quote = split_currency_pair(symbol)
        exposure[base] += risk
        exposure[quote] += risk * QUOTE_CURRENCY_WEIGHT
    return dict(exposure)


class ExposureGovernor:
    """Stateless limit checker."""

    def check(self, intent: TradeIntent, portfolio: PortfolioState) -> ExposureVerdict:
        state = portfolio.risk_state
        limits = portfolio.risk_limits
        risk = intent.proposed_risk_pct

        if state.open_positions >= limits.max_positions:
            return self._deny(
                ReasonCode.PM_MAX_POSITIONS,
                f"Open positions {state.open_positions} at limit {limits.max_positions}",
            )

        if abs(state.current_drawdown_pct) >= limits.max_drawdown_pct:
            return self._deny(
                ReasonCode.PM_DRAWDOWN_LIMIT,
                f"Drawdown {state.current_drawdown_pct:.2f}% at limit {limits.max_drawdown_pct:.2f}%",
            )

        if abs(state.daily_loss_pct) >= limits.max_daily_loss_pct:
            return self._deny(
                ReasonCode.PM_DAILY_LOSS_LIMIT,
                f"Daily loss {state.daily_loss_pct:.2f}% at limit {limits.max_daily_loss_pct:.2f}%",
            )

        verdict = self._check_headroom(
            "Total exposure", state.current_exposure_pct, risk, limits.max_exposure_pct
        )
        if verdict is not None:
            return verdict

        symbol_exposure = sum(p.risk_pct for p in portfolio.positions if p.symbol == intent.symbol)
        verdict = self._check_headroom(
            f"{intent.symbol} exposure", symbol_exposure, risk, limits.max_exposure_per_symbol_pct
        )
        if verdict is not None:
            return verdict

        for currency, exposure in sorted(currency_exposure(portfolio.positions, intent).items()):
            if round(exposure, _PRECISION) > limits.max_exposure_per_currency_pct:
                return self._deny(
                    ReasonCode.PM_EXPOSURE_LIMIT,
                    f"{currency} exposure {exposure:.2f}% over limit "
                    f"{limits.max_exposure_per_currency_pct:.2f}%",
                )

        base, _ = split_currency_pair(intent.symbol)
        correlated = risk + sum(
            p.risk_pct for p in portfolio.positions
            if p.symbol != intent.symbol and split_currency_pair(p.symbol)[0] == base
        )
        if round(correlated, _PRECISION) > limits.max_correlated_exposure_pct:
            return self._deny(
                ReasonCode.PM_CORRELATION_BLOCK,
                f"Correlated {base} exposure {correlated:.2f}% over limit "
                f"{limits.max_correlated_exposure_pct:.2f}%",
            )

        return PASS

    def _check_headroom(
        self, label: str, used: float, risk: float, limit: float
    ) -> Optional[ExposureVerdict]:
        """None when ``used + risk`` fits under ``limit``; clip or deny otherwise."""
        if round(used + risk, _PRECISION) <= limit:
            return None

        headroom = round(limit - used, _PRECISION)
        if headroom > MIN_CLIP_PCT:
            adjusted = clip_to_headroom(headroom)
            logger.debug("%s: clipping risk %.3f%% to %.1f%%", label, risk, adjusted)
            return ExposureVerdict(
                decision=DecisionType.MODIFY,
                reason_code=ReasonCode.PM_EXPOSURE_LIMIT,
                message=(
                    f"{label} {used:.2f}% + {risk:.2f}% over limit {limit:.2f}%; "
                    f"risk reduced to {adjusted:.1f}%"
                ),
                adjusted_risk_pct=adjusted,
            )

        return self._deny(
            ReasonCode.PM_EXPOSURE_LIMIT,
            f"{label} {used:.2f}% + {risk:.2f}% over limit {limit:.2f}%; no headroom",
        )

    @staticmethod
    def _deny(reason: ReasonCode, message: str) -> ExposureVerdict:
        logger.debug("Exposure check failed: %s", message)
        return ExposureVerdict(decision=DecisionType.DENY, reason_code=reason, message=message)
