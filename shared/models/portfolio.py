"""
Portfolio and risk governance models.

Defines:
- RiskState: Current risk figures of the book
- RiskLimits: Hard limits the portfolio manager enforces
- OpenPosition: Summary of one open position
- CooldownEntry: A time-bounded block on a brain, symbol or everything
- PortfolioState: Everything the portfolio manager reads besides the intent
- RiskAdjustment / PmDecision: Portfolio manager output

All percentages are percent of equity. Drawdown and daily loss are
usually reported as negative numbers; limits compare their magnitude.
"""

from datetime import datetime
from typing import Annotated, Optional, Tuple
from pydantic import Field, ValidationInfo, field_validator

from shared.models.base import (
    UUID_V4_PATTERN,
    BaseModel,
    DecisionRecord,
    SymbolMixin,
    ensure_aware,
    normalize_cooldown_target,
)
from shared.models.enums import BrainId, CooldownScope, DecisionType, Direction, GlobalMode


class RiskState(BaseModel):
    """Risk figures of the book at decision time."""

    current_drawdown_pct: Annotated[float, Field(description="Drawdown from peak (usually <= 0)")]
    current_exposure_pct: Annotated[float, Field(ge=0.0, description="Total open risk")]
    open_positions: Annotated[int, Field(ge=0, description="Number of open positions")]
    daily_loss_pct: Annotated[float, Field(description="Realized + unrealized P&L today")]
    available_risk_pct: Annotated[float, Field(description="Risk budget still available")]


class RiskLimits(BaseModel):
    """Hard limits. Defaults are the production settings."""

    max_drawdown_pct: Annotated[float, Field(default=10.0, gt=0.0)]
    max_exposure_pct: Annotated[float, Field(default=30.0, gt=0.0)]
    max_daily_loss_pct: Annotated[float, Field(default=5.0, gt=0.0)]
    max_positions: Annotated[int, Field(default=8, ge=0)]
    max_exposure_per_symbol_pct: Annotated[float, Field(default=10.0, gt=0.0)]
    max_exposure_per_currency_pct: Annotated[float, Field(default=20.0, gt=0.0)]
    max_correlated_exposure_pct: Annotated[float, Field(default=25.0, gt=0.0)]


class OpenPosition(BaseModel, SymbolMixin):
    """Open position as seen by the portfolio manager."""

    brain_id: Annotated[BrainId, Field(description="Brain that owns the position")]
    direction: Annotated[Direction, Field(description="LONG or SHORT")]
    risk_pct: Annotated[float, Field(ge=0.0, description="Risk carried by the position")]
    entry_price: Annotated[float, Field(gt=0.0)]
    current_price: Annotated[float, Field(gt=0.0)]
    unrealized_pnl_pct: Annotated[float, Field(description="Unrealized P&L in percent")]


class CooldownEntry(BaseModel):
    """Block on new trades until ``until`` (exclusive)."""

    scope: Annotated[CooldownScope, Field(description="BRAIN, SYMBOL or GLOBAL")]
    target: Annotated[
        str,
        Field(min_length=1, description="Brain id, symbol, or '*' for GLOBAL")
    ]
    until: Annotated[datetime, Field(description="End of the cooldown (timezone-aware)")]

    @field_validator('target')
    @classmethod
    def validate_target(cls, v: str, info: ValidationInfo) -> str:
        scope = info.data.get('scope')
        if scope is None:
            # scope already failed validation
            return v
        return normalize_cooldown_target(scope, v)

    @field_validator('until')
    @classmethod
    def validate_until_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    def is_active(self, at: datetime) -> bool:
        """A cooldown is active while its end lies strictly after ``at``."""
        return self.until > at


class PortfolioState(BaseModel):
    """Portfolio snapshot supplied by the caller for every PM evaluation."""

    risk_state: Annotated[RiskState, Field(description="Current risk figures")]
    positions: Annotated[
        Tuple[OpenPosition, ...],
        Field(default=(), description="Open positions")
    ]
    risk_limits: Annotated[RiskLimits, Field(description="Limits in force")]
    global_mode: Annotated[GlobalMode, Field(description="Global operating mode")]
    cooldowns: Annotated[
        Tuple[CooldownEntry, ...],
        Field(default=(), description="Cooldown blocks, active or expired")
    ]


class RiskAdjustment(BaseModel):
    """How the portfolio manager changed the proposed risk."""

    original_risk_pct: Annotated[float, Field(gt=0.0)]
    adjusted_risk_pct: Annotated[float, Field(ge=0.0)]
    adjustment_reason: Annotated[str, Field(min_length=1, max_length=300)]


class PmDecision(DecisionRecord):
    """
    Portfolio manager verdict on one intent.

    ``risk_adjustments`` is present only for MODIFY decisions; the risk
    state is always echoed unchanged.
    """

    intent_event_id: Annotated[
        str,
        Field(pattern=UUID_V4_PATTERN, description="event_id of the evaluated intent")
    ]
    decision: Annotated[DecisionType, Field(description="ALLOW, DENY, QUEUE or MODIFY")]
    risk_adjustments: Annotated[
        Optional[RiskAdjustment],
        Field(default=None, description="Present on MODIFY")
    ]
    risk_state: Annotated[RiskState, Field(description="Risk state the decision was made on")]
