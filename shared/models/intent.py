"""
Trade intent models.

A trade intent is a Brain's proposal. It is never an order: the portfolio
manager decides what happens to it.
"""

from datetime import datetime
from typing import Annotated
from pydantic import Field, field_validator, model_validator

from shared.models.base import DecisionRecord, BaseModel, SymbolMixin, ensure_aware
from shared.models.enums import BrainId, IntentType, Timeframe


# Tolerance applied when comparing a plan's reward:risk against its minimum
RR_TOLERANCE = 0.001


class TradePlan(BaseModel):
    """Entry, protective stop and target of a proposed trade."""

    entry_price: Annotated[float, Field(gt=0.0, description="Planned entry price")]
    stop_loss: Annotated[float, Field(gt=0.0, description="Protective stop price")]
    take_profit: Annotated[float, Field(gt=0.0, description="Target price")]
    timeframe: Annotated[Timeframe, Field(description="Timeframe the plan was built on")]

    @property
    def risk_distance(self) -> float:
        return abs(self.entry_price - self.stop_loss)

    @property
    def reward_distance(self) -> float:
        return abs(self.take_profit - self.entry_price)

    @property
    def reward_risk_ratio(self) -> float:
        """Reward over risk; 0.0 when the stop sits on the entry."""
        if self.risk_distance <= 0:
            return 0.0
        return self.reward_distance / self.risk_distance


class IntentConstraints(BaseModel):
    """Execution constraints attached to an intent."""

    max_slippage_bps: Annotated[float, Field(ge=0.0, description="Maximum slippage tolerated")]
    valid_until: Annotated[datetime, Field(description="Expiry of the intent (timezone-aware)")]
    min_rr_ratio: Annotated[float, Field(gt=0.0, description="Minimum reward:risk ratio")]

    @field_validator('valid_until')
    @classmethod
    def validate_valid_until_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class TradeIntent(DecisionRecord, SymbolMixin):
    """
    Trade proposal emitted by a Brain.

    Invariants enforced at construction:
    - 0 < proposed_risk_pct <= 100
    - the stop is not on the entry
    - reward:risk >= min_rr_ratio (with a 0.001 tolerance)

    Example:
        TradeIntent(
            event_id='a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d',
            correlation_id='b2c3d4e5-f6a7-4b8c-9d0e-1f2a3b4c5d6e',
            timestamp=datetime(2025, 6, 15, 13, 30, tzinfo=timezone.utc),
            severity=Severity.INFO,
            brain_id=BrainId.A2,
            symbol='EURUSD',
            intent_type=IntentType.OPEN_LONG,
            proposed_risk_pct=1.0,
            trade_plan=TradePlan(entry_price=1.1, stop_loss=1.095,
                                 take_profit=1.11, timeframe=Timeframe.M15),
            constraints=IntentConstraints(max_slippage_bps=15.0, valid_until=...,
                                          min_rr_ratio=2.0),
            why=WhyBlock(reason_code=ReasonCode.MCL_LIQUIDITY_BUILDUP, message='...'),
        )
    """

    brain_id: Annotated[BrainId, Field(description="Brain that produced the intent")]
    intent_type: Annotated[IntentType, Field(description="Kind of trade proposed")]
    proposed_risk_pct: Annotated[
        float,
        Field(gt=0.0, le=100.0, description="Proposed risk in percent of equity")
    ]
    trade_plan: Annotated[TradePlan, Field(description="Entry, stop and target")]
    constraints: Annotated[IntentConstraints, Field(description="Execution constraints")]

    @model_validator(mode='after')
    def validate_reward_risk(self) -> 'TradeIntent':
        """Reject plans whose reward:risk falls below the declared minimum."""
        plan = self.trade_plan
        if plan.risk_distance <= 0:
            raise ValueError("Stop loss must differ from entry price")
        if plan.reward_risk_ratio < self.constraints.min_rr_ratio - RR_TOLERANCE:
            raise ValueError(
                f"Reward:risk ({plan.reward_risk_ratio:.4f}) below minimum "
                f"({self.constraints.min_rr_ratio})"
            )
        return self
