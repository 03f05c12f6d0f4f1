"""
Edge health monitor models.

Defines:
- ActivePositionState: Live position as tracked by the monitor
- PositionResult: A closed trade, used for loss streaks
- CooldownBlock: Cooldown requested by an action
- EhmAction: Monitor output
"""

from datetime import datetime
from typing import Annotated, Optional, Tuple
from pydantic import Field, ValidationInfo, field_validator

from shared.models.base import (
    BaseModel,
    DecisionRecord,
    SymbolMixin,
    ensure_aware,
    normalize_cooldown_target,
)
from shared.models.enums import ActionType, BrainId, CooldownScope, Direction


class ActivePositionState(BaseModel, SymbolMixin):
    """Open position with excursion statistics."""

    brain_id: Annotated[BrainId, Field(description="Brain that opened the position")]
    direction: Annotated[Direction, Field(description="LONG or SHORT")]
    entry_price: Annotated[float, Field(gt=0.0)]
    current_price: Annotated[float, Field(gt=0.0)]
    stop_loss: Annotated[float, Field(gt=0.0)]
    take_profit: Annotated[float, Field(gt=0.0)]
    unrealized_pnl_pct: Annotated[float, Field(description="Unrealized P&L in percent")]
    duration_minutes: Annotated[float, Field(ge=0.0, description="Time in the trade")]
    max_favorable_pct: Annotated[float, Field(ge=0.0, description="Maximum favorable excursion")]
    max_adverse_pct: Annotated[float, Field(ge=0.0, description="Maximum adverse excursion")]


class PositionResult(BaseModel, SymbolMixin):
    """Outcome of a closed trade."""

    brain_id: BrainId
    pnl_pct: Annotated[float, Field(description="Realized P&L in percent")]
    closed_at: Annotated[datetime, Field(description="Close time (timezone-aware)")]
    duration_minutes: Annotated[float, Field(ge=0.0)]

    @field_validator('closed_at')
    @classmethod
    def validate_closed_at_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class CooldownBlock(BaseModel):
    """Cooldown requested by the monitor, fed back to the portfolio manager."""

    scope: CooldownScope
    target: Annotated[str, Field(min_length=1)]
    until: datetime

    @field_validator('target')
    @classmethod
    def validate_target(cls, v: str, info: ValidationInfo) -> str:
        scope = info.data.get('scope')
        if scope is None:
            return v
        return normalize_cooldown_target(scope, v)

    @field_validator('until')
    @classmethod
    def validate_until_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class EhmAction(DecisionRecord):
    """Corrective action on an open position."""

    action: Annotated[ActionType, Field(description="REDUCE_RISK, EXIT_NOW or COOLDOWN")]
    affected_brains: Annotated[Tuple[BrainId, ...], Field(min_length=1)]
    affected_symbols: Annotated[Tuple[str, ...], Field(min_length=1)]
    cooldown: Annotated[
        Optional[CooldownBlock],
        Field(default=None, description="Present on COOLDOWN")
    ]
