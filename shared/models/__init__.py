"""
Shared data models for the decision core.

These models are the single source of truth for the records exchanged by:
- MCL: market context classification (MclInput -> MarketSnapshot)
- Brains: signal generation (MarketSnapshot -> TradeIntent)
- PM: portfolio risk governance (TradeIntent + PortfolioState -> PmDecision)
- EHM: position health monitoring (ActivePositionState -> EhmAction)
"""

from shared.models.base import (
    BaseModel,
    DecisionRecord,
    EventIds,
    IdentityMixin,
    SymbolMixin,
    TimestampMixin,
    WhyBlock,
)
from shared.models.enums import (
    ActionType,
    BrainId,
    CooldownScope,
    DecisionType,
    Direction,
    EventProximity,
    ExecutionHealth,
    GlobalMode,
    IntentType,
    LiquidityPhase,
    MarketSession,
    MarketStructure,
    Severity,
    Timeframe,
    VolatilityLevel,
)
from shared.models.reason_codes import (
    REASON_CODE_CATALOG,
    ReasonCode,
    codes_for_family,
    describe_reason,
)
from shared.models.market import (
    ExecutionContext,
    MarketMetrics,
    MarketSnapshot,
    MarketStates,
    MclInput,
    OhlcBar,
    OhlcSet,
    PrecomputedMetrics,
)
from shared.models.intent import IntentConstraints, TradeIntent, TradePlan
from shared.models.portfolio import (
    CooldownEntry,
    OpenPosition,
    PmDecision,
    PortfolioState,
    RiskAdjustment,
    RiskLimits,
    RiskState,
)
from shared.models.health import ActivePositionState, CooldownBlock, EhmAction, PositionResult

__all__ = [
    # Base
    "BaseModel",
    "DecisionRecord",
    "EventIds",
    "IdentityMixin",
    "SymbolMixin",
    "TimestampMixin",
    "WhyBlock",
    # Enums
    "ActionType",
    "BrainId",
    "CooldownScope",
    "DecisionType",
    "Direction",
    "EventProximity",
    "ExecutionHealth",
    "GlobalMode",
    "IntentType",
    "LiquidityPhase",
    "MarketSession",
    "MarketStructure",
    "Severity",
    "Timeframe",
    "VolatilityLevel",
    # Reason codes
    "REASON_CODE_CATALOG",
    "ReasonCode",
    "codes_for_family",
    "describe_reason",
    # Market
    "ExecutionContext",
    "MarketMetrics",
    "MarketSnapshot",
    "MarketStates",
    "MclInput",
    "OhlcBar",
    "OhlcSet",
    "PrecomputedMetrics",
    # Intent
    "IntentConstraints",
    "TradeIntent",
    "TradePlan",
    # Portfolio
    "CooldownEntry",
    "OpenPosition",
    "PmDecision",
    "PortfolioState",
    "RiskAdjustment",
    "RiskLimits",
    "RiskState",
    # Health
    "ActivePositionState",
    "CooldownBlock",
    "EhmAction",
    "PositionResult",
]
