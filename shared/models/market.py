"""
Market context models.

Defines:
- OhlcBar / OhlcSet: Pre-aggregated candles per timeframe
- PrecomputedMetrics: Indicators computed upstream (ATR, volume ratio, ...)
- ExecutionContext: Telemetry reported by the execution layer
- MclInput: Everything the market context classifier reads
- MarketStates / MarketMetrics / MarketSnapshot: Classifier output

The core never computes indicators itself; every number arrives here
already computed by the data layer.
"""

from datetime import datetime
from typing import Annotated, Tuple
from pydantic import Field, field_validator, model_validator

from shared.models.base import (
    BaseModel,
    DecisionRecord,
    IdentityMixin,
    SymbolMixin,
    TimestampMixin,
    ensure_aware,
)
from shared.models.enums import (
    EventProximity,
    ExecutionHealth,
    GlobalMode,
    LiquidityPhase,
    MarketSession,
    MarketStructure,
    VolatilityLevel,
)


# ============================================================================
# Inputs
# ============================================================================

class OhlcBar(BaseModel):
    """
    One OHLCV candle.

    Validation rules:
    - prices > 0
    - high >= open, close, low
    - low <= open, close
    - volume >= 0
    """

    open: Annotated[float, Field(gt=0.0, description="Opening price")]
    high: Annotated[float, Field(gt=0.0, description="Highest price")]
    low: Annotated[float, Field(gt=0.0, description="Lowest price")]
    close: Annotated[float, Field(gt=0.0, description="Closing price")]
    volume: Annotated[float, Field(ge=0.0, description="Traded volume")]
    timestamp: Annotated[datetime, Field(description="Bar open time (timezone-aware)")]

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode='after')
    def validate_price_bounds(self) -> 'OhlcBar':
        """Ensure high/low bound the body."""
        if self.high < max(self.open, self.close, self.low):
            raise ValueError(
                f"High ({self.high}) must be >= open, close and low"
            )
        if self.low > min(self.open, self.close):
            raise ValueError(f"Low ({self.low}) must be <= open and close")
        return self

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def body(self) -> float:
        return abs(self.close - self.open)


class OhlcSet(BaseModel):
    """Candles per timeframe, oldest first. Each timeframe holds at least one bar."""

    D1: Annotated[Tuple[OhlcBar, ...], Field(min_length=1, description="Daily bars")]
    H4: Annotated[Tuple[OhlcBar, ...], Field(min_length=1, description="4-hour bars")]
    H1: Annotated[Tuple[OhlcBar, ...], Field(min_length=1, description="1-hour bars")]
    M15: Annotated[Tuple[OhlcBar, ...], Field(min_length=1, description="15-minute bars")]


class PrecomputedMetrics(BaseModel):
    """Indicators computed by the data layer."""

    atr: Annotated[float, Field(ge=0.0, description="Average true range, price units")]
    spread_bps: Annotated[float, Field(ge=0.0, description="Current spread in basis points")]
    volume_ratio: Annotated[
        float,
        Field(ge=0.0, description="Current volume over its average (1.0 = average)")
    ]
    correlation_index: Annotated[
        float,
        Field(ge=-1.0, le=1.0, description="Correlation with the reference basket")
    ]
    session_overlap: Annotated[
        float,
        Field(ge=0.0, le=1.0, description="Overlap of active trading sessions")
    ]
    range_expansion: Annotated[
        float,
        Field(ge=0.0, description="Current range over average range")
    ]


class ExecutionContext(BaseModel):
    """Execution layer telemetry."""

    health: Annotated[ExecutionHealth, Field(description="Reported execution health")]
    latency_ms: Annotated[float, Field(ge=0.0, description="Round-trip latency in ms")]
    last_spread_bps: Annotated[float, Field(ge=0.0, description="Spread seen on last fill")]
    last_slippage_bps: Annotated[float, Field(ge=0.0, description="Slippage of last fill")]


class MclInput(BaseModel, IdentityMixin, TimestampMixin, SymbolMixin):
    """
    Input of the market context classifier for one symbol.

    Example:
        MclInput(
            event_id='a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d',
            correlation_id='b2c3d4e5-f6a7-4b8c-9d0e-1f2a3b4c5d6e',
            timestamp=datetime(2025, 6, 15, 13, 30, tzinfo=timezone.utc),
            symbol='EURUSD',
            ohlc=OhlcSet(...),
            metrics=PrecomputedMetrics(...),
            session=MarketSession.LONDON,
            event_state=EventProximity.NONE,
            execution=ExecutionContext(...),
            global_mode=GlobalMode.NORMAL,
        )
    """

    ohlc: Annotated[OhlcSet, Field(description="Candles per timeframe")]
    metrics: Annotated[PrecomputedMetrics, Field(description="Precomputed indicators")]
    session: Annotated[MarketSession, Field(description="Active trading session")]
    event_state: Annotated[EventProximity, Field(description="Macro event proximity")]
    execution: Annotated[ExecutionContext, Field(description="Execution telemetry")]
    global_mode: Annotated[GlobalMode, Field(description="Operator-set global mode")]


# ============================================================================
# Output
# ============================================================================

class MarketStates(BaseModel):
    """Discrete labels describing the market."""

    structure: MarketStructure
    volatility: VolatilityLevel
    liquidity_phase: LiquidityPhase
    session: MarketSession
    event_proximity: EventProximity


class MarketMetrics(BaseModel):
    """Metrics echoed into the snapshot for downstream consumers."""

    atr: Annotated[float, Field(ge=0.0)]
    spread_bps: Annotated[float, Field(ge=0.0)]
    volume_ratio: Annotated[float, Field(ge=0.0)]
    correlation_index: Annotated[float, Field(ge=-1.0, le=1.0)]
    last_close: Annotated[
        float,
        Field(ge=0.0, description="Last H1 close, the reference price plans anchor on")
    ]


class MarketSnapshot(DecisionRecord, SymbolMixin):
    """
    Discrete market context for one symbol at one instant.

    Produced by the market context classifier, read by every Brain and by
    the edge health monitor.
    """

    global_mode: Annotated[GlobalMode, Field(description="Global mode in force")]
    market_states: Annotated[MarketStates, Field(description="Discrete market labels")]
    metrics: Annotated[MarketMetrics, Field(description="Echoed metrics")]
    execution_state: Annotated[
        ExecutionHealth,
        Field(description="Execution health after spread degradation rules")
    ]
