"""
Closed label sets shared by every stage of the decision core.

All enumerations are ``str`` enums so that they serialize to their plain
label in JSON and compare equal to it in Python.
"""

from enum import Enum


class MarketStructure(str, Enum):
    """Shape of recent price action on the H1 timeframe."""
    TREND = "TREND"
    RANGE = "RANGE"
    TRANSITION = "TRANSITION"


class VolatilityLevel(str, Enum):
    """ATR relative to price."""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"


class LiquidityPhase(str, Enum):
    """Order-flow phase read from the last M15 bars."""
    BUILDUP = "BUILDUP"    # Compression before a move
    RAID = "RAID"          # Stop hunt with thin bodies and heavy volume
    CLEAN = "CLEAN"        # Normal flow


class MarketSession(str, Enum):
    ASIA = "ASIA"
    LONDON = "LONDON"
    NY = "NY"


class EventProximity(str, Enum):
    """Position relative to a scheduled macro event."""
    NONE = "NONE"
    PRE_EVENT = "PRE_EVENT"
    POST_EVENT = "POST_EVENT"


class ExecutionHealth(str, Enum):
    OK = "OK"
    DEGRADED = "DEGRADED"
    BROKEN = "BROKEN"


class GlobalMode(str, Enum):
    """Operating regime set by the operator."""
    NORMAL = "NORMAL"
    EVENT_CLUSTER = "EVENT_CLUSTER"
    FLOW_PAYING = "FLOW_PAYING"
    CORR_BREAK = "CORR_BREAK"
    RISK_OFF = "RISK_OFF"


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class BrainId(str, Enum):
    """Identifiers of strategies and system components."""
    A2 = "A2"      # Liquidity predator
    B3 = "B3"      # Relative value
    C3 = "C3"      # Momentum two-speed
    D2 = "D2"      # News
    MCL = "MCL"
    PM = "PM"
    EHM = "EHM"


class IntentType(str, Enum):
    OPEN_LONG = "OPEN_LONG"
    OPEN_SHORT = "OPEN_SHORT"
    CLOSE = "CLOSE"
    SCALE_IN = "SCALE_IN"
    SCALE_OUT = "SCALE_OUT"
    HEDGE = "HEDGE"


class DecisionType(str, Enum):
    """Portfolio manager verdicts."""
    ALLOW = "ALLOW"
    DENY = "DENY"
    QUEUE = "QUEUE"
    MODIFY = "MODIFY"


class ActionType(str, Enum):
    """Edge health monitor actions."""
    REDUCE_RISK = "REDUCE_RISK"
    EXIT_NOW = "EXIT_NOW"
    COOLDOWN = "COOLDOWN"


class CooldownScope(str, Enum):
    BRAIN = "BRAIN"
    SYMBOL = "SYMBOL"
    GLOBAL = "GLOBAL"


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class Timeframe(str, Enum):
    """Candle timeframes delivered by the data layer."""
    D1 = "D1"
    H4 = "H4"
    H1 = "H1"
    M15 = "M15"
