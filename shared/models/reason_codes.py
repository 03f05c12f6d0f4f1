"""
Central reason code catalog.

Every ``why.reason_code`` emitted anywhere in the system comes from
``ReasonCode``. Codes are prefixed by the family that owns them (MCL, PM,
EHM, EXEC, PROV, AUDIT). A code is never repurposed: retire it and add a new
one instead.
"""

from enum import Enum
from typing import Dict, List


class ReasonCode(str, Enum):
    """Canonical reason codes."""

    # Market context
    MCL_STRUCTURE_CHANGE = "MCL_STRUCTURE_CHANGE"
    MCL_VOLATILITY_SPIKE = "MCL_VOLATILITY_SPIKE"
    MCL_VOLATILITY_DROP = "MCL_VOLATILITY_DROP"
    MCL_SESSION_OPEN = "MCL_SESSION_OPEN"
    MCL_SESSION_CLOSE = "MCL_SESSION_CLOSE"
    MCL_LIQUIDITY_RAID = "MCL_LIQUIDITY_RAID"
    MCL_LIQUIDITY_BUILDUP = "MCL_LIQUIDITY_BUILDUP"
    MCL_LIQUIDITY_CLEAN = "MCL_LIQUIDITY_CLEAN"
    MCL_EVENT_PROXIMITY = "MCL_EVENT_PROXIMITY"
    MCL_CORRELATION_SHIFT = "MCL_CORRELATION_SHIFT"
    MCL_MODE_CHANGE = "MCL_MODE_CHANGE"
    MCL_DATA_STALE = "MCL_DATA_STALE"

    # Portfolio manager / risk
    PM_RISK_LIMIT_REACHED = "PM_RISK_LIMIT_REACHED"
    PM_RISK_ADJUSTED = "PM_RISK_ADJUSTED"
    PM_POSITION_DENIED = "PM_POSITION_DENIED"
    PM_POSITION_ALLOWED = "PM_POSITION_ALLOWED"
    PM_POSITION_QUEUED = "PM_POSITION_QUEUED"
    PM_POSITION_MODIFIED = "PM_POSITION_MODIFIED"
    PM_DRAWDOWN_LIMIT = "PM_DRAWDOWN_LIMIT"
    PM_EXPOSURE_LIMIT = "PM_EXPOSURE_LIMIT"
    PM_CORRELATION_BLOCK = "PM_CORRELATION_BLOCK"
    PM_DAILY_LOSS_LIMIT = "PM_DAILY_LOSS_LIMIT"
    PM_MAX_POSITIONS = "PM_MAX_POSITIONS"

    # Edge health monitor
    EHM_REDUCE_RISK = "EHM_REDUCE_RISK"
    EHM_EXIT_NOW = "EHM_EXIT_NOW"
    EHM_COOLDOWN_ACTIVATED = "EHM_COOLDOWN_ACTIVATED"
    EHM_COOLDOWN_EXPIRED = "EHM_COOLDOWN_EXPIRED"
    EHM_HEALTH_DEGRADED = "EHM_HEALTH_DEGRADED"
    EHM_HEALTH_BROKEN = "EHM_HEALTH_BROKEN"
    EHM_HEALTH_RECOVERED = "EHM_HEALTH_RECOVERED"
    EHM_EMERGENCY_STOP = "EHM_EMERGENCY_STOP"
    EHM_LOSS_STREAK = "EHM_LOSS_STREAK"

    # Execution layer
    EXEC_STATE_CHANGE = "EXEC_STATE_CHANGE"
    EXEC_DEGRADED = "EXEC_DEGRADED"
    EXEC_BROKEN = "EXEC_BROKEN"
    EXEC_RECOVERED = "EXEC_RECOVERED"
    EXEC_LATENCY_HIGH = "EXEC_LATENCY_HIGH"
    EXEC_ORDER_FAILED = "EXEC_ORDER_FAILED"
    EXEC_ORDER_TIMEOUT = "EXEC_ORDER_TIMEOUT"
    EXEC_RECONNECT = "EXEC_RECONNECT"

    # Data providers
    PROV_STATE_CHANGE = "PROV_STATE_CHANGE"
    PROV_DISCONNECTED = "PROV_DISCONNECTED"
    PROV_RECONNECTED = "PROV_RECONNECTED"
    PROV_RATE_LIMITED = "PROV_RATE_LIMITED"
    PROV_AUTH_FAILURE = "PROV_AUTH_FAILURE"
    PROV_DATA_ERROR = "PROV_DATA_ERROR"
    PROV_MAINTENANCE = "PROV_MAINTENANCE"

    # Configuration / audit
    AUDIT_CONFIG_CHANGED = "AUDIT_CONFIG_CHANGED"
    AUDIT_PARAM_UPDATED = "AUDIT_PARAM_UPDATED"
    AUDIT_BRAIN_TOGGLED = "AUDIT_BRAIN_TOGGLED"
    AUDIT_MODE_OVERRIDE = "AUDIT_MODE_OVERRIDE"
    AUDIT_MANUAL_ACTION = "AUDIT_MANUAL_ACTION"
    AUDIT_SYSTEM_RESTART = "AUDIT_SYSTEM_RESTART"
    AUDIT_PERMISSION_CHANGE = "AUDIT_PERMISSION_CHANGE"

    @property
    def family(self) -> str:
        """Owning family prefix (e.g. ``"PM"``)."""
        return self.value.split("_", 1)[0]


REASON_CODE_CATALOG: Dict[ReasonCode, str] = {
    # Market context
    ReasonCode.MCL_STRUCTURE_CHANGE: "Market structure change detected",
    ReasonCode.MCL_VOLATILITY_SPIKE: "Volatility spike detected",
    ReasonCode.MCL_VOLATILITY_DROP: "Significant volatility drop",
    ReasonCode.MCL_SESSION_OPEN: "Market session opened",
    ReasonCode.MCL_SESSION_CLOSE: "Market session closed",
    ReasonCode.MCL_LIQUIDITY_RAID: "Liquidity raid detected",
    ReasonCode.MCL_LIQUIDITY_BUILDUP: "Liquidity building up",
    ReasonCode.MCL_LIQUIDITY_CLEAN: "Clean liquidity, market flowing",
    ReasonCode.MCL_EVENT_PROXIMITY: "Relevant macro event nearby",
    ReasonCode.MCL_CORRELATION_SHIFT: "Cross-asset correlation shift",
    ReasonCode.MCL_MODE_CHANGE: "Global operating mode changed",
    ReasonCode.MCL_DATA_STALE: "Market data stale or delayed",

    # Portfolio manager / risk
    ReasonCode.PM_RISK_LIMIT_REACHED: "Risk limit reached",
    ReasonCode.PM_RISK_ADJUSTED: "Risk adjusted by the portfolio manager",
    ReasonCode.PM_POSITION_DENIED: "Position denied by the portfolio manager",
    ReasonCode.PM_POSITION_ALLOWED: "Position approved by the portfolio manager",
    ReasonCode.PM_POSITION_QUEUED: "Position queued",
    ReasonCode.PM_POSITION_MODIFIED: "Position modified by the portfolio manager",
    ReasonCode.PM_DRAWDOWN_LIMIT: "Drawdown limit reached",
    ReasonCode.PM_EXPOSURE_LIMIT: "Exposure limit reached",
    ReasonCode.PM_CORRELATION_BLOCK: "Blocked by excessive correlated exposure",
    ReasonCode.PM_DAILY_LOSS_LIMIT: "Daily loss limit reached",
    ReasonCode.PM_MAX_POSITIONS: "Maximum number of open positions reached",

    # Edge health monitor
    ReasonCode.EHM_REDUCE_RISK: "Risk reduction ordered by the edge health monitor",
    ReasonCode.EHM_EXIT_NOW: "Immediate exit ordered by the edge health monitor",
    ReasonCode.EHM_COOLDOWN_ACTIVATED: "Cooldown activated by the edge health monitor",
    ReasonCode.EHM_COOLDOWN_EXPIRED: "Cooldown period expired",
    ReasonCode.EHM_HEALTH_DEGRADED: "System health degraded",
    ReasonCode.EHM_HEALTH_BROKEN: "System health broken, urgent action required",
    ReasonCode.EHM_HEALTH_RECOVERED: "System health recovered",
    ReasonCode.EHM_EMERGENCY_STOP: "Emergency stop triggered",
    ReasonCode.EHM_LOSS_STREAK: "Consecutive loss streak detected",

    # Execution layer
    ReasonCode.EXEC_STATE_CHANGE: "Execution layer state changed",
    ReasonCode.EXEC_DEGRADED: "Execution degraded",
    ReasonCode.EXEC_BROKEN: "Execution broken, no operational capacity",
    ReasonCode.EXEC_RECOVERED: "Execution recovered to normal",
    ReasonCode.EXEC_LATENCY_HIGH: "Execution latency above acceptable level",
    ReasonCode.EXEC_ORDER_FAILED: "Order submission or execution failed",
    ReasonCode.EXEC_ORDER_TIMEOUT: "Order execution timed out",
    ReasonCode.EXEC_RECONNECT: "Execution layer reconnected",

    # Data providers
    ReasonCode.PROV_STATE_CHANGE: "Provider state changed",
    ReasonCode.PROV_DISCONNECTED: "Provider disconnected",
    ReasonCode.PROV_RECONNECTED: "Provider reconnected",
    ReasonCode.PROV_RATE_LIMITED: "Provider rate limit hit",
    ReasonCode.PROV_AUTH_FAILURE: "Provider authentication failure",
    ReasonCode.PROV_DATA_ERROR: "Error in data received from provider",
    ReasonCode.PROV_MAINTENANCE: "Provider under scheduled maintenance",

    # Configuration / audit
    ReasonCode.AUDIT_CONFIG_CHANGED: "System configuration changed",
    ReasonCode.AUDIT_PARAM_UPDATED: "Operational parameter updated",
    ReasonCode.AUDIT_BRAIN_TOGGLED: "Brain enabled or disabled",
    ReasonCode.AUDIT_MODE_OVERRIDE: "Manual operating mode override",
    ReasonCode.AUDIT_MANUAL_ACTION: "Manual action executed by operator",
    ReasonCode.AUDIT_SYSTEM_RESTART: "System restart recorded",
    ReasonCode.AUDIT_PERMISSION_CHANGE: "Permission change recorded",
}


def describe_reason(code: ReasonCode) -> str:
    """Return the human description of a reason code."""
    return REASON_CODE_CATALOG[code]


def codes_for_family(family: str) -> List[ReasonCode]:
    """All codes owned by one family, in declaration order."""
    return [code for code in ReasonCode if code.family == family]
