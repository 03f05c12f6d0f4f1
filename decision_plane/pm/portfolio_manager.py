"""
Portfolio manager.

One intent plus the portfolio state in, exactly one decision out. The
chain below is evaluated in order and the first applicable step decides:

1. Global mode RISK_OFF           -> DENY
2. Active cooldown                 -> QUEUE
3. Hand-off authorization          -> DENY / ALLOW (SCALE_IN continues)
4. Exposure governor               -> DENY / MODIFY
5. Global mode risk multiplier     -> MODIFY when != 1.0, else ALLOW

Denials are decisions, not errors.
"""

import logging
from datetime import datetime
from typing import Optional

from shared.models import (
    CooldownEntry,
    CooldownScope,
    DecisionType,
    EventIds,
    GlobalMode,
    PmDecision,
    PortfolioState,
    ReasonCode,
    RiskAdjustment,
    Severity,
    TradeIntent,
    WhyBlock,
)
from decision_plane.pm.exposure_governor import ExposureGovernor
from decision_plane.pm.handoff import HandoffAuthorization

logger = logging.getLogger(__name__)

MODE_RISK_MULTIPLIERS = {
    GlobalMode.NORMAL: 1.0,
    GlobalMode.EVENT_CLUSTER: 0.5,
    GlobalMode.CORR_BREAK: 0.3,
    GlobalMode.FLOW_PAYING: 0.8,
}


def find_active_cooldown(
    portfolio: PortfolioState, intent: TradeIntent, at: datetime
) -> Optional[CooldownEntry]:
    """First cooldown that is still running and covers the intent."""
    for cooldown in portfolio.cooldowns:
        if not cooldown.is_active(at):
            continue
        if cooldown.scope == CooldownScope.GLOBAL:
            return cooldown
        if cooldown.scope == CooldownScope.BRAIN and cooldown.target == intent.brain_id.value:
            return cooldown
        if cooldown.scope == CooldownScope.SYMBOL and cooldown.target == intent.symbol:
            return cooldown
    return None


class PortfolioManager:
    """Risk governor between the Brains and execution."""

    def __init__(
        self,
        governor: Optional[ExposureGovernor] = None,
        handoff: Optional[HandoffAuthorization] = None,
    ):
        self.governor = governor or ExposureGovernor()
        self.handoff = handoff or HandoffAuthorization()

    def evaluate(
        self,
        intent: TradeIntent,
        portfolio: PortfolioState,
        timestamp: datetime,
        ids: EventIds,
    ) -> PmDecision:
        """
        Decide what happens to ``intent``.

        Args:
            intent: Proposal from a Brain
            portfolio: Portfolio state at decision time (never modified)
            timestamp: Logical time of the decision; cooldowns are compared to it
            ids: Identifiers of the decision to emit
        """
        decide = _DecisionFactory(intent, portfolio, timestamp, ids)

        if portfolio.global_mode == GlobalMode.RISK_OFF:
            return decide(
                DecisionType.DENY, Severity.WARN, ReasonCode.PM_POSITION_DENIED,
                "Global mode RISK_OFF: no new risk",
            )

        cooldown = find_active_cooldown(portfolio, intent, timestamp)
        if cooldown is not None:
            return decide(
                DecisionType.QUEUE, Severity.INFO, ReasonCode.PM_POSITION_QUEUED,
                f"Cooldown {cooldown.scope.value}:{cooldown.target} active until "
                f"{cooldown.until.isoformat()}",
            )

        handoff = self.handoff.check(intent, portfolio.positions)
        if handoff is not None:
            if handoff.decision == DecisionType.DENY:
                return decide(
                    DecisionType.DENY, Severity.INFO, ReasonCode.PM_POSITION_DENIED,
                    handoff.message,
                )
            return decide(
                DecisionType.ALLOW, Severity.INFO, ReasonCode.PM_POSITION_ALLOWED,
                handoff.message,
            )

        verdict = self.governor.check(intent, portfolio)
        if verdict.decision == DecisionType.DENY:
            return decide(DecisionType.DENY, Severity.WARN, verdict.reason_code, verdict.message)
        if verdict.decision == DecisionType.MODIFY:
            return decide(
                DecisionType.MODIFY, Severity.WARN, verdict.reason_code, verdict.message,
                adjustment=RiskAdjustment(
                    original_risk_pct=intent.proposed_risk_pct,
                    adjusted_risk_pct=verdict.adjusted_risk_pct,
                    adjustment_reason="Clipped to available exposure headroom",
                ),
            )

        multiplier = MODE_RISK_MULTIPLIERS.get(portfolio.global_mode, 1.0)
        if multiplier != 1.0:
            adjusted = round(intent.proposed_risk_pct * multiplier, 6)
            return decide(
                DecisionType.MODIFY, Severity.INFO, ReasonCode.PM_RISK_ADJUSTED,
                f"Global mode {portfolio.global_mode.value}: risk x{multiplier} "
                f"({intent.proposed_risk_pct:.3f}% -> {adjusted:.3f}%)",
                adjustment=RiskAdjustment(
                    original_risk_pct=intent.proposed_risk_pct,
                    adjusted_risk_pct=adjusted,
                    adjustment_reason=f"Global mode {portfolio.global_mode.value} multiplier {multiplier}",
                ),
            )

        return decide(
            DecisionType.ALLOW, Severity.INFO, ReasonCode.PM_POSITION_ALLOWED,
            f"{intent.brain_id.value} {intent.intent_type.value} {intent.symbol} "
            f"at {intent.proposed_risk_pct:.3f}% within limits",
        )


class _DecisionFactory:
    """Builds PmDecision records sharing one intent, portfolio and id set."""

    def __init__(self, intent: TradeIntent, portfolio: PortfolioState, timestamp: datetime, ids: EventIds):
        self.intent = intent
        self.portfolio = portfolio
        self.timestamp = timestamp
        self.ids = ids

    def __call__(
        self,
        decision: DecisionType,
        severity: Severity,
        reason: ReasonCode,
        message: str,
        adjustment: Optional[RiskAdjustment] = None,
    ) -> PmDecision:
        logger.debug(
            "PM %s %s %s: %s (%s)",
            self.intent.brain_id.value, self.intent.symbol, decision.value, message, reason.value,
        )
        return PmDecision(
            event_id=self.ids.event_id,
            correlation_id=self.ids.correlation_id,
            timestamp=self.timestamp,
            severity=severity,
            intent_event_id=self.intent.event_id,
            decision=decision,
            risk_adjustments=adjustment,
            risk_state=self.portfolio.risk_state,
            why=WhyBlock(reason_code=reason, message=message),
        )
