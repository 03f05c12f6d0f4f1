"""
Hand-off authorization.

Intents that act on an existing position (scale in, scale out, close) are
only authorized for the Brain that owns a position on that symbol.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from shared.models import DecisionType, IntentType, OpenPosition, TradeIntent

logger = logging.getLogger(__name__)

HANDOFF_INTENTS = frozenset({IntentType.SCALE_IN, IntentType.SCALE_OUT, IntentType.CLOSE})

# Intents that only reduce exposure are final once authorized
REDUCING_INTENTS = frozenset({IntentType.SCALE_OUT, IntentType.CLOSE})


@dataclass(frozen=True)
class HandoffVerdict:
    decision: DecisionType
    message: str


class HandoffAuthorization:
    """Checks ownership of the position a hand-off intent targets."""

    def check(self, intent: TradeIntent, positions: Sequence[OpenPosition]) -> Optional[HandoffVerdict]:
        """
        Returns:
            None when the intent is not a hand-off or is an authorized
            SCALE_IN that must continue through the exposure checks;
            otherwise a final ALLOW or DENY verdict.
        """
        if intent.intent_type not in HANDOFF_INTENTS:
            return None

        owned = any(
            p.symbol == intent.symbol and p.brain_id == intent.brain_id for p in positions
        )
        if not owned:
            logger.debug(
                "Hand-off %s denied: %s holds no position on %s",
                intent.intent_type.value, intent.brain_id.value, intent.symbol,
            )
            return HandoffVerdict(
                decision=DecisionType.DENY,
                message=(
                    f"{intent.intent_type.value} denied: no {intent.symbol} position "
                    f"owned by {intent.brain_id.value}"
                ),
            )

        if intent.intent_type in REDUCING_INTENTS:
            return HandoffVerdict(
                decision=DecisionType.ALLOW,
                message=(
                    f"{intent.intent_type.value} authorized for {intent.brain_id.value} "
                    f"on {intent.symbol}"
                ),
            )

        return None
