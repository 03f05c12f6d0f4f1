"""Signal generators.

``BRAIN_REGISTRY`` lists the Brains in evaluation order.
"""

from typing import Dict

from shared.models import BrainId
from decision_plane.brains.base import Brain, EdgeSignal, build_trade_plan
from decision_plane.brains.a2_liquidity_predator import LiquidityPredator
from decision_plane.brains.b3_relative_value import RelativeValue
from decision_plane.brains.c3_momentum import MomentumTwoSpeed
from decision_plane.brains.d2_news import NewsBrain

BRAIN_REGISTRY: Dict[BrainId, Brain] = {
    BrainId.A2: LiquidityPredator(),
    BrainId.B3: RelativeValue(),
    BrainId.C3: MomentumTwoSpeed(),
    BrainId.D2: NewsBrain(),
}

__all__ = [
    "BRAIN_REGISTRY",
    "Brain",
    "EdgeSignal",
    "LiquidityPredator",
    "MomentumTwoSpeed",
    "NewsBrain",
    "RelativeValue",
    "build_trade_plan",
]
