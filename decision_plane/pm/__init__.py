"""Portfolio risk governance."""

from decision_plane.pm.exposure_governor import ExposureGovernor, ExposureVerdict, split_currency_pair
from decision_plane.pm.handoff import HandoffAuthorization, HandoffVerdict
from decision_plane.pm.portfolio_manager import MODE_RISK_MULTIPLIERS, PortfolioManager

__all__ = [
    "ExposureGovernor",
    "ExposureVerdict",
    "HandoffAuthorization",
    "HandoffVerdict",
    "MODE_RISK_MULTIPLIERS",
    "PortfolioManager",
    "split_currency_pair",
]
