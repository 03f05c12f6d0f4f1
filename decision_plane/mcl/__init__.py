"""Market context classification."""

from decision_plane.mcl.classifier import MarketContextClassifier, compute_market_context

__all__ = ["MarketContextClassifier", "compute_market_context"]
