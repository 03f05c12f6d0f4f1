"""Exception hierarchy of the decision core.

Business outcomes (a Brain abstaining, the portfolio manager denying) are
never exceptions. These classes cover misuse and invalid configuration;
malformed records raise ``pydantic.ValidationError`` at construction.
"""


class DecisionCoreError(Exception):
    """Base class for decision core errors"""
    pass


class ConfigError(DecisionCoreError):
    """Raised when configuration cannot be loaded or validated"""
    pass


class CycleError(DecisionCoreError):
    """Raised when a decision cycle is driven with inconsistent inputs"""
    pass
