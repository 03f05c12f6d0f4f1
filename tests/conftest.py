"""
pytest configuration and global fixtures.

This file is automatically loaded by pytest and provides:
- Paths to the fixture and scenario directories
- Ready-made records built from ``tests.factories``
- Isolation of process-wide state (config cache, package loggers)
"""

import logging
from pathlib import Path

import pytest

from shared.config.settings import _cached_config
from tests.factories import (
    id_supply,
    make_active_position,
    make_ids,
    make_intent,
    make_portfolio,
    make_snapshot,
)


@pytest.fixture
def fixtures_dir():
    """Provide path to fixtures directory."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def scenarios_dir(fixtures_dir):
    """Provide path to the decision-cycle scenarios."""
    return fixtures_dir / "scenarios"


@pytest.fixture
def london_scenario_path(scenarios_dir):
    """Two-symbol London session scenario with one open position."""
    return scenarios_dir / "london_session.yaml"


@pytest.fixture
def config_path():
    """Default configuration file shipped with the repo."""
    return Path(__file__).parent.parent / "config" / "decision_core.yaml"


# ============================================================================
# Record Fixtures
# ============================================================================


@pytest.fixture
def ids():
    """Identifier pair for a single evaluation."""
    return make_ids()


@pytest.fixture
def event_ids():
    """Fresh iterator over deterministic event ids."""
    return iter(id_supply())


@pytest.fixture
def snapshot():
    """Trending EURUSD snapshot with clean liquidity and healthy execution."""
    return make_snapshot()


@pytest.fixture
def intent():
    """A2 OPEN_LONG on EURUSD at 1% risk, RR 2.0."""
    return make_intent()


@pytest.fixture
def portfolio():
    """
    Portfolio well inside its limits.

    Limits: drawdown 5, exposure 10, daily loss 3, 5 positions,
    symbol 3, currency 6, correlated 5. Current exposure 2.0.
    """
    return make_portfolio()


@pytest.fixture
def active_position():
    """Healthy A2 EURUSD long, slightly in profit."""
    return make_active_position()


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Every test starts with an empty configuration cache."""
    _cached_config.cache_clear()
    yield
    _cached_config.cache_clear()


@pytest.fixture
def restore_package_loggers():
    """Undo handler changes made by ``init_structured_logger``."""
    names = ["decision_plane", "contracts", "shared", "fixtures"]
    saved = {}
    for name in names:
        lg = logging.getLogger(name)
        saved[name] = (list(lg.handlers), lg.level, lg.propagate)
    yield
    for name, (handlers, level, propagate) in saved.items():
        lg = logging.getLogger(name)
        lg.handlers[:] = handlers
        lg.setLevel(level)
        lg.propagate = propagate


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """
    Pytest configuration hook.

    Register custom markers.
    """
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "integration: Integration tests")
