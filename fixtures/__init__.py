"""
Fixture Management Module

Provides utilities for:
- Loading decision-cycle scenarios from YAML
- Signing fixtures with SHA256 hashes
- Verifying fixture integrity

A scenario file holds everything one cycle needs: the cycle's
correlation id and timestamp, a supply of event ids, the MCL inputs and
optionally the portfolio state, open positions and closed-trade history.
Records are validated through the boundary contracts, so a scenario is
exactly as strict as a payload coming from the orchestrator.
"""

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from contracts.schema_validator import parse_contract, to_json_text
from shared.models import ActivePositionState, MclInput, PortfolioState, PositionResult
from shared.models.base import ensure_aware

# Fixture base directory
FIXTURES_DIR = Path(__file__).parent
SCENARIOS_DIR = FIXTURES_DIR / "scenarios"


def _canonical(data: Any) -> str:
    # Sort keys for consistent hashing
    return json.dumps(json.loads(to_json_text(data)), sort_keys=True)


def sign_fixture(data: dict, version: str = "1.0", created_at: Optional[datetime] = None) -> dict:
    """
    Add a SHA256 signature to fixture data.

    Args:
        data: Fixture data dictionary
        version: Fixture version
        created_at: Signing time recorded in the metadata (default: now, UTC)

    Returns:
        Signed fixture with metadata
    """
    created_at = created_at or datetime.now(timezone.utc)
    signature = hashlib.sha256(_canonical(data).encode()).hexdigest()

    return {
        "data": data,
        "metadata": {
            "signature": signature,
            "version": version,
            "created_at": created_at.isoformat(),
            "algorithm": "sha256",
        },
    }


def verify_fixture(fixture_content: dict) -> bool:
    """
    Verify fixture signature.

    Raises:
        ValueError: If the content is not in signed format
    """
    if "data" not in fixture_content or "metadata" not in fixture_content:
        raise ValueError("Invalid fixture format: missing data or metadata")

    expected_sig = fixture_content["metadata"]["signature"]
    actual_sig = hashlib.sha256(_canonical(fixture_content["data"]).encode()).hexdigest()
    return actual_sig == expected_sig


def _read_yaml_or_json(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f) or {}


def load_fixture(path: Union[str, Path], verify: bool = True) -> dict:
    """
    Load a fixture file (YAML or JSON), verifying it when signed.

    Relative paths are resolved against the fixtures directory first.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If signature verification fails
    """
    fixture_path = Path(path)
    if not fixture_path.is_absolute() and not fixture_path.exists():
        fixture_path = FIXTURES_DIR / fixture_path
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture not found: {fixture_path}")

    content = _read_yaml_or_json(fixture_path)
    if "metadata" in content and "data" in content:
        if verify and not verify_fixture(content):
            raise ValueError(f"Fixture signature verification failed: {fixture_path}")
        return content["data"]
    return content


def save_fixture(path: Union[str, Path], data: dict, version: str = "1.0") -> Path:
    """Sign and save a fixture as JSON."""
    fixture_path = Path(path)
    fixture_path.parent.mkdir(parents=True, exist_ok=True)

    with open(fixture_path, "w", encoding="utf-8") as f:
        json.dump(sign_fixture(json.loads(to_json_text(data)), version), f, indent=2)
    return fixture_path


# ============================================================================
# Scenarios
# ============================================================================

@dataclass(frozen=True)
class Scenario:
    """A validated decision-cycle scenario."""
    name: str
    correlation_id: str
    timestamp: datetime
    event_ids: Tuple[str, ...]
    mcl_inputs: Tuple[MclInput, ...]
    portfolio: Optional[PortfolioState] = None
    positions: Tuple[ActivePositionState, ...] = ()
    recent_results: Tuple[PositionResult, ...] = ()


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if not isinstance(value, datetime):
        raise ValueError(f"timestamp must be an ISO 8601 string, got {value!r}")
    return ensure_aware(value)


def build_scenario(data: Dict[str, Any], name: str = "scenario") -> Scenario:
    """
    Validate raw scenario data.

    Raises:
        KeyError: Missing required section
        ValueError: Malformed timestamp
        pydantic.ValidationError: Malformed record
    """
    correlation_id = data["correlation_id"]
    mcl_inputs = tuple(
        parse_contract({"correlation_id": correlation_id, **raw}, "mcl_input")
        for raw in data["mcl_inputs"]
    )
    portfolio = data.get("portfolio")
    return Scenario(
        name=data.get("name", name),
        correlation_id=correlation_id,
        timestamp=_parse_timestamp(data["timestamp"]),
        event_ids=tuple(data["event_ids"]),
        mcl_inputs=mcl_inputs,
        portfolio=parse_contract(portfolio, "portfolio_state") if portfolio is not None else None,
        positions=tuple(parse_contract(p, "active_position") for p in data.get("positions", [])),
        recent_results=tuple(
            parse_contract(r, "position_result") for r in data.get("recent_results", [])
        ),
    )


def load_scenario(path: Union[str, Path], verify: bool = True) -> Scenario:
    """Load and validate a scenario file."""
    path = Path(path)
    if not path.is_absolute() and not path.exists():
        path = SCENARIOS_DIR / path
    return build_scenario(load_fixture(path, verify=verify), name=path.stem)


# Expose key functions
__all__ = [
    "FIXTURES_DIR",
    "SCENARIOS_DIR",
    "Scenario",
    "build_scenario",
    "load_fixture",
    "load_scenario",
    "save_fixture",
    "sign_fixture",
    "verify_fixture",
]
