"""
shared.config.settings: YAML configuration loader with env overrides.

- YAML file (``config/decision_core.yaml`` or ``$DECISION_CORE_CONFIG``)
- Environment overrides with prefix + ``__`` nesting:
  ``DC_LOGGING__LEVEL=DEBUG`` -> ``{'logging': {'level': 'DEBUG'}}``
- Values are JSON-decoded when possible (``DC_RISK_LIMITS__MAX_POSITIONS=4``)
- Missing file means defaults; invalid content raises ConfigError.

The pure stages never import this module. Only the orchestration layer
(``decision_plane.app``) reads configuration and passes plain values down.
"""

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from shared.errors import ConfigError
from shared.models.enums import BrainId, GlobalMode
from shared.models.portfolio import PortfolioState, RiskLimits, RiskState

logger = logging.getLogger(__name__)

# -----------------------
# constants & env guards
# -----------------------
DEFAULT_CONFIG_PATH = Path(os.environ.get("DECISION_CORE_CONFIG", "config/decision_core.yaml"))
ENV_PREFIX = "DC_"

SIGNAL_BRAINS = (BrainId.A2, BrainId.B3, BrainId.C3, BrainId.D2)


# -----------------------
# Pydantic models
# -----------------------
class LoggingConfig(BaseModel):
    level: str = Field("INFO", description="Root level for the structured logger")
    json_output: bool = Field(True, description="Emit JSON lines instead of plain text")
    service_name: str = Field("decision_core")
    environment: str = Field("development")

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        v = v.upper()
        if not isinstance(getattr(logging, v, None), int):
            raise ValueError(f"unknown logging level: {v}")
        return v


class CycleConfig(BaseModel):
    enabled_brains: List[BrainId] = Field(
        default_factory=lambda: list(SIGNAL_BRAINS),
        description="Brains evaluated in every cycle, run in registry order",
    )

    @field_validator("enabled_brains")
    @classmethod
    def only_signal_brains(cls, v: List[BrainId]) -> List[BrainId]:
        unknown = [b.value for b in v if b not in SIGNAL_BRAINS]
        if unknown:
            raise ValueError(f"not signal brains: {unknown}")
        return v


class CoreConfig(BaseModel):
    schema_version: int = Field(1, ge=1, description="Config schema version")
    risk_limits: RiskLimits = Field(default_factory=RiskLimits)
    cycle: CycleConfig = Field(default_factory=CycleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def default_portfolio_state(self, global_mode: GlobalMode = GlobalMode.NORMAL) -> PortfolioState:
        """Flat book under the configured limits."""
        limits = self.risk_limits
        return PortfolioState(
            risk_state=RiskState(
                current_drawdown_pct=0.0,
                current_exposure_pct=0.0,
                open_positions=0,
                daily_loss_pct=0.0,
                available_risk_pct=limits.max_exposure_pct,
            ),
            positions=(),
            risk_limits=limits,
            global_mode=global_mode,
            cooldowns=(),
        )


# -----------------------
# internal helpers: load yaml, env overrides, deep merge
# -----------------------
def _load_yaml_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug("config: %s not found; using defaults", path)
        return {}
    with path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root in {path} must be a mapping")
    return data


def _env_overrides(prefix: str = ENV_PREFIX, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Parse env vars with prefix, nesting via double-underscore.
    Example: DC_LOGGING__LEVEL=DEBUG -> {'logging': {'level': 'DEBUG'}}
    Supports JSON decoding of values.
    """
    out: Dict[str, Any] = {}
    pref = prefix.upper()
    environ = os.environ if environ is None else environ

    for k, v in environ.items():
        if not k.startswith(pref):
            continue
        parts = k[len(pref):].split("__")
        node = out
        for p in parts[:-1]:
            key = p.lower()
            if key not in node or not isinstance(node[key], dict):
                node[key] = {}
            node = node[key]
        try:
            parsed = json.loads(v)
        except json.JSONDecodeError:
            parsed = v
        node[parts[-1].lower()] = parsed
    return out


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    res = dict(a)
    for k, v in b.items():
        if k in res and isinstance(res[k], dict) and isinstance(v, dict):
            res[k] = _deep_merge(res[k], v)
        else:
            res[k] = v
    return res


# -----------------------
# config construction
# -----------------------
def build_config(
    path: Optional[Path] = None,
    env_prefix: str = ENV_PREFIX,
    environ: Optional[Dict[str, str]] = None,
) -> CoreConfig:
    """Load YAML, apply env overrides and validate. Raises ConfigError."""
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    merged = _deep_merge(_load_yaml_file(cfg_path), _env_overrides(env_prefix, environ))
    try:
        cfg = CoreConfig.model_validate(merged)
    except ValidationError as ve:
        logger.error("Config validation error: %s", ve)
        raise ConfigError(f"invalid configuration in {cfg_path}: {ve}") from ve
    logger.debug("Loaded config from %s (brains=%s)", cfg_path, [b.value for b in cfg.cycle.enabled_brains])
    return cfg


@lru_cache(maxsize=1)
def _cached_config(path: Optional[str], env_prefix: str) -> CoreConfig:
    return build_config(Path(path) if path else None, env_prefix)


def load_config(path: Optional[str] = None, env_prefix: str = ENV_PREFIX) -> CoreConfig:
    """Cached variant of ``build_config`` for process-wide use."""
    return _cached_config(path, env_prefix)


def reload_config(path: Optional[str] = None, env_prefix: str = ENV_PREFIX) -> CoreConfig:
    _cached_config.cache_clear()
    return load_config(path=path, env_prefix=env_prefix)
