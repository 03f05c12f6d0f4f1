"""Configuration loading for the decision core."""

from shared.config.settings import CoreConfig, build_config, load_config, reload_config

__all__ = ["CoreConfig", "build_config", "load_config", "reload_config"]
