"""Application configuration helpers."""

from __future__ import annotations

from .engine import EngineConfig, HubspotDealConfig, get_engine_config, get_hubspot_deal_config
from .env import optional_env_var, optional_int_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging

__all__ = [
    "ConfigurationError",
    "EngineConfig",
    "HubspotDealConfig",
    "MissingConfigurationError",
    "configure_logging",
    "get_engine_config",
    "get_hubspot_deal_config",
    "optional_env_var",
    "optional_int_env_var",
    "require_env_vars",
]
