"""Errors raised while reading portal and engine settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but cannot be used."""


class MissingConfigurationError(ConfigurationError):
    """A required environment variable is unset or blank."""
