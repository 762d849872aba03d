"""Configuration error types."""

from __future__ import annotations


class ConfigError(Exception):
    """Raised when a config YAML fails parsing or validation."""
