"""Pydantic settings for the server, the client and telemetry, loaded from YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from mcpaudit.errors import ConfigError
from mcpaudit.protocols.mcp.models import PROTOCOL_VERSION


class ServerSettings(BaseModel):
    """Where and how ``mcpaudit serve`` listens."""

    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    path: str = "/mcp"
    name: str = "mcpaudit"
    protocol_version: str = PROTOCOL_VERSION
    require_session: bool = False
    validate_arguments: bool = True
    builtin_tools: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("path")
    @classmethod
    def _normalise_path(cls, value: str) -> str:
        return "/" + value.strip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"


class ClientSettings(BaseModel):
    """Defaults for the ``tools`` commands."""

    url: str = "http://127.0.0.1:3000/mcp"
    client_name: str = "mcpaudit"
    timeout: float | None = None
    services: dict[str, str] = {}


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    service_name: str = "mcpaudit"
    export_to_console: bool = False
    otlp_endpoint: str | None = None


class AuditConfig(BaseModel):
    """Top-level config file.

    Example YAML::

        server:
          port: 3000
          require_session: true
        client:
          url: http://localhost:3000/mcp
          services:
            add_reminder: ReminderService
        telemetry:
          enabled: true
          otlp_endpoint: ${OTLP_ENDPOINT}
    """

    server: ServerSettings = Field(default_factory=ServerSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)


class ConfigLoader:
    """Load and validate a YAML config file into an :class:`AuditConfig`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> AuditConfig:
        """Read YAML, interpolate env vars, and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing.  An empty file
        yields the defaults.

        Raises:
            ConfigError: On read errors, YAML parse errors or validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Config YAML must be a mapping")

        try:
            return AuditConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


def load_config(path: str | Path | None) -> AuditConfig:
    """Load *path*, or return the defaults when no path is given."""
    if path is None:
        return AuditConfig()
    return ConfigLoader(Path(path)).load()
