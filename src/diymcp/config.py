"""Settings — the optional YAML config file consumed by the ``diymcp`` CLI.

Example::

    server:
      command: node ../server/dist/index.js
    model:
      model: openai/gpt-4o-mini
      api_key: ${OPENAI_API_KEY}
    max_repeats: 2
    request_timeout: 30
"""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from diymcp.core.interface.config import ModelConfig
from diymcp.core.orchestration.loop import DEFAULT_SYSTEM_PROMPT


class ConfigError(Exception):
    """Raised when the config file fails parsing or validation."""


def default_server_command() -> str:
    """Command that runs the bundled coffee shop server with this interpreter."""
    return f"{shlex.quote(sys.executable)} -m diymcp.server.coffee_shop"


class ServerSettings(BaseModel):
    """How to start the tool server subprocess."""

    command: str = Field(default_factory=default_server_command)
    env: dict[str, str] = {}


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    service_name: str = "diymcp"
    console: bool = True
    otlp_endpoint: str | None = None


class Settings(BaseModel):
    """Top-level settings."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    model: ModelConfig = Field(default_factory=ModelConfig)
    system_prompt: str | None = DEFAULT_SYSTEM_PROMPT
    max_repeats: int = Field(default=2, ge=1)
    max_turns: int | None = Field(default=None, ge=1)
    request_timeout: float | None = Field(default=None, gt=0)
    keep_history: bool = False
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    def with_overrides(
        self,
        *,
        server: str | None = None,
        model: str | None = None,
        keep_history: bool | None = None,
    ) -> Settings:
        """Return a copy with CLI flag values applied on top."""
        updated = self.model_copy(deep=True)
        if server:
            updated.server.command = server
        if model:
            updated.model.model = model
        if keep_history is not None:
            updated.keep_history = keep_history
        return updated


def load_settings(path: str | Path | None) -> Settings:
    """Read YAML, interpolate env vars, and validate.

    Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
    with :func:`os.path.expandvars` before parsing.  ``None`` yields the
    defaults.

    Raises:
        ConfigError: On read errors, YAML parse errors or validation failures.
    """
    if path is None:
        return Settings()

    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {config_path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(os.path.expandvars(raw))
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError("Config YAML must be a mapping")

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
