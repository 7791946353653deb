"""Runtime settings for the GateFlow setup tool.

Precedence: explicit constructor values, then environment variables,
then the defaults in :mod:`gateflow_setup.const`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .const import (
    DEFAULT_API_URL,
    DEFAULT_CONFIG_DIR,
    DEFAULT_DASHBOARD_URL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_TOKEN_PATH,
    DEPLOY_CONFIG_FILENAME,
    SESSION_STATE_FILENAME,
)

ENV_CONFIG_DIR = "GATEFLOW_CONFIG_DIR"
ENV_TOKEN_PATH = "GATEFLOW_SUPABASE_TOKEN_PATH"
ENV_DASHBOARD_URL = "GATEFLOW_DASHBOARD_URL"
ENV_API_URL = "GATEFLOW_API_URL"
ENV_HTTP_TIMEOUT = "GATEFLOW_HTTP_TIMEOUT"

_ENV_FIELDS = {
    "config_dir": ENV_CONFIG_DIR,
    "token_path": ENV_TOKEN_PATH,
    "dashboard_url": ENV_DASHBOARD_URL,
    "api_url": ENV_API_URL,
    "http_timeout": ENV_HTTP_TIMEOUT,
}


class SetupSettings(BaseModel):
    """Where state lives and which platform endpoints to talk to."""

    model_config = ConfigDict(frozen=True)

    config_dir: Path = DEFAULT_CONFIG_DIR
    token_path: Path = DEFAULT_TOKEN_PATH
    dashboard_url: str = DEFAULT_DASHBOARD_URL
    api_url: str = DEFAULT_API_URL
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)

    @field_validator("config_dir", "token_path")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("dashboard_url", "api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def deploy_config_path(self) -> Path:
        return self.config_dir / DEPLOY_CONFIG_FILENAME

    @property
    def session_state_path(self) -> Path:
        return self.config_dir / SESSION_STATE_FILENAME

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> SetupSettings:
        """Build settings from ``environ`` (default ``os.environ``) and overrides.

        Overrides that are None are ignored so CLI flags can be passed through.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {
            field: environ[var] for field, var in _ENV_FIELDS.items() if environ.get(var)
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
