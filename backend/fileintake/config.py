"""File intake service configuration.

Loads settings from a single YAML file:
  * intake.settings.yaml  (override the path with INTAKE_SETTINGS_FILE)

Sections:
  * server: bind address
  * logging: root log level
  * intake: default per-session limits (max_files, max_size, accepted_types, multiple)
  * sessions: registry limits
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from fileintake.intake.schemas import IntakeConfig
from fileintake.intake.session import DEFAULT_MAX_SESSIONS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("intake.settings.yaml")
SETTINGS_ENV_VAR = "INTAKE_SETTINGS_FILE"


def _settings_path() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    return Path(override) if override else SETTINGS_FILE


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class LoggingSettings(BaseModel):
    level: str = "info"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if not isinstance(logging.getLevelName(value.upper()), int):
            raise ValueError(f"Unknown log level: {value}")
        return value.lower()


class SessionSettings(BaseModel):
    max_sessions: int = Field(default=DEFAULT_MAX_SESSIONS, ge=1)


class AppSettings(BaseModel):
    server:   ServerSettings  = Field(default_factory=ServerSettings)
    logging:  LoggingSettings = Field(default_factory=LoggingSettings)
    intake:   IntakeConfig    = Field(default_factory=IntakeConfig)
    sessions: SessionSettings = Field(default_factory=SessionSettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """Load *AppSettings* from YAML, falling back to defaults for missing keys."""
    settings_data = _load_yaml(path or _settings_path())

    app_settings = AppSettings(**settings_data)
    logger.info(
        "Settings loaded (server=%s:%s, max_files=%d, max_size=%d, accepted_types=%s)",
        app_settings.server.host,
        app_settings.server.port,
        app_settings.intake.max_files,
        app_settings.intake.max_size,
        app_settings.intake.accept_attribute,
    )
    return app_settings


_config: Optional[AppSettings] = None


def get_config() -> AppSettings:
    """Return the process-wide settings, loading them on first use."""
    global _config
    if _config is None:
        _config = load_settings()
    return _config


def reset_config() -> None:
    """Drop cached settings so the next get_config() reloads (for testing)."""
    global _config
    _config = None
