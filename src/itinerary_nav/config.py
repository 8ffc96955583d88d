"""Configuration loading and validation for the navigation core."""

from __future__ import annotations

from copy import deepcopy
import logging
import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_path, user_state_path
from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigValidationError

import tomllib  # stdlib since Python 3.11 (project requires >=3.11)

LOGGER = logging.getLogger(__name__)

APP_NAME = "itinerary-nav"
CONFIG_DIR = user_config_path(APP_NAME)
CONFIG_PATH = CONFIG_DIR / "config.toml"
STATE_DIR = user_state_path(APP_NAME)

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
VALID_ANIMATION_VARIANTS = ("slide-left", "slide-right", "fade", "scale")


def _non_empty_string(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a string.")
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{label} must not be empty.")
    return normalized


class NavigatorConfig(BaseModel):
    """Which view to show first and how overlapping navigations are handled."""

    default_view: str = "dashboard"
    auto_navigate: bool = True
    reject_concurrent: bool = False

    @field_validator("default_view", mode="before")
    @classmethod
    def _validate_default_view(cls, value: Any) -> str:
        return _non_empty_string(value, "default_view")


class AnimationConfig(BaseModel):
    """Transition sequencing timings."""

    enabled: bool = True
    variant: str = "slide-left"
    settle_ms: int = Field(default=50, ge=0, le=5_000)
    duration_ms: int = Field(default=300, ge=0, le=10_000)

    @field_validator("variant", mode="before")
    @classmethod
    def _validate_variant(cls, value: Any) -> str:
        normalized = _non_empty_string(value, "variant").lower()
        if normalized not in VALID_ANIMATION_VARIANTS:
            raise ValueError(f"Unsupported animation variant {normalized!r}.")
        return normalized


class HistoryConfig(BaseModel):
    """Navigation history stack and address-state persistence."""

    enabled: bool = True
    max_length: int = Field(default=50, ge=1, le=10_000)
    persist: bool = False
    state_path: str = str(STATE_DIR / "history.json")

    @field_validator("state_path", mode="before")
    @classmethod
    def _validate_state_path(cls, value: Any) -> str:
        return _non_empty_string(value, "state_path")


class EventsConfig(BaseModel):
    """Event bus limits."""

    max_listeners: int = Field(default=100, ge=1, le=100_000)


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = str(STATE_DIR / "app.log")

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        return _non_empty_string(value, "log_file_path")


class Config(BaseModel):
    """Root configuration model for all sections."""

    navigator: NavigatorConfig = NavigatorConfig()
    animation: AnimationConfig = AnimationConfig()
    history: HistoryConfig = HistoryConfig()
    events: EventsConfig = EventsConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def _validate_persistence(self) -> Config:
        if self.history.persist and not self.history.enabled:
            raise ValueError("history.persist requires history.enabled.")
        return self


DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump()


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Ensure that the config directory exists and return its path."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", directory, exc)
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _enforce_private_permissions(path: Path) -> None:
    """Best-effort enforcement of private file permissions on POSIX systems."""
    if os.name != "posix" or not path.exists():
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning("Unable to enforce 0600 permissions for %s: %s", path, exc)


def _safe_default_config() -> dict[str, dict[str, Any]]:
    """Return a deep copy of validated default config data."""
    return deepcopy(DEFAULT_CONFIG)


def _validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged config and fallback to safe defaults when possible."""
    try:
        return Config.model_validate(raw).model_dump()
    except ValidationError as exc:
        LOGGER.warning("Configuration validation failed, using safe defaults: %s", exc)
        return _safe_default_config()
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """
    Load configuration from TOML, merge with defaults, and validate.

    The optional ``config_path`` argument is intended for tests and tooling.
    """
    target_path = config_path or CONFIG_PATH
    ensure_config_dir(target_path.parent)

    raw_data: dict[str, Any] = {}
    if target_path.exists():
        _enforce_private_permissions(target_path)
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            LOGGER.warning("Failed to parse config at %s: %s", target_path, exc)
            raw_data = {}

    merged = (
        _deep_merge(DEFAULT_CONFIG, raw_data)
        if isinstance(raw_data, dict)
        else _safe_default_config()
    )
    return _validate_config(merged)
