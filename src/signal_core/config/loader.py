"""Config loader — reads YAML, applies SIGNAL_* env var overrides, validates."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from signal_core.config.schema import AppConfig
from signal_core.errors import ConfigurationError


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        SIGNAL_DATABASE_URL  -> database.url
        SIGNAL_LOG_LEVEL     -> logging.level
        SIGNAL_LOG_FORMAT    -> logging.format
        SIGNAL_SYMBOLS       -> symbols (comma separated)

    Raises:
        ConfigurationError: the YAML is unreadable or any value fails validation.
    """
    data: dict[str, Any] = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            try:
                with open(p) as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"cannot parse {p}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigurationError(f"{p} must contain a mapping at the top level")

    # Apply env var overrides
    db_url = os.environ.get("SIGNAL_DATABASE_URL")
    if db_url:
        data.setdefault("database", {})["url"] = db_url

    log_level = os.environ.get("SIGNAL_LOG_LEVEL")
    if log_level:
        data.setdefault("logging", {})["level"] = log_level

    log_format = os.environ.get("SIGNAL_LOG_FORMAT")
    if log_format:
        data.setdefault("logging", {})["format"] = log_format

    symbols = os.environ.get("SIGNAL_SYMBOLS")
    if symbols:
        data["symbols"] = [s.strip().upper() for s in symbols.split(",") if s.strip()]

    return validate_config(data)


def validate_config(data: dict[str, Any]) -> AppConfig:
    """Validate a raw config mapping, turning pydantic errors into ConfigurationError."""
    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc
