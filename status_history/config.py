"""
YAML configuration loader.

Reads config.yaml and produces typed SourceConfig / TrackerSettings objects.
Falls back to sensible defaults if the config file is missing.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

import yaml

from status_history.models import SourceConfig, TrackerSettings

logger = logging.getLogger(__name__)

# Default path: config.yaml next to the project root
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

_CACHE_POLICIES = ("blocking", "background")


def load_config(
    path: str | Path | None = None,
) -> Tuple[SourceConfig, TrackerSettings]:
    """
    Load and parse the YAML configuration file.

    The path resolves from the argument, then the STATUS_HISTORY_CONFIG
    environment variable, then config.yaml at the project root.

    Returns:
        A tuple of (SourceConfig, TrackerSettings).
    """
    env_path = os.environ.get("STATUS_HISTORY_CONFIG")
    config_path = Path(path or env_path or _DEFAULT_CONFIG_PATH)

    if not config_path.exists():
        logger.warning("Config file not found at %s, using defaults.", config_path)
        return SourceConfig(), TrackerSettings()

    with open(config_path, "r") as fh:
        raw = yaml.safe_load(fh) or {}

    defaults = TrackerSettings()
    default_source = SourceConfig()

    raw_source = raw.get("source", {}) or {}
    source = SourceConfig(
        name=raw_source.get("name", default_source.name),
        base_url=raw_source.get("base_url", default_source.base_url).rstrip("/"),
    )

    raw_settings = raw.get("settings", {}) or {}
    settings = TrackerSettings(
        log_level=str(raw_settings.get("log_level", defaults.log_level)).upper(),
        db_path=raw_settings.get("db_path", defaults.db_path),
        cache_ttl=float(raw_settings.get("cache_ttl", defaults.cache_ttl)),
        cache_policy=raw_settings.get("cache_policy", defaults.cache_policy),
        cutoff_year=int(raw_settings.get("cutoff_year", defaults.cutoff_year)),
        history_pages=list(raw_settings.get("history_pages", defaults.history_pages)),
        months_per_page=int(raw_settings.get("months_per_page", defaults.months_per_page)),
        batch_width=int(raw_settings.get("batch_width", defaults.batch_width)),
        request_timeout=float(raw_settings.get("request_timeout", defaults.request_timeout)),
    )

    if settings.cache_policy not in _CACHE_POLICIES:
        raise ValueError(
            f"cache_policy must be one of {', '.join(_CACHE_POLICIES)}, "
            f"got {settings.cache_policy!r}"
        )
    if settings.batch_width < 1:
        raise ValueError("batch_width must be at least 1")

    return source, settings
