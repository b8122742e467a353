"""Client configuration loaded from .unmatched-line.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".unmatched-line.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "unmatched-line" / "config.toml"


class ServiceSectionConfig(BaseModel):
    """[service] section."""

    base_url: str = "http://localhost:3000"
    session_cookie: str = ""
    timeout: float | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.session_cookie)


class CacheSectionConfig(BaseModel):
    """[cache] section."""

    ttl_seconds: float = 600
    max_size: int | None = None


class PaginationSectionConfig(BaseModel):
    """[pagination] section."""

    feed_limit: int = 20
    category_limit: int = 10
    poem_list_limit: int = 10
    article_feed_limit: int = 10
    poet_limit: int = 20
    poet_works_limit: int = 20
    search_limit: int = 10


class ClientConfig(BaseModel):
    """Top-level configuration for the content service client."""

    service: ServiceSectionConfig = Field(default_factory=ServiceSectionConfig)
    cache: CacheSectionConfig = Field(default_factory=CacheSectionConfig)
    pagination: PaginationSectionConfig = Field(default_factory=PaginationSectionConfig)


def load_config(path: str | Path | None = None) -> ClientConfig:
    """Load configuration from TOML file(s) and environment.

    Search order:
    1. Explicit path (if provided)
    2. .unmatched-line.toml in CWD
    3. ~/.config/unmatched-line/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged ClientConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = ClientConfig.model_validate(data) if data else ClientConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: ClientConfig, **cli_kwargs: object) -> ClientConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was provided (not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "base_url": ("service", "base_url"),
        "session_cookie": ("service", "session_cookie"),
        "timeout": ("service", "timeout"),
        "cache_ttl": ("cache", "ttl_seconds"),
        "limit": ("pagination", "feed_limit"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        data[section][field] = value

    return ClientConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: ClientConfig) -> ClientConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "UNMATCHED_LINE_URL": ("service", "base_url"),
        "UNMATCHED_LINE_SESSION": ("service", "session_cookie"),
    }
    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    numeric_mapping: dict[str, tuple[str, str]] = {
        "UNMATCHED_LINE_TIMEOUT": ("service", "timeout"),
        "UNMATCHED_LINE_CACHE_TTL": ("cache", "ttl_seconds"),
    }
    for env_var, (section, field) in numeric_mapping.items():
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            data[section][field] = float(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a number", env_var, raw)

    return ClientConfig.model_validate(data)
