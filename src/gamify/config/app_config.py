"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml.
Missing file or missing keys fall back to built-in defaults.

Usage:
    from gamify.config.app_config import load_app_config

    config = load_app_config()
    window_ms = config.xp.cooldown_ms
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")


@dataclass
class XPConfig:
    """Configuration for XP awarding and leveling."""

    cooldown_seconds: int = 180
    xp_per_level: int = 1000

    @property
    def cooldown_ms(self) -> int:
        """Cooldown window in milliseconds."""
        return self.cooldown_seconds * 1000


@dataclass
class ApiConfig:
    """Configuration for the HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class AppConfig:
    """Application-wide configuration."""

    xp: XPConfig = field(default_factory=XPConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def db_path(self) -> Path:
        """Database path, overridable with GAMIFY_DB_PATH."""
        env_path = os.environ.get("GAMIFY_DB_PATH")
        if env_path:
            return Path(env_path)
        return Path(self.paths.get("db_path", "db/gamify.db"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "xp": {
            "cooldown_seconds": 180,
            "xp_per_level": 1000,
        },
        "api": {
            "host": "127.0.0.1",
            "port": 8000,
            "cors_origins": ["*"],
        },
        "paths": {
            "db_path": "db/gamify.db",
            "config_dir": "data/config",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    xp_data = {**defaults["xp"], **(data.get("xp") or {})}
    xp = XPConfig(
        cooldown_seconds=int(xp_data["cooldown_seconds"]),
        xp_per_level=int(xp_data["xp_per_level"]),
    )

    api_data = {**defaults["api"], **(data.get("api") or {})}
    api = ApiConfig(
        host=api_data["host"],
        port=int(api_data["port"]),
        cors_origins=list(api_data["cors_origins"]),
    )

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(xp=xp, api=api, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
