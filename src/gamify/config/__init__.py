"""Configuration package for the gamify backend."""

from gamify.config.app_config import (
    ApiConfig,
    AppConfig,
    XPConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "XPConfig",
    "clear_config_cache",
    "load_app_config",
]
