"""Config module exports."""

from recipebox.config.loader import RecipeBoxSettings, load_config
from recipebox.config.models import (
    LoggingConfig,
    LogOutputConfig,
    PathsConfig,
    RecipeBoxConfig,
    ServerConfig,
    TimeoutsConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "LoggingConfig",
    "LogOutputConfig",
    "PathsConfig",
    "RecipeBoxConfig",
    "RecipeBoxSettings",
    "ServerConfig",
    "TimeoutsConfig",
    "WatcherConfig",
]
