"""Core module exports."""

from recipebox.core.errors import (
    AuthError,
    ConfigError,
    ErrorCode,
    InternalError,
    RecipeBoxError,
    RenderError,
    StoreError,
)
from recipebox.core.locks import ReadWriteLock
from recipebox.core.logging import (
    clear_request_id,
    configure_logging,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "AuthError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "RecipeBoxError",
    "RenderError",
    "StoreError",
    # Locks
    "ReadWriteLock",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_request_id",
    "set_request_id",
]
