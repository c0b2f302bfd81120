"""RecipeBox error types with typed error codes.

Error code ranges:
- 1xxx: Auth
- 2xxx: Config
- 3xxx: Store
- 4xxx: Render
- 9xxx: Internal

Conflicts ("already exists") and misses ("not found") are ordinary outcomes
and are returned as values, never raised.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Auth (1xxx)
    AUTH_TOKEN_MISMATCH = 1001
    AUTH_TOKEN_INVALID = 1002
    AUTH_KEY_INVALID = 1003
    AUTH_TOKENS_FILE_INVALID = 1004

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Store (3xxx)
    STORE_WRITE_FAILED = 3001
    STORE_DELETE_FAILED = 3002
    STORE_LOAD_FAILED = 3003

    # Render (4xxx)
    RENDER_TEMPLATE_MISSING = 4001
    RENDER_TEMPLATE_FAILED = 4002
    RENDER_TEMPLATES_LOAD_FAILED = 4003

    # Internal (9xxx)
    INVARIANT_VIOLATION = 9001


@dataclass(frozen=True, slots=True)
class RecipeBoxError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'STORE_WRITE_FAILED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class AuthError(RecipeBoxError):
    """Token and key errors."""

    @classmethod
    def token_mismatch(cls, identifier: str) -> "AuthError":
        return cls(
            code=ErrorCode.AUTH_TOKEN_MISMATCH,
            message=f"Token was not generated for '{identifier}'",
            details={"identifier": identifier},
        )

    @classmethod
    def token_invalid(cls, identifier: str, reason: str) -> "AuthError":
        return cls(
            code=ErrorCode.AUTH_TOKEN_INVALID,
            message=f"Invalid token for '{identifier}': {reason}",
            details={"identifier": identifier, "reason": reason},
        )

    @classmethod
    def key_invalid(cls, path: str, reason: str) -> "AuthError":
        return cls(
            code=ErrorCode.AUTH_KEY_INVALID,
            message=f"Invalid tokens key at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def tokens_file_invalid(cls, path: str, reason: str) -> "AuthError":
        return cls(
            code=ErrorCode.AUTH_TOKENS_FILE_INVALID,
            message=f"Invalid tokens file at {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ConfigError(RecipeBoxError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class StoreError(RecipeBoxError):
    """Persistence errors of the recipe store.

    Raised after a failed file write or delete. The in-memory store is only
    changed once the file operation succeeded.
    """

    @classmethod
    def write_failed(cls, rid: str, path: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_WRITE_FAILED,
            message=f"Failed to write recipe '{rid}' to {path}: {reason}",
            retryable=True,
            details={"id": rid, "path": path, "reason": reason},
        )

    @classmethod
    def delete_failed(cls, rid: str, path: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_DELETE_FAILED,
            message=f"Failed to delete recipe '{rid}' at {path}: {reason}",
            retryable=True,
            details={"id": rid, "path": path, "reason": reason},
        )

    @classmethod
    def load_failed(cls, path: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_LOAD_FAILED,
            message=f"Failed to load recipe from {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class RenderError(RecipeBoxError):
    """Template loading and rendering errors."""

    @classmethod
    def missing_template(cls, name: str) -> "RenderError":
        return cls(
            code=ErrorCode.RENDER_TEMPLATE_MISSING,
            message=f"Template missing: {name}",
            details={"template": name},
        )

    @classmethod
    def template_failed(cls, name: str, reason: str) -> "RenderError":
        return cls(
            code=ErrorCode.RENDER_TEMPLATE_FAILED,
            message=f"Failed to render {name}: {reason}",
            details={"template": name, "reason": reason},
        )

    @classmethod
    def load_failed(cls, folder: str, reason: str) -> "RenderError":
        return cls(
            code=ErrorCode.RENDER_TEMPLATES_LOAD_FAILED,
            message=f"Failed to load templates from {folder}: {reason}",
            details={"folder": folder, "reason": reason},
        )


class InternalError(RecipeBoxError):
    """Internal/unexpected errors."""

    @classmethod
    def invariant_violation(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INVARIANT_VIOLATION,
            message=f"Invariant violated: {reason}",
            details=details,
        )
