"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (RECIPEBOX__SECTION__KEY)
3. Site YAML (<root>/recipebox.yaml)
4. Global YAML (~/.config/recipebox/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    RECIPEBOX__<SECTION>__<KEY>=<VALUE>

Examples:
    RECIPEBOX__LOGGING__LEVEL=DEBUG
    RECIPEBOX__SERVER__PORT=8080
    RECIPEBOX__PATHS__RECIPES_DIR=/srv/recipes
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from recipebox.config.constants import PORT_MAX, PORT_MIN

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        return str(Path(v).expanduser())


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        RECIPEBOX__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        RECIPEBOX__LOGGING__FILE: Log file written as JSON next to console output
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every page render.",
    )
    file: str | None = Field(
        default="logs/server.log",
        description="JSON log file used by 'recipebox serve'. Set to null to disable.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """HTTP server configuration.

    Env vars:
        RECIPEBOX__SERVER__HOST: Bind address (default: ::)
        RECIPEBOX__SERVER__PORT: Port number (default: 8000)
        RECIPEBOX__SERVER__BASE_URL: Prefix for links and redirects
        RECIPEBOX__SERVER__SECURE: Serve over TLS and mark cookies secure
    """

    host: str = Field(
        default="::",
        description="Bind address.",
    )
    port: int = Field(
        default=8000,
        description="Server port.",
    )
    base_url: str = Field(
        default="",
        description="URL prefix when served below a sub path, e.g. '/rezepte'.",
    )
    secure: bool = Field(
        default=True,
        description="Serve HTTPS with cert_file/key_file. Disable only behind a TLS proxy.",
    )
    cert_file: str = Field(default="localhost.crt", description="TLS certificate file.")
    key_file: str = Field(default="localhost.key", description="TLS key file.")
    cookie_name: str = Field(default="token", description="Cookie carrying the auth token.")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (PORT_MIN <= v <= PORT_MAX):
            raise ValueError(f"Port must be {PORT_MIN}-{PORT_MAX}, got {v}")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class PathsConfig(BaseModel):
    """Filesystem locations.

    Env vars:
        RECIPEBOX__PATHS__TEMPLATES_DIR: Page templates folder
        RECIPEBOX__PATHS__RECIPES_DIR: Folder holding one JSON file per recipe
        RECIPEBOX__PATHS__TOKENS_FILE: Identifier -> token JSON map
        RECIPEBOX__PATHS__TOKENS_KEY_FILE: Hex encoded HMAC key
    """

    templates_dir: str | None = Field(
        default=None,
        description="Templates folder. Default: templates bundled with the package.",
    )
    templates_pattern: str = Field(default="*.html", description="Glob for template files.")
    recipes_dir: str = Field(default="recipes", description="Recipe JSON folder.")
    tokens_file: str = Field(default="tokens.json", description="Tokens file.")
    tokens_key_file: str = Field(default="tokens.key", description="Tokens key file.")
    static_dir: str = Field(default="static", description="Static assets served at /static.")


class WatcherConfig(BaseModel):
    """File watcher configuration.

    Env vars:
        RECIPEBOX__WATCHER__DEBOUNCE_MS: Batch window for change events
        RECIPEBOX__WATCHER__STEP_MS: Polling step inside the batch window
    """

    debounce_ms: int = Field(
        default=500,
        description="Changes arriving within this window are delivered as one batch.",
    )
    step_ms: int = Field(default=50, description="Event polling step.")
    force_polling: bool = Field(
        default=False,
        description="Poll mtimes instead of using native notifications (network mounts).",
    )


class TimeoutsConfig(BaseModel):
    """Timeout configuration for server components."""

    server_stop_sec: float = Field(
        default=5.0,
        description="Shutdown timeout for watcher tasks.",
    )


class RecipeBoxConfig(BaseModel):
    """Root configuration for RecipeBox.

    All settings can be configured via:
    1. Environment variables: RECIPEBOX__SECTION__KEY
    2. YAML config files (site or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
