"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (DTDASH__SECTION__KEY)
3. Explicit YAML file (``dtdash --config FILE``)
4. Global YAML (~/.config/dtdash/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    DTDASH__<SECTION>__<KEY>=<VALUE>

Examples:
    DTDASH__LOGGING__LEVEL=DEBUG
    DTDASH__HTTP__HOST_CONCURRENCY=4
    DTDASH__ENDPOINTS__REGISTRY_URL=https://registry.npmmirror.com
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from dtdash import __version__

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        DTDASH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every HTTP retry and cache decision.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class HttpConfig(BaseModel):
    """HTTP politeness settings shared by every upstream provider.

    Env vars:
        DTDASH__HTTP__TIMEOUT_SEC: Per-request timeout
        DTDASH__HTTP__MAX_RETRIES: Retries after the first attempt
        DTDASH__HTTP__HOST_CONCURRENCY: In-flight requests allowed per hostname
        DTDASH__HTTP__USER_AGENT: Client identifier sent with every request
    """

    timeout_sec: float = Field(
        default=30.0,
        description="Per-request timeout. Expiry counts as a retryable fetch failure.",
    )
    max_retries: int = Field(
        default=3,
        description="Retries after the first attempt for transient failures (timeouts, 429, 5xx).",
    )
    retry_base_delay_sec: float = Field(
        default=1.0,
        description="Base delay for exponential backoff. Random jitter up to this value is added.",
    )
    retry_max_delay_sec: float = Field(
        default=30.0,
        description="Upper bound on a single backoff delay (before jitter).",
    )
    host_concurrency: int = Field(
        default=8,
        description="Concurrent requests per hostname. "
        "RISK: Raising this against public registries invites rate limiting.",
    )
    user_agent: str = Field(
        default=f"dtdash/{__version__} (DefinitelyTyped dashboard)",
        description="User-Agent header identifying this client to upstream providers.",
    )

    @field_validator("host_concurrency")
    @classmethod
    def validate_host_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"host_concurrency must be >= 1, got {v}")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must be >= 0, got {v}")
        return v


class EndpointsConfig(BaseModel):
    """Upstream provider base URLs.

    Env vars:
        DTDASH__ENDPOINTS__REGISTRY_URL: npm-compatible registry
        DTDASH__ENDPOINTS__JSDELIVR_URL: Primary file listing provider
        DTDASH__ENDPOINTS__UNPKG_URL: Fallback file listing provider
    """

    registry_url: str = Field(
        default="https://registry.npmjs.org",
        description="npm-compatible registry serving full packuments at /<name>.",
    )
    jsdelivr_url: str = Field(
        default="https://data.jsdelivr.com/v1/packages/npm",
        description="jsDelivr data API serving file trees at /<name>@<version>.",
    )
    unpkg_url: str = Field(
        default="https://unpkg.com",
        description="unpkg serving file trees at /<name>@<version>/?meta.",
    )

    @field_validator("registry_url", "jsdelivr_url", "unpkg_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Endpoint must be an http(s) URL: {v}")
        return v.rstrip("/")


class DashboardConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)
