"""Config module exports."""

from dtdash.config.loader import load_config
from dtdash.config.models import (
    DashboardConfig,
    EndpointsConfig,
    HttpConfig,
    LoggingConfig,
    LogOutputConfig,
)

__all__ = [
    "load_config",
    "DashboardConfig",
    "EndpointsConfig",
    "HttpConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
