"""
Configuration

Provides:
- Adapter options (mount path, CORS, health check, body limits)
- Engine options
- Standalone server settings and logging setup
"""

from .options import (
    AdapterOptions,
    BodyParserConfig,
    CorsPolicy,
    EngineConfig,
    DEFAULT_HEALTH_CHECK_PATH
)
from .settings import (
    ServerSettings,
    configure_logging,
    LOG_FORMAT
)

__all__ = [
    # Options
    "AdapterOptions",
    "BodyParserConfig",
    "CorsPolicy",
    "EngineConfig",
    "DEFAULT_HEALTH_CHECK_PATH",
    # Settings
    "ServerSettings",
    "configure_logging",
    "LOG_FORMAT"
]
