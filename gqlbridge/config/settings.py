"""
Server settings and logging setup for the standalone listener
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..errors import ConfigurationError

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

ENV_PREFIX = "GQLBRIDGE_"


@dataclass
class ServerSettings:
    """
    Standalone listener settings

    Attributes:
        host: Interface to bind
        port: Port to listen on
        path: GraphQL mount path
        log_level: Logging level name
    """
    host: str = "0.0.0.0"
    port: int = 4000
    path: str = "/"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        """Build settings from GQLBRIDGE_* environment variables"""
        env = os.environ if environ is None else environ
        defaults = cls()

        port_value = env.get(f"{ENV_PREFIX}PORT")
        if port_value is None:
            port = defaults.port
        else:
            try:
                port = int(port_value)
            except ValueError:
                raise ConfigurationError(f"{ENV_PREFIX}PORT is not an integer: {port_value!r}")

        return cls(
            host=env.get(f"{ENV_PREFIX}HOST", defaults.host),
            port=port,
            path=env.get(f"{ENV_PREFIX}PATH", defaults.path),
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).upper()
        )

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "path": self.path,
            "log_level": self.log_level
        }


def configure_logging(level: str = "INFO") -> None:
    """Apply the project log format to the root logger"""
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        raise ConfigurationError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
