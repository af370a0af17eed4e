"""
Health Check Module

Usage:
    from gqlbridge.health import HealthCheckResponder, HealthStatus

    responder = HealthCheckResponder(callback=lambda: {"db": "up"})
    status_code, body = await responder.respond()
"""

from .responder import (
    HealthCheckResponder,
    HealthStatus,
    HEALTHY_STATUS,
    UNHEALTHY_STATUS,
    DISABLED_STATUS,
)

__all__ = [
    "HealthCheckResponder",
    "HealthStatus",
    "HEALTHY_STATUS",
    "UNHEALTHY_STATUS",
    "DISABLED_STATUS",
]
