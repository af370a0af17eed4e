"""
Health-Check Responder

Answers the health-check path of an adapter independently of GraphQL
execution. The default check always reports healthy; a caller-supplied
callback may override it. While the owning controller drains, the check
reports unhealthy so load balancers stop routing new traffic.
"""

import logging
import time
from dataclasses import dataclass, field
from inspect import isawaitable
from typing import Any, Dict, Mapping, Optional, Tuple, TYPE_CHECKING

from ..config.options import HealthCallback

if TYPE_CHECKING:
    from ..lifecycle.controller import LifecycleController

logger = logging.getLogger("HealthCheck")

HEALTHY_STATUS = 200
UNHEALTHY_STATUS = 503
DISABLED_STATUS = 404


@dataclass
class HealthStatus:
    """Outcome of a health check"""
    healthy: bool
    payload: Dict[str, Any] = field(default_factory=dict)
    checked_at: float = field(default_factory=time.time)

    @classmethod
    def ok(cls, payload: Optional[Mapping[str, Any]] = None) -> "HealthStatus":
        return cls(healthy=True, payload=dict(payload) if payload else {"status": "ok"})

    @classmethod
    def fail(cls, payload: Optional[Mapping[str, Any]] = None) -> "HealthStatus":
        return cls(healthy=False, payload=dict(payload) if payload else {"status": "fail"})

    @property
    def status_code(self) -> int:
        return HEALTHY_STATUS if self.healthy else UNHEALTHY_STATUS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthy": self.healthy,
            "payload": self.payload,
            "checked_at": self.checked_at
        }


def _coerce(value: Any) -> HealthStatus:
    """Accept the shapes a health callback may return"""
    if isinstance(value, HealthStatus):
        return value
    if value is None or value is True:
        return HealthStatus.ok()
    if value is False:
        return HealthStatus.fail()
    if isinstance(value, Mapping):
        return HealthStatus.ok(value)
    raise TypeError(f"Health callback returned unsupported value: {value!r}")


class HealthCheckResponder:
    """
    Health check for one attached adapter

    Attributes:
        callback: Optional override returning HealthStatus, bool, mapping or None
        disabled: When true the health path answers 404
    """

    def __init__(
        self,
        callback: Optional[HealthCallback] = None,
        disabled: bool = False,
        controller: Optional["LifecycleController"] = None
    ):
        self.callback = callback
        self.disabled = disabled
        self._controller = controller

    async def check(self) -> HealthStatus:
        """Run the health check"""
        if self._controller is not None and not self._controller.accepting_requests:
            return HealthStatus.fail({"status": self._controller.state.value})

        if self.callback is None:
            return HealthStatus.ok()

        try:
            value = self.callback()
            if isawaitable(value):
                value = await value
            return _coerce(value)
        except Exception as e:
            logger.warning(f"Health check callback failed: {e}")
            return HealthStatus.fail()

    async def respond(self) -> Tuple[int, Dict[str, Any]]:
        """Status code and JSON body for the health path"""
        if self.disabled:
            return DISABLED_STATUS, {"error": "Not Found"}
        status = await self.check()
        return status.status_code, status.payload
