"""
Middleware adapter capability set

Every host-framework adapter implements this narrow interface directly;
shared behaviour lives in ``GraphQLHTTPHandler`` and is composed, not
inherited.
"""

from typing import Any, Protocol, TYPE_CHECKING, runtime_checkable

from ..config.options import AdapterOptions
from ..engine.types import ExecutionRequest
from ..health.responder import HealthCheckResponder
from .http import HttpResponse

if TYPE_CHECKING:
    from ..lifecycle.controller import LifecycleController


@runtime_checkable
class MiddlewareAdapter(Protocol):
    """
    Adapter between one host transport and the execution engine

    Attributes:
        name: Short adapter name used in logs
        default_path: Mount path used when AdapterOptions.path is None
    """

    name: str
    default_path: str

    def configure(self, options: AdapterOptions, controller: "LifecycleController") -> None:
        """Receive the options copied at attach time"""
        ...

    async def normalize_request(self, native_request: Any) -> ExecutionRequest:
        """Parse a host request into an ExecutionRequest"""
        ...

    def serialize_response(self, response: HttpResponse) -> Any:
        """Convert a neutral response into the host's response type"""
        ...

    def mount(self, path: str) -> None:
        """Expose the GraphQL endpoint at path"""
        ...

    def register_health_check(self, responder: HealthCheckResponder, path: str) -> None:
        """Expose the health-check path unless the responder is disabled"""
        ...
