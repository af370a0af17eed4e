"""
Error taxonomy for gqlbridge

Provides:
- Request errors (validation, malformed transport bodies)
- Execution errors carrying partial results
- Lifecycle ordering errors
- Internal faults

Every request-level error carries the HTTP status code adapters answer with.
"""

from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .engine.types import ErrorEntry, ExecutionResult


class GraphQLBridgeError(Exception):
    """Base class for all gqlbridge errors"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(GraphQLBridgeError):
    """
    The operation does not conform to the schema.

    Attributes:
        errors: Error entries describing each problem
    """

    status_code = 400

    def __init__(self, message: str, errors: Optional[Sequence["ErrorEntry"]] = None):
        super().__init__(message)
        self.errors: List["ErrorEntry"] = list(errors or [])

    def to_dict(self) -> Dict[str, Any]:
        if not self.errors:
            return {"message": self.message}
        return {"errors": [e.to_dict() for e in self.errors]}


class ExecutionError(GraphQLBridgeError):
    """
    A resolver failed mid-execution.

    Carries the partial result; its data and errors are still returned to the
    client with status 200.
    """

    status_code = 200

    def __init__(self, result: "ExecutionResult"):
        messages = "; ".join(e.message for e in result.errors)
        super().__init__(messages or "Execution failed")
        self.result = result


class MalformedRequestError(GraphQLBridgeError):
    """The transport body could not be parsed into a GraphQL request"""

    status_code = 400


class PayloadTooLargeError(MalformedRequestError):
    """Request body exceeds the configured limit"""

    status_code = 413


class UnsupportedMediaTypeError(MalformedRequestError):
    """Request content type is not understood"""

    status_code = 415


class MethodNotAllowedError(MalformedRequestError):
    """HTTP method not allowed for this operation"""

    status_code = 405


class ServiceUnavailableError(GraphQLBridgeError):
    """Request arrived while the server is draining"""

    status_code = 503


class InternalError(GraphQLBridgeError):
    """Uncaught fault; no partial data is returned"""

    status_code = 500


class ConfigurationError(GraphQLBridgeError):
    """Adapter or engine options are invalid"""


class LifecycleError(GraphQLBridgeError):
    """Lifecycle ordering violation"""


class AlreadyStartedError(LifecycleError):
    """start() was called more than once"""


class NotStartedError(LifecycleError):
    """An operation requiring a started controller was called before start()"""
