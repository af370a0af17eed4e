"""
Execution request and result types

Provides:
- ExecutionRequest (immutable)
- ErrorEntry and ExecutionResult (immutable)
- ResolverContext passed to every resolver
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from graphql import GraphQLError

from ..errors import ExecutionError


def _frozen_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class ExecutionRequest:
    """
    A normalized GraphQL request

    Attributes:
        query: The operation text
        variables: Variable values by name
        operation_name: Operation to run when the document holds several
        headers: Transport headers, lower-cased names
        method: Transport method (GET or POST)
        metadata: Transport extras such as "cancel_event" or "native_request"
    """
    query: str
    variables: Mapping[str, Any] = field(default_factory=dict)
    operation_name: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    method: str = "POST"
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "variables", _frozen_mapping(self.variables))
        object.__setattr__(
            self,
            "headers",
            MappingProxyType({k.lower(): v for k, v in (self.headers or {}).items()})
        )
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))
        object.__setattr__(self, "method", self.method.upper())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "variables": dict(self.variables),
            "operation_name": self.operation_name,
            "method": self.method
        }


@dataclass(frozen=True)
class ErrorEntry:
    """
    A single GraphQL error

    Attributes:
        message: Error message
        path: Path to the field that failed
        locations: Line/column pairs in the operation text
        extensions: Additional error data
    """
    message: str
    path: Tuple[Any, ...] = ()
    locations: Tuple[Tuple[int, int], ...] = ()
    extensions: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "path", tuple(self.path or ()))
        object.__setattr__(self, "locations", tuple(tuple(loc) for loc in self.locations or ()))
        object.__setattr__(self, "extensions", _frozen_mapping(self.extensions))

    @classmethod
    def from_graphql_error(cls, error: GraphQLError, message: Optional[str] = None) -> "ErrorEntry":
        locations = tuple((loc.line, loc.column) for loc in error.locations or ())
        return cls(
            message=message or error.message,
            path=tuple(error.path or ()),
            locations=locations,
            extensions=error.extensions or {}
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"message": self.message}
        if self.locations:
            result["locations"] = [{"line": line, "column": column} for line, column in self.locations]
        if self.path:
            result["path"] = list(self.path)
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        return result


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of executing a request

    Attributes:
        data: Response data, None when execution could not produce any
        errors: Errors raised during execution
        status_code: HTTP status hint
        extensions: Optional extensions
    """
    data: Optional[Dict[str, Any]] = None
    errors: Tuple[ErrorEntry, ...] = ()
    status_code: int = 200
    extensions: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "errors", tuple(self.errors or ()))
        object.__setattr__(self, "extensions", _frozen_mapping(self.extensions))

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def is_partial(self) -> bool:
        """Both data and errors are present"""
        return self.data is not None and self.has_errors

    def raise_for_errors(self) -> "ExecutionResult":
        """Raise ExecutionError when resolvers failed, else return self"""
        if self.has_errors:
            raise ExecutionError(self)
        return self

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"data": self.data}
        if self.errors:
            result["errors"] = [e.to_dict() for e in self.errors]
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class ResolverContext:
    """
    Context passed to resolvers as ``info.context``

    Attributes:
        request: The request being executed
        request_time: When execution began
        state: Per-request scratch space for resolvers
    """

    def __init__(self, request: ExecutionRequest):
        self.request = request
        self.request_time = datetime.now()
        self.state: Dict[str, Any] = {}

    @property
    def headers(self) -> Mapping[str, str]:
        return self.request.headers

    @property
    def native_request(self) -> Any:
        """Host framework request object, when the adapter supplied one"""
        return self.request.metadata.get("native_request")

    def is_cancelled(self) -> bool:
        """True once the transport signalled the request was abandoned"""
        event = self.request.metadata.get("cancel_event")
        return bool(event is not None and event.is_set())
