"""
Transport-neutral HTTP handling shared by every adapter

Provides:
- HttpRequest / HttpResponse value types
- Body and query-string parsing into an ExecutionRequest
- GraphQLHTTPHandler: normalize -> execute -> serialize, with CORS and
  error-to-status mapping
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PayloadValidationError

from ..config.options import AdapterOptions, BodyParserConfig, CorsPolicy
from ..engine.executor import ExecutionEngine, INTERNAL_ERROR_MESSAGE
from ..engine.types import ExecutionRequest
from ..errors import (
    ExecutionError,
    GraphQLBridgeError,
    InternalError,
    MalformedRequestError,
    MethodNotAllowedError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from ..health.responder import HealthCheckResponder

if TYPE_CHECKING:
    from ..lifecycle.controller import LifecycleController

logger = logging.getLogger("GraphQLHTTP")

JSON_CONTENT_TYPE = "application/json"
ALLOWED_METHODS = ("GET", "POST")


class GraphQLPayload(BaseModel):
    """Shape of a GraphQL-over-HTTP request"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None
    operation_name: Optional[str] = Field(default=None, alias="operationName")
    extensions: Optional[Dict[str, Any]] = None


@dataclass
class HttpRequest:
    """
    Host request reduced to what GraphQL-over-HTTP needs

    Attributes:
        method: HTTP method, upper case
        headers: Header values by lower-cased name
        query_params: URL query parameters
        read_body: Coroutine function returning the raw body
        native: The host framework's own request object
    """
    method: str
    headers: Mapping[str, str]
    query_params: Mapping[str, str]
    read_body: Callable[[], Awaitable[bytes]]
    native: Any = None

    def __post_init__(self):
        self.method = self.method.upper()
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def origin(self) -> Optional[str]:
        return self.headers.get("origin")


@dataclass
class HttpResponse:
    """Response in neutral form; adapters turn it into their native type"""
    status: int
    payload: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    content_type: str = JSON_CONTENT_TYPE

    def body_bytes(self) -> bytes:
        if self.payload is None:
            return b""
        return json.dumps(self.payload, default=str).encode("utf-8")

    def body_text(self) -> str:
        return self.body_bytes().decode("utf-8")


def _declared_length(headers: Mapping[str, str]) -> Optional[int]:
    value = headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise MalformedRequestError(f"Invalid Content-Length header: {value!r}")


def _decode_json(raw: str, what: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise MalformedRequestError(f"{what} is not valid JSON: {e}") from e


def _build_payload(data: Any) -> GraphQLPayload:
    if isinstance(data, list):
        raise MalformedRequestError("Batched requests are not supported")
    if not isinstance(data, dict):
        raise MalformedRequestError("Request body must be a JSON object")
    try:
        payload = GraphQLPayload.model_validate(data)
    except PayloadValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(p) for p in first.get("loc", ()))
        raise MalformedRequestError(f"Invalid request field '{location}': {first.get('msg')}") from e
    if not payload.query:
        raise MalformedRequestError("Must provide query string.")
    return payload


async def parse_http_request(
    http_request: HttpRequest,
    body_config: BodyParserConfig,
    metadata: Optional[Mapping[str, Any]] = None
) -> ExecutionRequest:
    """
    Turn an HTTP request into an ExecutionRequest

    Raises:
        MalformedRequestError: unparseable body or query string
        PayloadTooLargeError: body above body_config.max_body_bytes
        UnsupportedMediaTypeError: POST body with an unsupported content type
        MethodNotAllowedError: method other than GET or POST
    """
    method = http_request.method

    if method == "GET":
        params = http_request.query_params
        data: Dict[str, Any] = {
            "query": params.get("query"),
            "operationName": params.get("operationName") or None
        }
        if params.get("variables"):
            data["variables"] = _decode_json(params["variables"], "variables parameter")
        if params.get("extensions"):
            data["extensions"] = _decode_json(params["extensions"], "extensions parameter")
        payload = _build_payload(data)

    elif method == "POST":
        declared = _declared_length(http_request.headers)
        if declared is not None and declared > body_config.max_body_bytes:
            raise PayloadTooLargeError(
                f"Request body of {declared} bytes exceeds the limit of {body_config.max_body_bytes}"
            )
        if not body_config.accepts(http_request.headers.get("content-type")):
            raise UnsupportedMediaTypeError(
                f"Unsupported content type: {http_request.headers.get('content-type')!r}"
            )
        body = await http_request.read_body()
        if len(body) > body_config.max_body_bytes:
            raise PayloadTooLargeError(
                f"Request body of {len(body)} bytes exceeds the limit of {body_config.max_body_bytes}"
            )
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRequestError("Request body is not valid UTF-8") from e
        payload = _build_payload(_decode_json(text, "Request body"))

    else:
        raise MethodNotAllowedError(f"Method {method} is not allowed; use GET or POST")

    return ExecutionRequest(
        query=payload.query,
        variables=payload.variables or {},
        operation_name=payload.operation_name,
        headers=http_request.headers,
        method=method,
        metadata=metadata or {}
    )


def error_response(error: GraphQLBridgeError) -> HttpResponse:
    """Map a gqlbridge error onto a response"""
    if isinstance(error, ExecutionError):
        return HttpResponse(status=error.status_code, payload=error.result.to_dict())
    if isinstance(error, ValidationError):
        return HttpResponse(status=error.status_code, payload={"errors": [e.to_dict() for e in error.errors]})
    if isinstance(error, InternalError):
        return HttpResponse(status=error.status_code, payload={"errors": [{"message": INTERNAL_ERROR_MESSAGE}]})

    response = HttpResponse(status=error.status_code, payload={"errors": [error.to_dict()]})
    if isinstance(error, MethodNotAllowedError):
        response.headers["Allow"] = ", ".join(ALLOWED_METHODS)
    return response


class GraphQLHTTPHandler:
    """
    The request pipeline every adapter composes

    normalize -> engine -> serialize, with in-flight tracking through the
    lifecycle controller and CORS applied before the engine is invoked.
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        options: AdapterOptions,
        controller: "LifecycleController",
        responder: Optional[HealthCheckResponder] = None
    ):
        self.engine = engine
        self.options = options
        self.controller = controller
        self.responder = responder

    async def normalize(self, http_request: HttpRequest, cancel_event: Optional[asyncio.Event] = None) -> ExecutionRequest:
        metadata: Dict[str, Any] = {"native_request": http_request.native}
        if cancel_event is not None:
            metadata["cancel_event"] = cancel_event
        return await parse_http_request(http_request, self.options.body_parser, metadata)

    async def handle(self, http_request: HttpRequest) -> HttpResponse:
        """Run one GraphQL request through the pipeline"""
        cors = self.options.cors

        if http_request.method == "OPTIONS" and cors is not None:
            return self._preflight(http_request, cors)

        response = await self._execute(http_request)
        if cors is not None:
            response.headers.update(cors.response_headers(http_request.origin))
        return response

    @staticmethod
    def _preflight(http_request: HttpRequest, cors: CorsPolicy) -> HttpResponse:
        """Answer a CORS preflight the way Starlette's CORSMiddleware does"""
        failures = []
        if not cors.is_origin_allowed(http_request.origin):
            failures.append("origin")
        if not cors.is_method_allowed(http_request.headers.get("access-control-request-method")):
            failures.append("method")
        if failures:
            message = "Disallowed CORS " + ", ".join(failures)
            logger.debug(f"Rejected preflight from {http_request.origin!r}: {message}")
            return HttpResponse(status=400, payload={"errors": [{"message": message}]})

        headers = cors.preflight_headers(
            http_request.origin,
            http_request.headers.get("access-control-request-headers")
        )
        return HttpResponse(status=204, headers=headers)

    async def _execute(self, http_request: HttpRequest) -> HttpResponse:
        cancel_event = asyncio.Event()
        try:
            async with self.controller.track_request():
                request = await self.normalize(http_request, cancel_event)
                result = await self.engine.execute(request)
                return HttpResponse(status=result.status_code, payload=result.to_dict())
        except asyncio.CancelledError:
            cancel_event.set()
            logger.debug("Request cancelled by the transport")
            raise
        except GraphQLBridgeError as e:
            if e.status_code >= 500:
                logger.warning(f"GraphQL request failed with {e.status_code}: {e.message}")
            else:
                logger.debug(f"GraphQL request rejected with {e.status_code}: {e.message}")
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error while executing GraphQL request")
            return error_response(InternalError(INTERNAL_ERROR_MESSAGE))

    async def health(self) -> HttpResponse:
        """Answer the health-check path"""
        if self.responder is None:
            return HttpResponse(status=404, payload={"error": "Not Found"})
        status, payload = await self.responder.respond()
        return HttpResponse(status=status, payload=payload)
