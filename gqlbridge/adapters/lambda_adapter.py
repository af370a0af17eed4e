"""
AWS Lambda adapter

Handles API Gateway proxy events (REST API payload 1.0 and HTTP API
payload 2.0). CORS is not supported here: configure it on API Gateway.
"""

import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from ..config.options import AdapterOptions
from ..engine.executor import ExecutionEngine
from ..engine.types import ExecutionRequest
from ..errors import ConfigurationError, MalformedRequestError, NotStartedError
from ..health.responder import HealthCheckResponder
from .http import GraphQLHTTPHandler, HttpRequest, HttpResponse, error_response

if TYPE_CHECKING:
    from ..lifecycle.controller import LifecycleController

logger = logging.getLogger("LambdaHandler")


def _event_method(event: Mapping[str, Any]) -> Optional[str]:
    if event.get("version") == "2.0":
        return event.get("requestContext", {}).get("http", {}).get("method")
    return event.get("httpMethod")


def _event_path(event: Mapping[str, Any]) -> str:
    if event.get("version") == "2.0":
        return event.get("rawPath") or "/"
    return event.get("path") or "/"


class LambdaHandler:
    """
    Function-as-a-service entry point

    Usage:
        handler = LambdaHandler(engine)
        controller.start()
        controller.attach(handler)

        def lambda_handler(event, context):
            return handler(event, context)
    """

    name = "lambda"
    default_path = "/graphql"

    def __init__(self, engine: ExecutionEngine):
        self.engine = engine
        self.path: Optional[str] = None
        self.health_check_path: Optional[str] = None
        self._handler: Optional[GraphQLHTTPHandler] = None

    @property
    def handler(self) -> GraphQLHTTPHandler:
        if self._handler is None:
            raise NotStartedError(f"{self.name} handler has not been attached")
        return self._handler

    def configure(self, options: AdapterOptions, controller: "LifecycleController") -> None:
        if options.cors is not None:
            raise ConfigurationError("CORS is not supported by the Lambda handler; configure it on API Gateway")
        self._handler = GraphQLHTTPHandler(self.engine, options, controller)

    def mount(self, path: str) -> None:
        self.path = path

    def register_health_check(self, responder: HealthCheckResponder, path: str) -> None:
        self.handler.responder = responder
        self.health_check_path = path

    def _to_http_request(self, event: Mapping[str, Any]) -> HttpRequest:
        method = _event_method(event)
        if not method:
            raise MalformedRequestError("Event is not an API Gateway proxy event")

        async def read_body() -> bytes:
            body = event.get("body") or ""
            if event.get("isBase64Encoded"):
                try:
                    return base64.b64decode(body, validate=True)
                except (binascii.Error, ValueError) as e:
                    raise MalformedRequestError("Request body is not valid base64") from e
            return body.encode("utf-8")

        return HttpRequest(
            method=method,
            headers=dict(event.get("headers") or {}),
            query_params=dict(event.get("queryStringParameters") or {}),
            read_body=read_body,
            native=event
        )

    def _matches(self, path: str) -> bool:
        if self.path in (None, "/"):
            return True
        return path.rstrip("/") == self.path

    async def normalize_request(self, native_request: Mapping[str, Any]) -> ExecutionRequest:
        return await self.handler.normalize(self._to_http_request(native_request))

    def serialize_response(self, response: HttpResponse) -> Dict[str, Any]:
        headers = dict(response.headers)
        if response.payload is not None:
            headers["Content-Type"] = response.content_type
        return {
            "statusCode": response.status,
            "headers": headers,
            "body": response.body_text(),
            "isBase64Encoded": False
        }

    async def handle(self, event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
        """Handle one proxy event"""
        handler = self.handler
        path = _event_path(event)

        try:
            http_request = self._to_http_request(event)
        except MalformedRequestError as e:
            return self.serialize_response(error_response(e))

        if path == self.health_check_path:
            return self.serialize_response(await handler.health())
        if not self._matches(path):
            return self.serialize_response(
                HttpResponse(status=404, payload={"errors": [{"message": f"No GraphQL endpoint at {path}"}]})
            )
        return self.serialize_response(await handler.handle(http_request))

    def __call__(self, event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
        """Synchronous entry point for the Lambda Python runtime"""
        return asyncio.run(self.handle(event, context))
