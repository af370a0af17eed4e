"""
aiohttp adapter

Adds GraphQL and health-check routes to an existing aiohttp.web.Application.
Routes must be added before the application starts, so attach before
running the app.
"""

import logging
from typing import Optional, TYPE_CHECKING

from aiohttp import web

from ..config.options import AdapterOptions
from ..engine.executor import ExecutionEngine
from ..engine.types import ExecutionRequest
from ..errors import ConfigurationError, NotStartedError
from ..health.responder import HealthCheckResponder
from .http import GraphQLHTTPHandler, HttpRequest, HttpResponse

if TYPE_CHECKING:
    from ..lifecycle.controller import LifecycleController

logger = logging.getLogger("AioHttpAdapter")


class AioHttpAdapter:
    """GraphQL routes on an aiohttp application"""

    name = "aiohttp"
    default_path = "/graphql"

    def __init__(self, engine: ExecutionEngine, app: web.Application):
        self.engine = engine
        self.app = app
        self.path: Optional[str] = None
        self._handler: Optional[GraphQLHTTPHandler] = None

    @property
    def handler(self) -> GraphQLHTTPHandler:
        if self._handler is None:
            raise NotStartedError(f"{self.name} adapter has not been attached")
        return self._handler

    def configure(self, options: AdapterOptions, controller: "LifecycleController") -> None:
        if self.app.frozen:
            raise ConfigurationError("aiohttp application is already running; attach before startup")
        self._handler = GraphQLHTTPHandler(self.engine, options, controller)

    def _to_http_request(self, request: web.Request) -> HttpRequest:
        return HttpRequest(
            method=request.method,
            headers=dict(request.headers),
            query_params=dict(request.query),
            read_body=request.read,
            native=request
        )

    async def normalize_request(self, native_request: web.Request) -> ExecutionRequest:
        return await self.handler.normalize(self._to_http_request(native_request))

    def serialize_response(self, response: HttpResponse) -> web.Response:
        if response.payload is None:
            return web.Response(status=response.status, headers=response.headers)
        return web.Response(
            body=response.body_bytes(),
            status=response.status,
            headers=response.headers,
            content_type=response.content_type
        )

    async def _graphql_route(self, request: web.Request) -> web.Response:
        response = await self.handler.handle(self._to_http_request(request))
        return self.serialize_response(response)

    async def _health_route(self, request: web.Request) -> web.Response:
        return self.serialize_response(await self.handler.health())

    def mount(self, path: str) -> None:
        router = self.app.router
        router.add_route("GET", path, self._graphql_route)
        router.add_route("POST", path, self._graphql_route)
        if self.handler.options.cors is not None:
            router.add_route("OPTIONS", path, self._graphql_route)
        self.path = path
        logger.debug(f"Mounted GraphQL endpoint at {path}")

    def register_health_check(self, responder: HealthCheckResponder, path: str) -> None:
        self.handler.responder = responder
        if responder.disabled:
            logger.debug("Health check disabled")
            return
        self.app.router.add_get(path, self._health_route)
