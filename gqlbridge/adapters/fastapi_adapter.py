"""
FastAPI adapter

Attaches the GraphQL endpoint to an existing FastAPI application or
APIRouter. The host owns the app and its server; this adapter only adds
routes. A CORS policy wraps the GraphQL route alone in Starlette's
CORSMiddleware, leaving the rest of the host app untouched.
"""

import logging
from typing import Optional, TYPE_CHECKING, Union

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.routing import request_response

from ..config.options import AdapterOptions, CorsPolicy
from ..engine.executor import ExecutionEngine
from ..engine.types import ExecutionRequest
from ..errors import NotStartedError
from ..health.responder import HealthCheckResponder
from .http import GraphQLHTTPHandler, HttpRequest, HttpResponse

if TYPE_CHECKING:
    from ..lifecycle.controller import LifecycleController

logger = logging.getLogger("FastAPIAdapter")


class FastAPIAdapter:
    """
    GraphQL routes on a FastAPI app

    Usage:
        app = FastAPI()
        controller.start()
        controller.attach(FastAPIAdapter(engine, app), AdapterOptions(path="/graphql"))
    """

    name = "fastapi"
    default_path = "/graphql"

    def __init__(self, engine: ExecutionEngine, app: Union[FastAPI, APIRouter]):
        self.engine = engine
        self.app = app
        self.path: Optional[str] = None
        self._cors: Optional[CorsPolicy] = None
        self._handler: Optional[GraphQLHTTPHandler] = None

    @property
    def handler(self) -> GraphQLHTTPHandler:
        if self._handler is None:
            raise NotStartedError(f"{self.name} adapter has not been attached")
        return self._handler

    def configure(self, options: AdapterOptions, controller: "LifecycleController") -> None:
        # CORSMiddleware owns CORS for this route, so the handler sends no CORS headers
        self._cors = options.cors
        route_options = options.copy()
        route_options.cors = None
        self._handler = GraphQLHTTPHandler(self.engine, route_options, controller)

    def _to_http_request(self, request: Request) -> HttpRequest:
        return HttpRequest(
            method=request.method,
            headers=dict(request.headers),
            query_params=dict(request.query_params),
            read_body=request.body,
            native=request
        )

    async def normalize_request(self, native_request: Request) -> ExecutionRequest:
        return await self.handler.normalize(self._to_http_request(native_request))

    def serialize_response(self, response: HttpResponse) -> Response:
        if response.payload is None:
            return Response(status_code=response.status, headers=response.headers)
        return Response(
            content=response.body_bytes(),
            status_code=response.status,
            headers=response.headers,
            media_type=response.content_type
        )

    async def _graphql_endpoint(self, request: Request) -> Response:
        response = await self.handler.handle(self._to_http_request(request))
        return self.serialize_response(response)

    async def _health_endpoint(self) -> Response:
        return self.serialize_response(await self.handler.health())

    def mount(self, path: str) -> None:
        if self._handler is None:
            raise NotStartedError(f"{self.name} adapter must be configured before mount()")
        if self._cors is None:
            self.app.add_api_route(
                path,
                self._graphql_endpoint,
                methods=["GET", "POST"],
                include_in_schema=False
            )
        else:
            endpoint = CORSMiddleware(request_response(self._graphql_endpoint), **self._cors.middleware_options())
            self.app.add_route(path, endpoint, methods=["GET", "POST", "OPTIONS"], include_in_schema=False)
        self.path = path
        logger.debug(f"Mounted GraphQL endpoint at {path} (cors: {self._cors is not None})")

    def register_health_check(self, responder: HealthCheckResponder, path: str) -> None:
        self.handler.responder = responder
        if responder.disabled:
            logger.debug("Health check disabled")
            return
        self.app.add_api_route(path, self._health_endpoint, methods=["GET"], include_in_schema=False)
