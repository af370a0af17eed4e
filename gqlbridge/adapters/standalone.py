"""
Standalone GraphQL server

A batteries-included listener: owns its FastAPI app, applies CORS through
Starlette's CORSMiddleware and serves with uvicorn. Mounts at "/" unless
told otherwise.
"""

import asyncio
import logging
from typing import Any, Optional, TYPE_CHECKING

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config.options import AdapterOptions
from ..config.settings import ServerSettings
from ..engine.executor import ExecutionEngine
from ..engine.types import ExecutionRequest
from ..errors import LifecycleError
from ..health.responder import HealthCheckResponder
from .fastapi_adapter import FastAPIAdapter
from .http import HttpResponse

if TYPE_CHECKING:
    from ..lifecycle.controller import LifecycleController

logger = logging.getLogger("StandaloneServer")

STARTUP_POLL_SECONDS = 0.05


class StandaloneServer:
    """
    Self-contained GraphQL server

    Usage:
        server = StandaloneServer(engine, ServerSettings(port=4000))
        controller.start()
        controller.attach(server, AdapterOptions(cors=CorsPolicy()))
        url = await server.listen()
        ...
        await controller.drain()
    """

    name = "standalone"
    default_path = "/"

    def __init__(self, engine: ExecutionEngine, settings: Optional[ServerSettings] = None):
        self.engine = engine
        self.settings = settings or ServerSettings()
        self.app = FastAPI(title="gqlbridge", docs_url=None, redoc_url=None, openapi_url=None)
        self._routes = FastAPIAdapter(engine, self.app)
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None

    def configure(self, options: AdapterOptions, controller: "LifecycleController") -> None:
        cors = options.cors
        if cors is not None:
            self.app.add_middleware(CORSMiddleware, **cors.middleware_options())
        # CORSMiddleware answers preflights, so the route handler sends no CORS headers
        route_options = options.copy()
        route_options.cors = None
        self._routes.configure(route_options, controller)

    async def normalize_request(self, native_request: Any) -> ExecutionRequest:
        return await self._routes.normalize_request(native_request)

    def serialize_response(self, response: HttpResponse) -> Any:
        return self._routes.serialize_response(response)

    def mount(self, path: str) -> None:
        self._routes.mount(path)

    def register_health_check(self, responder: HealthCheckResponder, path: str) -> None:
        self._routes.register_health_check(responder, path)

    @property
    def path(self) -> Optional[str]:
        return self._routes.path

    @property
    def url(self) -> str:
        host = "localhost" if self.settings.host in ("0.0.0.0", "::") else self.settings.host
        return f"http://{host}:{self.settings.port}{self.path or self.default_path}"

    @property
    def is_serving(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    def _build_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=self.settings.log_level.lower(),
        )
        return uvicorn.Server(config)

    async def listen(self) -> str:
        """Start listening in the background; returns the endpoint URL"""
        if self.path is None:
            raise LifecycleError("Attach the server to a started controller before listen()")
        if self.is_serving:
            return self.url

        self._server = self._build_server()
        self._serve_task = asyncio.create_task(self._server.serve())

        while not self._server.started:
            if self._serve_task.done():
                # serve() returned or raised before binding
                self._serve_task.result()
                raise LifecycleError(f"Server failed to start on {self.settings.host}:{self.settings.port}")
            await asyncio.sleep(STARTUP_POLL_SECONDS)

        logger.info(f"GraphQL server ready at {self.url}")
        return self.url

    async def serve_forever(self) -> None:
        """Listen and block until the server exits"""
        await self.listen()
        await self.wait_closed()

    async def wait_closed(self) -> None:
        """Wait for the serve task; a task cancelled elsewhere counts as closed"""
        task = self._serve_task
        if task is None:
            return
        await asyncio.wait({task})
        if task.cancelled():
            logger.warning("Server task was cancelled before shutdown")
            return
        task.result()

    async def shutdown(self) -> None:
        """Drain hook: ask uvicorn to exit and wait for it"""
        if self._server is None:
            return
        self._server.should_exit = True
        await self.wait_closed()
        logger.info("GraphQL server stopped")
