"""Tests for the standalone server"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from ..adapters.standalone import StandaloneServer
from ..config.options import AdapterOptions, CorsPolicy
from ..config.settings import ServerSettings
from ..errors import LifecycleError
from ..lifecycle.states import LifecycleState


class TestStandaloneServer:
    """Tests for StandaloneServer"""

    def test_mounts_at_root(self, engine, controller):
        server = StandaloneServer(engine)
        controller.attach(server)
        client = TestClient(server.app)

        response = client.post("/", json={"query": "{ __typename }"})
        assert response.status_code == 200
        assert response.json() == {"data": {"__typename": "Query"}}
        assert server.path == "/"

    def test_health(self, engine, controller):
        server = StandaloneServer(engine)
        controller.attach(server)
        assert TestClient(server.app).get("/health").json() == {"status": "ok"}

    def test_url(self, engine, controller):
        server = StandaloneServer(engine, ServerSettings(host="0.0.0.0", port=5050))
        controller.attach(server, AdapterOptions(path="/graphql"))
        assert server.url == "http://localhost:5050/graphql"

    def test_cors_middleware(self, engine, controller):
        server = StandaloneServer(engine)
        controller.attach(server, AdapterOptions(cors=CorsPolicy()))
        client = TestClient(server.app)

        preflight = client.options("/", headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST"
        })
        assert preflight.status_code == 200
        assert preflight.headers["access-control-allow-origin"] == "*"

        response = client.post(
            "/",
            json={"query": "{ hello }"},
            headers={"Origin": "https://app.example.com"}
        )
        assert response.headers["access-control-allow-origin"] == "*"

    def test_no_openapi_routes(self, engine, controller):
        server = StandaloneServer(engine)
        controller.attach(server)
        assert TestClient(server.app).get("/docs").status_code == 404

    def test_listen_before_attach(self, engine):
        with pytest.raises(LifecycleError):
            asyncio.run(StandaloneServer(engine).listen())

    @pytest.mark.asyncio
    async def test_shutdown_without_listening(self, engine, controller):
        server = StandaloneServer(engine)
        controller.attach(server)

        report = await controller.drain()
        assert report.ok
        assert [o.name for o in report.outcomes] == ["standalone.shutdown"]
        assert not server.is_serving

    @pytest.mark.asyncio
    async def test_shutdown_after_serve_task_cancelled(self, engine, controller):
        server = StandaloneServer(engine)
        controller.attach(server)
        calls = []
        controller.register_drain_hook(lambda: calls.append("after"), name="after")

        # A listener whose serve task was cancelled by its host
        server._server = server._build_server()
        server._serve_task = asyncio.ensure_future(asyncio.sleep(60))
        server._serve_task.cancel()

        report = await controller.drain()

        assert report.ok
        assert [o.name for o in report.outcomes] == ["standalone.shutdown", "after"]
        assert calls == ["after"]
        assert controller.state == LifecycleState.STOPPED
