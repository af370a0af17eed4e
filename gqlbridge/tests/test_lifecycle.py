"""Tests for the lifecycle controller"""

import asyncio
import threading
import time

import pytest
from aiohttp import web
from fastapi import FastAPI

from ..adapters.aiohttp_adapter import AioHttpAdapter
from ..adapters.base import MiddlewareAdapter
from ..adapters.fastapi_adapter import FastAPIAdapter
from ..adapters.lambda_adapter import LambdaHandler
from ..adapters.standalone import StandaloneServer
from ..config.options import AdapterOptions
from ..errors import (
    AlreadyStartedError,
    ConfigurationError,
    LifecycleError,
    NotStartedError,
    ServiceUnavailableError,
)
from ..lifecycle.controller import LifecycleController
from ..lifecycle.states import LifecycleState, can_transition

ADAPTER_FACTORIES = {
    "standalone": lambda engine: StandaloneServer(engine),
    "fastapi": lambda engine: FastAPIAdapter(engine, FastAPI()),
    "aiohttp": lambda engine: AioHttpAdapter(engine, web.Application()),
    "lambda": lambda engine: LambdaHandler(engine),
}


class TestStates:
    """Tests for the transition table"""

    def test_attached_only_from_started(self):
        assert can_transition(LifecycleState.STARTED, LifecycleState.ATTACHED)
        assert not can_transition(LifecycleState.CREATED, LifecycleState.ATTACHED)
        assert not can_transition(LifecycleState.DRAINING, LifecycleState.ATTACHED)

    def test_draining_from_started_or_attached(self):
        assert can_transition(LifecycleState.STARTED, LifecycleState.DRAINING)
        assert can_transition(LifecycleState.ATTACHED, LifecycleState.DRAINING)
        assert not can_transition(LifecycleState.CREATED, LifecycleState.DRAINING)
        assert not can_transition(LifecycleState.STOPPED, LifecycleState.DRAINING)


class TestStart:
    """Tests for start()"""

    def test_start(self):
        controller = LifecycleController()
        assert controller.state == LifecycleState.CREATED

        controller.start()
        assert controller.state == LifecycleState.STARTED
        assert controller.history[-1]["to"] == "started"

    def test_start_twice(self):
        controller = LifecycleController()
        controller.start()
        with pytest.raises(AlreadyStartedError):
            controller.start()

    def test_already_started_is_lifecycle_error(self):
        assert issubclass(AlreadyStartedError, LifecycleError)
        assert issubclass(NotStartedError, LifecycleError)


class TestAttach:
    """Tests for attach()"""

    @pytest.mark.parametrize("variant", sorted(ADAPTER_FACTORIES))
    def test_attach_before_start(self, engine, variant):
        controller = LifecycleController()
        adapter = ADAPTER_FACTORIES[variant](engine)

        with pytest.raises(LifecycleError):
            controller.attach(adapter)
        assert controller.state == LifecycleState.CREATED

    @pytest.mark.parametrize("variant", sorted(ADAPTER_FACTORIES))
    def test_attach_after_start(self, engine, controller, variant):
        adapter = ADAPTER_FACTORIES[variant](engine)
        record = controller.attach(adapter)

        assert isinstance(adapter, MiddlewareAdapter)
        assert controller.state == LifecycleState.ATTACHED
        assert record.path == adapter.default_path

    def test_default_paths_differ(self, engine):
        assert StandaloneServer(engine).default_path == "/"
        assert FastAPIAdapter(engine, FastAPI()).default_path == "/graphql"
        assert AioHttpAdapter(engine, web.Application()).default_path == "/graphql"
        assert LambdaHandler(engine).default_path == "/graphql"

    def test_attach_several_adapters(self, engine, controller):
        controller.attach(FastAPIAdapter(engine, FastAPI()))
        controller.attach(LambdaHandler(engine))

        assert controller.state == LifecycleState.ATTACHED
        assert [a.adapter.name for a in controller.adapters] == ["fastapi", "lambda"]

    def test_options_are_copied(self, engine, controller):
        options = AdapterOptions(path="/gql")
        record = controller.attach(FastAPIAdapter(engine, FastAPI()), options)

        options.path = "/changed"
        options.body_parser.max_body_bytes = 1
        assert record.options.path == "/gql"
        assert record.options.body_parser.max_body_bytes != 1

    def test_invalid_options(self, engine, controller):
        with pytest.raises(ConfigurationError):
            controller.attach(FastAPIAdapter(engine, FastAPI()), AdapterOptions(path="graphql"))
        assert controller.state == LifecycleState.STARTED

    @pytest.mark.asyncio
    async def test_attach_after_drain(self, engine, controller):
        await controller.drain()
        with pytest.raises(LifecycleError):
            controller.attach(FastAPIAdapter(engine, FastAPI()))

    def test_standalone_registers_shutdown_hook(self, engine, controller):
        controller.attach(StandaloneServer(engine))
        assert "standalone.shutdown" in controller.to_dict()["drain_hooks"]


class TestDrain:
    """Tests for drain()"""

    @pytest.mark.asyncio
    async def test_hooks_run_once_in_order(self, controller):
        calls = []
        controller.register_drain_hook(lambda: calls.append("first"), name="first")

        async def second():
            calls.append("second")
        controller.register_drain_hook(second)
        controller.register_drain_hook(lambda: calls.append("third"), name="third")

        report = await controller.drain()

        assert calls == ["first", "second", "third"]
        assert report.ok
        assert [o.name for o in report.outcomes] == ["first", "second", "third"]
        assert controller.state == LifecycleState.STOPPED

    @pytest.mark.asyncio
    async def test_failures_are_collected(self, controller):
        calls = []

        def broken():
            calls.append("broken")
            raise RuntimeError("hook failed")

        controller.register_drain_hook(lambda: calls.append("before"), name="before")
        controller.register_drain_hook(broken)
        controller.register_drain_hook(lambda: calls.append("after"), name="after")

        report = await controller.drain()

        assert calls == ["before", "broken", "after"]
        assert not report.ok
        assert [f.name for f in report.failures] == ["broken"]
        assert isinstance(report.failures[0].error, RuntimeError)
        assert controller.state == LifecycleState.STOPPED

    @pytest.mark.asyncio
    async def test_drain_before_start(self):
        with pytest.raises(NotStartedError):
            await LifecycleController().drain()

    @pytest.mark.asyncio
    async def test_drain_twice(self, controller):
        await controller.drain()
        with pytest.raises(LifecycleError):
            await controller.drain()

    @pytest.mark.asyncio
    async def test_register_after_drain(self, controller):
        await controller.drain()
        with pytest.raises(LifecycleError):
            controller.register_drain_hook(lambda: None)

    @pytest.mark.asyncio
    async def test_waits_for_in_flight_requests(self, controller):
        calls = []
        controller.register_drain_hook(lambda: calls.append("hook"), name="hook")

        async with controller.track_request():
            drain_task = asyncio.create_task(controller.drain())
            await asyncio.sleep(0)

            assert controller.state == LifecycleState.DRAINING
            assert not drain_task.done()
            assert calls == []

        report = await drain_task
        assert report.ok
        assert calls == ["hook"]
        assert controller.in_flight == 0

    @pytest.mark.asyncio
    async def test_rejects_new_requests_while_draining(self, controller):
        await controller.drain()
        assert not controller.accepting_requests

        with pytest.raises(ServiceUnavailableError):
            async with controller.track_request():
                pass

    @pytest.mark.asyncio
    async def test_caller_imposed_timeout(self, controller):
        release = asyncio.Event()
        controller.register_drain_hook(release.wait, name="slow")

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(controller.drain(), timeout=0.05)
        assert controller.state == LifecycleState.STOPPED

    @pytest.mark.asyncio
    async def test_hook_cancelling_itself_is_a_failure(self, controller):
        calls = []

        async def cancelled():
            calls.append("cancelled")
            raise asyncio.CancelledError()

        def sync_cancelled():
            calls.append("sync_cancelled")
            raise asyncio.CancelledError()

        controller.register_drain_hook(cancelled)
        controller.register_drain_hook(sync_cancelled)
        controller.register_drain_hook(lambda: calls.append("after"), name="after")

        report = await controller.drain()

        assert calls == ["cancelled", "sync_cancelled", "after"]
        assert [f.name for f in report.failures] == ["cancelled", "sync_cancelled"]
        assert all(isinstance(f.error, asyncio.CancelledError) for f in report.failures)
        assert controller.state == LifecycleState.STOPPED

    @pytest.mark.asyncio
    async def test_drain_cancelled_by_caller(self, controller):
        calls = []

        async def slow():
            await asyncio.sleep(10)

        controller.register_drain_hook(slow)
        controller.register_drain_hook(lambda: calls.append("after"), name="after")

        drain_task = asyncio.create_task(controller.drain())
        await asyncio.sleep(0.01)
        drain_task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await drain_task
        assert calls == []
        assert controller.state == LifecycleState.STOPPED

    @pytest.mark.asyncio
    async def test_request_finishing_on_another_thread(self, controller):
        entered = threading.Event()

        async def hold_request():
            async with controller.track_request():
                entered.set()
                await asyncio.sleep(0.2)

        worker = threading.Thread(target=lambda: asyncio.run(hold_request()))
        worker.start()
        assert entered.wait(timeout=2)
        assert controller.in_flight == 1

        started = time.monotonic()
        report = await asyncio.wait_for(controller.drain(), timeout=3)
        elapsed = time.monotonic() - started
        worker.join(timeout=2)

        assert report.ok
        assert elapsed < 1.5
        assert controller.in_flight == 0
        assert controller.state == LifecycleState.STOPPED

    def test_in_flight_count_across_threads(self, controller):
        async def one_request():
            async with controller.track_request():
                await asyncio.sleep(0)

        def worker():
            for _ in range(50):
                asyncio.run(one_request())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert controller.in_flight == 0


class TestAttachConflicts:
    """Tests for health and GraphQL paths that collide"""

    @pytest.mark.parametrize("variant", sorted(ADAPTER_FACTORIES))
    def test_health_path_equal_to_mount_path(self, engine, controller, variant):
        adapter = ADAPTER_FACTORIES[variant](engine)
        options = AdapterOptions(path="/graphql", health_check_path="/graphql")

        with pytest.raises(ConfigurationError):
            controller.attach(adapter, options)
        assert controller.state == LifecycleState.STARTED
        assert controller.adapters == []

    def test_aiohttp_routes_untouched_on_conflict(self, engine, controller):
        app = web.Application()
        with pytest.raises(ConfigurationError):
            controller.attach(AioHttpAdapter(engine, app), AdapterOptions(health_check_path="/graphql/"))
        assert len(app.router.routes()) == 0

    def test_fastapi_mount_on_default_health_path(self, engine, controller):
        app = FastAPI()
        routes_before = len(app.routes)
        with pytest.raises(ConfigurationError):
            controller.attach(FastAPIAdapter(engine, app), AdapterOptions(path="/health"))
        assert len(app.routes) == routes_before
