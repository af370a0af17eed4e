"""
Lifecycle Controller

Provides:
- Start-then-attach ordering enforced by explicit state checks
- In-flight request accounting for adapters
- Graceful drain running hooks in registration order
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from inspect import isawaitable
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple, Union, TYPE_CHECKING

from ..config.options import AdapterOptions
from ..errors import AlreadyStartedError, LifecycleError, NotStartedError, ServiceUnavailableError
from ..health.responder import HealthCheckResponder
from .states import LifecycleState, can_transition, is_serving

if TYPE_CHECKING:
    from ..adapters.base import MiddlewareAdapter

logger = logging.getLogger("LifecycleController")

DrainHookFn = Callable[[], Union[None, Awaitable[None]]]


@dataclass
class DrainHook:
    """A callable run once during drain"""
    name: str
    fn: DrainHookFn


@dataclass
class HookOutcome:
    """Result of one drain hook"""
    name: str
    ok: bool
    error: Optional[BaseException] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "error": repr(self.error) if self.error else None
        }


@dataclass
class DrainReport:
    """Every hook outcome, in the order the hooks ran"""
    outcomes: List[HookOutcome] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failures(self) -> List[HookOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None
        }


@dataclass
class AttachedAdapter:
    """An adapter together with the options copied at attach time"""
    adapter: "MiddlewareAdapter"
    options: AdapterOptions
    path: str
    responder: HealthCheckResponder
    attached_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "adapter": self.adapter.name,
            "path": self.path,
            "options": self.options.to_dict(),
            "attached_at": self.attached_at.isoformat()
        }


class LifecycleController:
    """
    Coordinates startup, adapter attachment and drain

    start() must complete before any attach(); drain() stops new requests,
    waits for in-flight ones, then runs drain hooks.
    """

    def __init__(self, name: str = "gqlbridge"):
        self.name = name
        self._state = LifecycleState.CREATED
        self._lock = threading.Lock()
        self._adapters: List[AttachedAdapter] = []
        self._drain_hooks: List[DrainHook] = []
        self._history: List[Dict[str, Any]] = []
        self._in_flight = 0
        # (loop, event) of a drain() waiting for in-flight requests
        self._idle_waiter: Optional[Tuple[asyncio.AbstractEventLoop, asyncio.Event]] = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def accepting_requests(self) -> bool:
        return is_serving(self._state)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def adapters(self) -> List[AttachedAdapter]:
        return list(self._adapters)

    @property
    def history(self) -> List[Dict[str, Any]]:
        return list(self._history)

    def _transition(self, target: LifecycleState) -> None:
        """Caller holds the lock and has checked can_transition"""
        source = self._state
        self._state = target
        self._history.append({
            "from": source.value,
            "to": target.value,
            "timestamp": datetime.now().isoformat()
        })
        logger.info(f"{self.name}: {source.value} -> {target.value}")

    def start(self) -> None:
        """Created -> Started"""
        with self._lock:
            if self._state != LifecycleState.CREATED:
                raise AlreadyStartedError(
                    f"{self.name} was already started (state: {self._state.value})"
                )
            self._transition(LifecycleState.STARTED)

    def attach(
        self,
        adapter: "MiddlewareAdapter",
        options: Optional[AdapterOptions] = None
    ) -> AttachedAdapter:
        """
        Attach an adapter to its host

        Args:
            adapter: The adapter to attach
            options: Caller-owned options; a copy is taken

        Returns:
            The attachment record

        Raises:
            NotStartedError: start() has not been called
            LifecycleError: the controller is draining or stopped
            ConfigurationError: the adapter rejected the options
        """
        with self._lock:
            if self._state == LifecycleState.CREATED:
                raise NotStartedError(f"attach({adapter.name}) called before start()")
            if not can_transition(self._state, LifecycleState.ATTACHED):
                raise LifecycleError(
                    f"Cannot attach {adapter.name} while {self._state.value}"
                )

            attached_options = (options or AdapterOptions()).copy()
            attached_options.validate(adapter.default_path)
            path = attached_options.resolved_path(adapter.default_path)
            responder = HealthCheckResponder(
                callback=attached_options.on_health_check,
                disabled=attached_options.disable_health_check,
                controller=self
            )

            adapter.configure(attached_options, self)
            adapter.mount(path)
            adapter.register_health_check(responder, attached_options.health_check_path)

            record = AttachedAdapter(
                adapter=adapter,
                options=attached_options,
                path=path,
                responder=responder
            )
            self._adapters.append(record)

            shutdown = getattr(adapter, "shutdown", None)
            if shutdown is not None:
                self._drain_hooks.append(DrainHook(name=f"{adapter.name}.shutdown", fn=shutdown))

            self._transition(LifecycleState.ATTACHED)
            logger.info(f"Attached {adapter.name} at {path}")
            return record

    def register_drain_hook(self, fn: DrainHookFn, name: Optional[str] = None) -> DrainHook:
        """Add a hook run once during drain, after earlier registrations"""
        with self._lock:
            if self._state in (LifecycleState.DRAINING, LifecycleState.STOPPED):
                raise LifecycleError(f"Cannot register drain hooks while {self._state.value}")
            hook = DrainHook(name=name or getattr(fn, "__name__", repr(fn)), fn=fn)
            self._drain_hooks.append(hook)
            return hook

    @asynccontextmanager
    async def track_request(self) -> AsyncIterator[None]:
        """
        Count a request as in flight; refuse it once draining has begun

        Safe to use from any thread or event loop; the drainer is woken on
        its own loop.
        """
        with self._lock:
            if not is_serving(self._state):
                raise ServiceUnavailableError(f"{self.name} is not accepting requests")
            self._in_flight += 1
        try:
            yield
        finally:
            with self._lock:
                self._in_flight -= 1
                waiter = self._idle_waiter if self._in_flight == 0 else None
            if waiter is not None:
                loop, idle = waiter
                loop.call_soon_threadsafe(idle.set)

    async def drain(self) -> DrainReport:
        """
        Attached|Started -> Draining -> Stopped

        Waits for in-flight requests, then runs every drain hook exactly once
        in registration order. Hook failures, including a hook cancelling
        itself, are collected in the report. There is no internal timeout;
        wrap the call in asyncio.wait_for to impose one. The controller ends
        in Stopped even when drain() itself is cancelled.
        """
        idle: Optional[asyncio.Event] = None
        with self._lock:
            if self._state == LifecycleState.CREATED:
                raise NotStartedError("drain() called before start()")
            if not can_transition(self._state, LifecycleState.DRAINING):
                raise LifecycleError(f"Cannot drain while {self._state.value}")
            self._transition(LifecycleState.DRAINING)
            hooks = list(self._drain_hooks)
            pending = self._in_flight
            if pending:
                idle = asyncio.Event()
                self._idle_waiter = (asyncio.get_running_loop(), idle)

        report = DrainReport()
        try:
            if idle is not None:
                logger.info(f"Waiting for {pending} in-flight request(s)")
                await idle.wait()

            for hook in hooks:
                report.outcomes.append(await self._run_hook(hook))
        finally:
            report.completed_at = datetime.now()
            with self._lock:
                self._idle_waiter = None
                self._transition(LifecycleState.STOPPED)

        if not report.ok:
            logger.warning(f"Drain finished with {len(report.failures)} failed hook(s)")
        return report

    async def _run_hook(self, hook: DrainHook) -> HookOutcome:
        """Run one hook; only a cancellation of drain() itself propagates"""
        try:
            result = hook.fn()
        except (Exception, asyncio.CancelledError) as e:
            return self._hook_failed(hook, e)
        if not isawaitable(result):
            return HookOutcome(name=hook.name, ok=True)

        task = asyncio.ensure_future(result)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled():
            return self._hook_failed(hook, asyncio.CancelledError(f"{hook.name} was cancelled"))
        error = task.exception()
        if error is not None:
            return self._hook_failed(hook, error)
        return HookOutcome(name=hook.name, ok=True)

    @staticmethod
    def _hook_failed(hook: DrainHook, error: BaseException) -> HookOutcome:
        logger.error(f"Drain hook {hook.name} failed: {error!r}")
        return HookOutcome(name=hook.name, ok=False, error=error)

    def to_dict(self) -> dict:
        with self._lock:
            in_flight = self._in_flight
        return {
            "name": self.name,
            "state": self._state.value,
            "in_flight": in_flight,
            "adapters": [a.to_dict() for a in self._adapters],
            "drain_hooks": [h.name for h in self._drain_hooks],
            "history": self._history
        }
