from __future__ import annotations
import asyncio
import dataclasses
import structlog
from typing import Any, Awaitable, Callable, Coroutine, Optional, Set

from .errors import CancelError, ConfigError, MonitorError
from .metrics import MetricsWindow
from .models import AggregateStats, DataPoint, GenerationType, PollConfig, SchedulerState, UserDetails
from .rate_gate import RateGate
from .registry import GenerationRegistry
from .utils import now_ms

log = structlog.get_logger()


class PollScheduler:
    """Idle/running state machine that polls ``source`` on a timer.

    ``source`` is anything with ``fetch_sample(credential)`` and
    ``cancel_generation(gen_id, kind, credential)`` coroutines, normally a
    HordeClient. Each timer tick spawns a fetch without awaiting it, so a slow
    response may overlap the next tick; whichever completes last wins.
    """

    def __init__(
        self,
        source,
        window: Optional[MetricsWindow] = None,
        registry: Optional[GenerationRegistry] = None,
        gate: Optional[RateGate] = None,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_point: Optional[Callable[[DataPoint], None]] = None,
    ):
        self.source = source
        self.window = window or MetricsWindow()
        self.registry = registry or GenerationRegistry()
        self.gate = gate or RateGate()
        self.clock = clock
        self.sleep = sleep
        self.on_point = on_point

        self.state = SchedulerState.idle
        self.config: Optional[PollConfig] = None
        self.error: Optional[str] = None
        self.cancel_error: Optional[str] = None
        self.user: Optional[UserDetails] = None

        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False
        # bumped by every start and stop; a start whose id went stale must not arm a timer
        self._run_id = 0

    def is_running(self) -> bool:
        return self.state == SchedulerState.running

    def stats(self) -> AggregateStats:
        return self.window.stats()

    async def start(self, config: PollConfig) -> None:
        if self.is_running():
            return
        if not config.credential:
            self.error = "Please enter an API key"
            raise ConfigError(self.error)
        self.config = config
        self.error = None
        if self.window.limit != config.retention_points:
            self.window.retain(config.retention_points)
        self._idle.clear()
        self._run_id += 1
        run_id = self._run_id
        await self._cycle()
        if self._idle.is_set() or run_id != self._run_id:
            # halted by a failed first fetch, stopped from on_point, or superseded by a later start
            return
        self.state = SchedulerState.running
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._run_timer(config.interval_ms))
        log.info("monitor_started", interval_ms=config.interval_ms, retention_points=config.retention_points)

    def stop(self) -> None:
        was_running = self.is_running()
        self._run_id += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.gate.reset()
        self.state = SchedulerState.idle
        self._idle.set()
        if was_running:
            log.info("monitor_stopped", error=self.error)

    async def reconfigure_interval(self, interval_ms: int) -> None:
        if self.config is None:
            raise ConfigError("Monitor has not been configured")
        self.config = dataclasses.replace(self.config, interval_ms=interval_ms)
        if self.is_running():
            self.stop()
            await self.start(self.config)

    def set_retention(self, points: int) -> None:
        if self.config is not None:
            self.config = dataclasses.replace(self.config, retention_points=points)
        self.window.retain(points)

    def clear(self) -> None:
        """Discard the window, the tracked generations and the account details."""
        self.window.clear()
        self.registry.clear()
        self.user = None

    async def tick(self) -> bool:
        """Run one fetch cycle now. Returns True when a point was appended."""
        return await self._cycle()

    async def wait_idle(self) -> None:
        await self._idle.wait()

    def cancel_generation(self, gen_id: str, kind: GenerationType | str) -> asyncio.Task:
        """Drop ``gen_id`` locally, then confirm with the server in the background."""
        kind = GenerationType(kind)
        self.registry.cancel(gen_id, kind)
        credential = self.config.credential if self.config else ""
        return self._spawn(self._confirm_cancel(gen_id, kind, credential))

    async def close(self) -> None:
        self._closed = True
        self.stop()
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _cycle(self) -> bool:
        config = self.config
        if config is None or self._closed:
            return False
        if not self.gate.try_acquire(self.clock(), config.interval_ms):
            log.debug("poll_skipped")
            return False
        try:
            sample = await self.source.fetch_sample(config.credential)
        except MonitorError as e:
            if not self._closed:
                self._fail(e)
            return False
        if self._closed:
            return False
        try:
            point = self.window.append(sample)
            self.registry.replace_all(sample.image_ids, sample.text_ids)
            if sample.user is not None:
                self.user = sample.user
            self.error = None
            log.debug("sample_appended", kudos=point.kudos, kudos_change=point.kudos_change, points=len(self.window))
            if self.on_point:
                self.on_point(point)
        except Exception as e:
            self._fail(e)
            return False
        return True

    def _fail(self, e: Exception) -> None:
        self.error = str(e) or type(e).__name__
        log.warning("poll_failed", error=self.error, error_type=type(e).__name__, exc_info=not isinstance(e, MonitorError))
        self.stop()

    async def _run_timer(self, interval_ms: int) -> None:
        while True:
            await self.sleep(interval_ms / 1000)
            self._spawn(self._cycle())

    async def _confirm_cancel(self, gen_id: str, kind: GenerationType, credential: str) -> None:
        try:
            await self.source.cancel_generation(gen_id, kind, credential)
        except CancelError as e:
            self.cancel_error = str(e)
            log.warning("cancel_failed", gen_id=gen_id, kind=kind.value, error=self.cancel_error)
        else:
            self.cancel_error = None

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._reap)
        return task

    def _reap(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("task_failed", error=str(exc), error_type=type(exc).__name__)
