"""
Runtime Vision capture agent.

Captures network calls, log output and uncaught errors from the host
application and relays them to the collector in small batches.

Usage:
    agent = TelemetryAgent(AgentConfig(session="my-session"))
    await agent.start()
    client = httpx.AsyncClient(transport=agent.async_transport(httpx.AsyncHTTPTransport()))
    log = agent.console(logging.getLogger("app"))
    agent.capture("checkout", {"cart_id": "c-42"})
    ...
    await agent.close()
"""
import asyncio
import logging
import threading
from typing import Any, Callable, Mapping

import httpx
import orjson
import structlog

from ..event_models import Event, now_ms
from .config import AgentConfig
from .console import ConsoleCaptureHandler, InstrumentedConsole, suppress_capture
from .errors import wrap_exception_handler, wrap_excepthook, wrap_threading_excepthook
from .network import InstrumentedAsyncTransport, InstrumentedTransport

# Not routed through stdlib logging, so the capture handler never sees it
log = structlog.get_logger("runtime_vision.agent")


class TelemetryAgent:
    """
    Queues captured events and delivers them to the collector.

    The queue is only touched from the thread running the agent's event
    loop; captures from other threads are handed over to it. Delivery is
    fire-and-forget: one detached task per event, failures are logged and
    dropped.
    """

    def __init__(
        self,
        config: AgentConfig | Mapping[str, Any] | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            config: Agent options (an AgentConfig or a mapping of options)
            transport: Transport for deliveries; defaults to httpx's network transport
            clock: Millisecond clock used to stamp events
        """
        if config is None:
            config = AgentConfig()
        elif not isinstance(config, AgentConfig):
            config = AgentConfig.model_validate(dict(config))
        self.config = config
        self._transport = transport
        self._clock = clock
        self._queue: list[Event] = []
        self._pending: set[asyncio.Task] = set()
        self._client: httpx.AsyncClient | None = None
        self._timer: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: int | None = None

    @property
    def started(self) -> bool:
        return self._loop is not None

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    async def start(self) -> "TelemetryAgent":
        """Open the delivery client and start the flush timer. Safe to call twice."""
        if self.started:
            log.warning("agent.already_started", session=self.config.session)
            return self

        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._client = httpx.AsyncClient(transport=self._transport, timeout=self.config.delivery_timeout)
        self._timer = self._loop.create_task(self._run_timer())
        log.info("agent.started", session=self.config.session, endpoint=self.config.endpoint)

        if self._queue:
            self.flush()
        return self

    async def close(self, timeout: float | None = None):
        """Stop the timer, flush what is queued and wait for in-flight deliveries."""
        if not self.started:
            return

        if self._timer is not None:
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
            self._timer = None

        self.flush()
        if self._pending:
            wait_for = timeout if timeout is not None else self.config.delivery_timeout
            await asyncio.wait(set(self._pending), timeout=wait_for)

        leftover = list(self._pending)
        for task in leftover:
            task.cancel()
        if leftover:
            await asyncio.gather(*leftover, return_exceptions=True)

        await self._client.aclose()
        self._client = None
        self._loop = None
        self._loop_thread = None
        log.info("agent.stopped", session=self.config.session, dropped=len(leftover))

    async def __aenter__(self) -> "TelemetryAgent":
        return await self.start()

    async def __aexit__(self, *exc_info):
        await self.close()

    def capture(self, type: str, data: Mapping[str, Any] | None = None) -> Event:
        """Capture an application-level event with a custom type tag."""
        event = Event(
            type=type,
            data=dict(data or {}),
            ts=self._clock(),
            session=self.config.session,
        )
        self._submit(event)
        return event

    def capture_event(self, type: str, data: Mapping[str, Any]) -> Event | None:
        """
        Capture from instrumentation. Never raises into the host application.
        """
        try:
            return self.capture(type, data)
        except Exception as e:
            log.warning("agent.capture_failed", type=type, error=str(e))
            return None

    def flush(self) -> int:
        """
        Hand every queued event to its own delivery task.

        Returns:
            Number of events scheduled for delivery
        """
        if not self._queue or self._client is None or self._loop is None or self._loop.is_closed():
            return 0

        batch, self._queue = self._queue, []
        for event in batch:
            task = self._loop.create_task(self._deliver(self._client, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        log.debug("agent.flushed", events=len(batch))
        return len(batch)

    # Instrumentation factories: each wraps an original capability and
    # leaves installing the result to the caller.

    def async_transport(self, original: httpx.AsyncBaseTransport) -> httpx.AsyncBaseTransport:
        if not self.config.capture_network:
            return original
        return InstrumentedAsyncTransport(original, self.capture_event)

    def transport(self, original: httpx.BaseTransport) -> httpx.BaseTransport:
        if not self.config.capture_network:
            return original
        return InstrumentedTransport(original, self.capture_event)

    def console(self, original: Any) -> Any:
        if not self.config.capture_console:
            return original
        return InstrumentedConsole(original, self.capture_event)

    def log_handler(self) -> logging.Handler:
        return ConsoleCaptureHandler(self.capture_event)

    def excepthook(self, original: Callable) -> Callable:
        if not self.config.capture_errors:
            return original
        return wrap_excepthook(original, self.capture_event)

    def threading_excepthook(self, original: Callable) -> Callable:
        if not self.config.capture_errors:
            return original
        return wrap_threading_excepthook(original, self.capture_event)

    def exception_handler(self, original: Callable | None) -> Callable | None:
        if not self.config.capture_errors:
            return original
        return wrap_exception_handler(original, self.capture_event)

    def _submit(self, event: Event):
        loop = self._loop
        if loop is not None and threading.get_ident() != self._loop_thread and not loop.is_closed():
            loop.call_soon_threadsafe(self._enqueue, event)
        else:
            self._enqueue(event)

    def _enqueue(self, event: Event):
        self._queue.append(event)
        if len(self._queue) >= self.config.batch_size:
            self.flush()

    async def _run_timer(self):
        interval = self.config.batch_interval / 1000
        while True:
            await asyncio.sleep(interval)
            if self._queue:
                self.flush()

    async def _deliver(self, client: httpx.AsyncClient, event: Event):
        try:
            # httpx logs each request; those records must not become events
            with suppress_capture():
                response = await client.post(
                    self.config.endpoint,
                    content=orjson.dumps(event.model_dump()),
                    headers={"Content-Type": "application/json"},
                )
        except Exception as e:
            log.warning(
                "agent.delivery_failed",
                type=event.type,
                endpoint=self.config.endpoint,
                error=str(e) or e.__class__.__name__,
            )
            return

        if not response.is_success:
            log.warning(
                "agent.delivery_rejected",
                type=event.type,
                endpoint=self.config.endpoint,
                status_code=response.status_code,
            )
