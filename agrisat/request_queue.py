"""Rate-limited FIFO queue for outbound provider requests."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Optional, Set

from agrisat.clock import Clock, SystemClock
from agrisat.data_sources.base import DataSource
from agrisat.errors import ProviderTimeoutError, QueueClosedError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="request_queue")


@dataclass
class QueuedRequest:
    """A pending request and the future its caller is awaiting."""
    endpoint: str
    params: Dict[str, Any]
    future: asyncio.Future
    enqueued_at: float = field(default=0.0)


class RateLimitedQueue:
    """Serialize provider requests so that consecutive executions are spaced by at least `interval_seconds`.

    A background loop ticks once per interval. Each tick dispatches at most one
    request, and only when nothing is in flight. Before executing, the dispatched
    request waits out whatever remains of the interval since the previous execution
    finished. Execution races the fetch against a timer; when the timer wins the
    fetch is cancelled and the caller gets `ProviderTimeoutError`. Failures are
    delivered to the caller's future and never retried.
    """

    def __init__(
        self,
        source: DataSource,
        *,
        interval_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
        clock: Optional[Clock] = None,
    ) -> None:
        self.source = source
        self.interval = interval_seconds
        self.timeout = timeout_seconds
        self.clock = clock or SystemClock()
        self._pending: Deque[QueuedRequest] = deque()
        self._in_flight: Optional[QueuedRequest] = None
        self._last_execution: Optional[float] = None
        self._runner: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    @property
    def last_execution(self) -> Optional[float]:
        """Clock time at which the most recent execution finished."""
        return self._last_execution

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def enqueue(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        """Append a request and return the future that will carry its outcome."""
        future = asyncio.get_running_loop().create_future()
        if self._closed:
            future.set_exception(QueueClosedError("Request queue is stopped", endpoint=endpoint))
            return future
        self._pending.append(
            QueuedRequest(endpoint=endpoint, params=dict(params or {}), future=future, enqueued_at=self.clock.now())
        )
        logger.debug(f"Queued request for {endpoint}", extra={"pending": len(self._pending)})
        return future

    def start(self) -> None:
        """Begin ticking. Must be called from inside a running event loop."""
        self._closed = False
        if self.running:
            return
        self._runner = asyncio.get_running_loop().create_task(self._run())
        logger.info("Request queue started", extra={"interval_seconds": self.interval, "timeout_seconds": self.timeout})

    def stop(self) -> None:
        """Stop ticking and reject every unresolved request with `QueueClosedError`."""
        self._closed = True
        if self._runner is not None:
            self._runner.cancel()
            self._runner = None
        for task in list(self._tasks):
            task.cancel()
        if self._in_flight is not None:
            self._reject(self._in_flight, QueueClosedError("Request queue stopped", endpoint=self._in_flight.endpoint))
        while self._pending:
            request = self._pending.popleft()
            self._reject(request, QueueClosedError("Request queue stopped", endpoint=request.endpoint))
        logger.info("Request queue stopped")

    async def _run(self) -> None:
        while True:
            await self.clock.sleep(self.interval)
            self.tick()

    def tick(self) -> bool:
        """Dispatch the oldest pending request if nothing is in flight. Returns True if one was dispatched."""
        if self._in_flight is not None or not self._pending:
            return False
        request = self._pending.popleft()
        self._in_flight = request
        task = asyncio.get_running_loop().create_task(self._process(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _process(self, request: QueuedRequest) -> None:
        try:
            if self._last_execution is not None:
                remaining = self.interval - (self.clock.now() - self._last_execution)
                if remaining > 0:
                    await self.clock.sleep(remaining)
            try:
                result = await self._execute(request)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(
                    f"Request to {request.endpoint} failed: {exc}",
                    extra={"endpoint": request.endpoint, "error_type": type(exc).__name__},
                )
                self._reject(request, exc)
            else:
                if not request.future.done():
                    request.future.set_result(result)
            self._last_execution = self.clock.now()
        except asyncio.CancelledError:
            self._reject(request, QueueClosedError("Request queue stopped", endpoint=request.endpoint))
            raise
        finally:
            if self._in_flight is request:
                self._in_flight = None

    async def _execute(self, request: QueuedRequest) -> Any:
        fetch = asyncio.ensure_future(self.source.fetch(request.endpoint, request.params))
        timer = asyncio.ensure_future(self.clock.sleep(self.timeout))
        try:
            done, _ = await asyncio.wait({fetch, timer}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            fetch.cancel()
            timer.cancel()
            raise
        if fetch in done:
            timer.cancel()
            return fetch.result()
        fetch.cancel()
        raise ProviderTimeoutError(request.endpoint, self.timeout)

    @staticmethod
    def _reject(request: QueuedRequest, exc: BaseException) -> None:
        if not request.future.done():
            request.future.set_exception(exc)
