"""Semaphore-style limiter bounding how many operations run at once."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, TypeVar

from src.utils.logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

logger = get_logger(__name__)


class ConcurrencyLimiter:
    """Run operations on worker threads with at most ``permits`` in flight.

    Excess operations wait in a FIFO queue and are started only when a
    running operation settles, which hands its permit to the oldest waiter.
    Results and exceptions are delivered unchanged through the returned
    ``Future``. Operations already running are never interrupted.

    Example:
        with ConcurrencyLimiter(permits=3) as limiter:
            futures = [limiter.acquire(partial(fetch, url)) for url in urls]
            results = [f.result() for f in futures]
    """

    def __init__(self, permits: int) -> None:
        if permits < 1:
            msg = "permits must be at least 1"
            raise ValueError(msg)
        self.permits = permits
        self._available = permits
        self._waiters: deque[tuple[Callable[[], Any], Future[Any]]] = deque()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._closed = False
        self._executor = ThreadPoolExecutor(
            max_workers=permits,
            thread_name_prefix="limiter",
        )

    def __enter__(self) -> ConcurrencyLimiter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)

    @property
    def available_permits(self) -> int:
        with self._lock:
            return self._available

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self.permits - self._available

    @property
    def queued(self) -> int:
        with self._lock:
            return len(self._waiters)

    def acquire(self, operation: Callable[[], T]) -> Future[T]:
        """Schedule ``operation`` under a permit.

        Starts it immediately if a permit is free, otherwise queues it behind
        earlier callers.

        Raises:
            RuntimeError: If the limiter has been shut down.
        """
        future: Future[T] = Future()
        with self._lock:
            if self._closed:
                msg = "cannot acquire from a limiter that has been shut down"
                raise RuntimeError(msg)
            if self._available > 0:
                self._available -= 1
                start_now = True
            else:
                self._waiters.append((operation, future))
                start_now = False

        if start_now and not self._dispatch(operation, future):
            self._release()
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting operations.

        With ``wait`` the call blocks until every running and queued
        operation has settled.
        """
        with self._lock:
            self._closed = True
            if wait:
                self._idle.wait_for(
                    lambda: self._available == self.permits and not self._waiters
                )
        self._executor.shutdown(wait=wait)

    def _dispatch(self, operation: Callable[[], Any], future: Future[Any]) -> bool:
        """Start ``operation`` on a worker. Returns False if it never started."""
        if not future.set_running_or_notify_cancel():
            return False
        try:
            self._executor.submit(self._run, operation, future)
        except RuntimeError as exc:
            future.set_exception(exc)
            return False
        return True

    def _run(self, operation: Callable[[], Any], future: Future[Any]) -> None:
        try:
            result = operation()
        except BaseException as exc:
            self._release()
            future.set_exception(exc)
        else:
            self._release()
            future.set_result(result)

    def _release(self) -> None:
        """Hand the permit to the oldest live waiter, or return it to the pool."""
        while True:
            with self._lock:
                if not self._waiters:
                    self._available += 1
                    if self._available == self.permits:
                        self._idle.notify_all()
                    return
                operation, future = self._waiters.popleft()

            if self._dispatch(operation, future):
                return
            logger.debug("limiter_waiter_dropped", cancelled=future.cancelled())
