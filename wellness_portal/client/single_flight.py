"""Single-flight coordination for access-token refresh."""

from __future__ import annotations

from concurrent.futures import Future
from threading import Lock
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Run at most one call of ``fn`` at a time; concurrent callers share its result.

    The first caller becomes the leader and runs ``fn``; callers arriving
    while it runs wait on the leader's future and receive the same value
    or exception. Once the call settles the next caller starts a new flight.
    """

    def __init__(self, fn: Callable[[], T]) -> None:
        self._fn = fn
        self._lock = Lock()
        self._inflight: Future[T] | None = None

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def run(self, timeout: float | None = None) -> T:
        future: Future[T] = Future()
        with self._lock:
            pending = self._inflight
            if pending is None:
                self._inflight = future
        if pending is not None:
            return pending.result(timeout=timeout)

        try:
            future.set_result(self._fn())
        except BaseException as exc:
            future.set_exception(exc)
        finally:
            with self._lock:
                self._inflight = None
        return future.result()
