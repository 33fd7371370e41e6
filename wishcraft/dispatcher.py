"""Hands units of work to the thread that owns the wishlist store."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable

LOGGER = logging.getLogger(__name__)

_STOP = object()


class DispatcherStoppedError(RuntimeError):
    """Raised when work is submitted after the dispatcher has been stopped."""


class OwnerDispatcher:
    """FIFO work queue drained by exactly one owning thread.

    Any thread may :meth:`submit`; only the owner runs the work, so every
    store mutation happens on one logical sequence, in submission order.
    The owner is the thread that created the dispatcher until
    :meth:`run_forever` claims the thread it runs on. A UI event loop that
    cannot block can instead call :meth:`run_pending` from a timer.
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Any] = queue.SimpleQueue()
        self._owner = threading.get_ident()
        self._stopped = threading.Event()
        # Orders every accepted job ahead of the stop marker.
        self._submit_lock = threading.Lock()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def is_owner(self) -> bool:
        return threading.get_ident() == self._owner

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        with self._submit_lock:
            if self._stopped.is_set():
                raise DispatcherStoppedError("dispatcher is stopped")
            self._queue.put((future, fn, args, kwargs))
        return future

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float | None = None, **kwargs: Any) -> Any:
        """Run ``fn`` on the owner and wait for its result.

        Called from the owner itself, the work runs inline (after anything
        already queued) instead of deadlocking on its own queue.
        """
        future = self.submit(fn, *args, **kwargs)
        if self.is_owner():
            self.run_pending()
        return future.result(timeout=timeout)

    def run_pending(self) -> int:
        """Run every queued unit of work on the calling (owning) thread."""
        self._ensure_owner()
        ran = 0
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return ran
            if job is _STOP:
                self._queue.put(_STOP)
                return ran
            self._run(job)
            ran += 1

    def run_forever(self) -> None:
        """Claim the calling thread as owner and run work until :meth:`stop`."""
        self._owner = threading.get_ident()
        LOGGER.debug("Dispatcher running on thread %s", threading.current_thread().name)
        while True:
            job = self._queue.get()
            if job is _STOP:
                break
            self._run(job)
        self._drain_cancelled()

    def stop(self) -> None:
        with self._submit_lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
            self._queue.put(_STOP)

    def _ensure_owner(self) -> None:
        if not self.is_owner():
            raise RuntimeError("run_pending() must be called from the owning thread")

    @staticmethod
    def _run(job: tuple[Future, Callable[..., Any], tuple, dict]) -> None:
        future, fn, args, kwargs = job
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:  # noqa: BLE001 - the owning loop keeps running
            LOGGER.exception("Dispatched call %s failed", getattr(fn, "__qualname__", fn))
            future.set_exception(exc)
        else:
            future.set_result(result)

    def _drain_cancelled(self) -> None:
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return
            if job is not _STOP:
                job[0].cancel()
