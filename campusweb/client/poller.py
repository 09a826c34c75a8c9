"""Background refresh of thread data with explicit cancellation."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

from campusweb.core import errors

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 15.0

T = TypeVar("T")


class ThreadPoller(Generic[T]):
    """Call ``fetch`` every ``interval`` seconds on a worker thread.

    Each result goes to ``on_update``; service errors go to ``on_error`` (or
    the log) and polling continues, except for :class:`SessionExpired`,
    which stops the poller. ``cancel()`` stops it promptly, even mid-wait,
    and no callback fires after it returns.
    """

    def __init__(
        self,
        fetch: Callable[[], T],
        on_update: Callable[[T], None],
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        on_error: Optional[Callable[[errors.ServiceError], None]] = None,
        name: str = "feedback-poller",
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fetch = fetch
        self.on_update = on_update
        self.on_error = on_error
        self.interval = interval
        self.name = name
        self._cancelled = threading.Event()
        self._callback_lock = threading.RLock()
        self._worker: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive() and not self._cancelled.is_set()

    def start(self) -> "ThreadPoller[T]":
        if self._worker is not None:
            raise RuntimeError("Poller has already been started.")
        self._worker = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._worker.start()
        return self

    def cancel(self, timeout: Optional[float] = None) -> None:
        with self._callback_lock:
            self._cancelled.set()
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    def _deliver(self, callback, value) -> None:
        with self._callback_lock:
            if not self._cancelled.is_set():
                callback(value)

    def _run(self) -> None:
        while not self._cancelled.is_set():
            try:
                result = self.fetch()
            except errors.SessionExpired as exc:
                logger.info("Stopping %s: %s", self.name, exc)
                if self.on_error is not None:
                    self._deliver(self.on_error, exc)
                self._cancelled.set()
                break
            except errors.ServiceError as exc:
                if self.on_error is not None:
                    self._deliver(self.on_error, exc)
                else:
                    logger.warning("%s refresh failed: %s", self.name, exc)
            else:
                self._deliver(self.on_update, result)
            self._cancelled.wait(self.interval)

    def __enter__(self) -> "ThreadPoller[T]":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.cancel()
