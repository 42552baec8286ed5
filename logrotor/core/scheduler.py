"""Serialization of record writes into the active file.

Both schedulers run the same write step under one lock per store: append the
formatted line, check the size trigger, and rotate plus prune when due. They
differ only in which thread runs that step.
"""
from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..errors import LogStoreError, RetentionError, RotationError, StoreClosedError
from ..rotation.archiver import Archiver
from ..rotation.retention import RetentionManager
from ..rotation.trigger import is_rotation_due, would_overflow
from ..utils.config import StoreConfig
from ..utils.formatter import format_record
from ..utils.types import Generation, LogRecord
from .active_file import ActiveFileHandle

LOGGER = logging.getLogger(__name__)

ErrorHandler = Callable[[Exception], None]


def log_error(exc: Exception) -> None:
    """Default handler for failures nobody is waiting on."""

    LOGGER.warning("Log store error: %s", exc, exc_info=exc)


class WriteScheduler(ABC):
    """Common write step shared by the direct and asynchronous schedulers."""

    def __init__(
        self,
        config: StoreConfig,
        active: ActiveFileHandle,
        archiver: Archiver,
        retention: RetentionManager,
        *,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.config = config
        self.active = active
        self.archiver = archiver
        self.retention = retention
        self._error_handler = error_handler or log_error
        self._lock = threading.Lock()
        self._closed = False
        self.rotation_count = 0
        self.records_written = 0

    # ------------------------------------------------------------------
    @abstractmethod
    def submit(self, record: LogRecord) -> None:
        """Hand ``record`` over for writing."""

    def flush(self) -> None:
        """Block until every record submitted so far is on disk."""

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self.active.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def rotate(self) -> Optional[Generation]:
        """Force a rotation of a non-empty active file."""

        with self._lock:
            if self._closed:
                raise StoreClosedError("Log store is closed")
            if not self.active.is_open:
                self.active.open()
            return self._rotate()

    # ------------------------------------------------------------------
    def _format(self, record: LogRecord) -> bytes:
        return format_record(record, self.config.encoding)

    def _write(self, data: bytes) -> None:
        # Caller holds self._lock.
        if not self.active.is_open:
            self.active.open()

        # A failed rotation before the append is not retried after it.
        rotation_failed = False
        if would_overflow(self.active.current_size(), len(data), self.config):
            rotation_failed = self._rotate() is None

        self.active.append(data)
        self.records_written += 1

        if not rotation_failed and is_rotation_due(self.active.current_size(), self.config):
            self._rotate()

    def _rotate(self) -> Optional[Generation]:
        # Caller holds self._lock.
        if self.active.current_size() == 0:
            return None

        generation: Optional[Generation] = None
        try:
            generation = self.archiver.rotate(self.active)
        except RotationError as exc:
            generation = exc.generation
            self._report(exc)
        if generation is not None:
            self.rotation_count += 1

        try:
            self.retention.prune()
        except RetentionError as exc:
            self._report(exc)
        return generation

    def _report(self, exc: Exception) -> None:
        try:
            self._error_handler(exc)
        except Exception:  # pragma: no cover - handler bugs must not kill writes
            LOGGER.exception("Error handler failed while reporting %r", exc)


class DirectScheduler(WriteScheduler):
    """Write synchronously in the caller's thread.

    Records appear in the order callers acquire the lock. I/O failures
    propagate to the caller; rotation and retention failures are reported to
    the error handler instead.
    """

    def submit(self, record: LogRecord) -> None:
        data = self._format(record)
        with self._lock:
            if self._closed:
                raise StoreClosedError("Log store is closed")
            self._write(data)


_STOP = object()


class AsyncScheduler(WriteScheduler):
    """Queue formatted records for a single background writer thread.

    ``submit`` only blocks when a bounded queue is full. ``close`` drains the
    queue completely before the file is closed; records still queued when the
    process dies are lost.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=self.config.queue_capacity or 0)
        self._submit_lock = threading.Lock()
        self._stopping = False
        self._worker = threading.Thread(
            target=self._run,
            name=f"logrotor-writer-{self.config.base_name}",
            daemon=True,
        )
        self._worker.start()

    # ------------------------------------------------------------------
    def submit(self, record: LogRecord) -> None:
        data = self._format(record)
        with self._submit_lock:
            if self._stopping:
                raise StoreClosedError("Log store is closed")
            self._queue.put(data)

    def flush(self) -> None:
        self._queue.join()

    def close(self) -> None:
        with self._submit_lock:
            if self._stopping:
                return
            self._stopping = True
            self._queue.put(_STOP)
        self._worker.join()
        super().close()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    # ------------------------------------------------------------------
    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                with self._lock:
                    self._write(item)
            except LogStoreError as exc:
                self._report(exc)
            except Exception as exc:  # pragma: no cover - keep the writer alive
                LOGGER.exception("Unexpected failure in log writer thread")
                self._report(exc)
            finally:
                self._queue.task_done()


def create_scheduler(
    config: StoreConfig,
    active: ActiveFileHandle,
    archiver: Archiver,
    retention: RetentionManager,
    *,
    error_handler: Optional[ErrorHandler] = None,
) -> WriteScheduler:
    """Pick the scheduler matching ``config.async_mode``."""

    scheduler_cls = AsyncScheduler if config.async_mode else DirectScheduler
    return scheduler_cls(config, active, archiver, retention, error_handler=error_handler)


__all__ = [
    "AsyncScheduler",
    "DirectScheduler",
    "ErrorHandler",
    "WriteScheduler",
    "create_scheduler",
    "log_error",
]
