"""Top-level orchestration of the rotating log store."""
from __future__ import annotations

import logging
import os
import sys
import threading
from datetime import datetime
from typing import Callable, List, Optional, TextIO, Union

from ..errors import ConfigurationError, StoreClosedError
from ..rotation.archiver import create_archiver
from ..rotation.retention import RetentionManager
from ..utils.config import StoreConfig
from ..utils.formatter import format_record
from ..utils.types import Generation, LogLevel, LogRecord
from .active_file import ActiveFileHandle
from .scheduler import ErrorHandler, WriteScheduler, create_scheduler

LOGGER = logging.getLogger(__name__)

LevelLike = Union[LogLevel, int, str]


class RotatingLogStore:
    """Size-rotated, retention-bounded log file owned by one instance.

    The store is constructed explicitly and passed to whoever needs it; there
    is no process-wide default instance. Use it as a context manager so the
    file is released (and, in async mode, the queue drained) on every exit
    path::

        with RotatingLogStore(config) as store:
            store.info("service started")
    """

    def __init__(
        self,
        config: StoreConfig,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        error_handler: Optional[ErrorHandler] = None,
        echo_stream: Optional[TextIO] = None,
    ) -> None:
        self.config = config
        self._clock = clock or datetime.now
        self._error_handler = error_handler
        self._echo_stream = echo_stream
        self._state_lock = threading.Lock()
        self._scheduler: Optional[WriteScheduler] = None
        self.retention = RetentionManager(config)

    @classmethod
    def open_store(cls, config: StoreConfig, **kwargs) -> "RotatingLogStore":
        """Construct and open a store in one call."""

        return cls(config, **kwargs).open()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        scheduler = self._scheduler
        return scheduler is not None and not scheduler.closed

    def open(self) -> "RotatingLogStore":
        """Create the directory, open the active file and start the scheduler."""

        with self._state_lock:
            if self.is_open:
                return self

            directory = self.config.directory
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigurationError(f"Cannot create log directory {directory}: {exc}") from exc
            if not directory.is_dir():
                raise ConfigurationError(f"Log directory path is not a directory: {directory}")
            if not os.access(directory, os.W_OK | os.X_OK):
                raise ConfigurationError(f"Log directory is not writable: {directory}")

            active = ActiveFileHandle(self.config.active_path, clock=self._clock)
            active.open()
            archiver = create_archiver(self.config, self.retention, clock=self._clock)
            self._scheduler = create_scheduler(
                self.config,
                active,
                archiver,
                self.retention,
                error_handler=self._error_handler,
            )
            LOGGER.debug(
                "Opened log store %s (%s mode)",
                self.config.active_path,
                "async" if self.config.async_mode else "direct",
            )
        return self

    def close(self) -> None:
        """Release the store; async mode drains queued records first."""

        with self._state_lock:
            scheduler = self._scheduler
            if scheduler is None or scheduler.closed:
                return
            scheduler.close()
            LOGGER.debug("Closed log store %s", self.config.active_path)

    def __enter__(self) -> "RotatingLogStore":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    def log(self, level: LevelLike, message: str) -> bool:
        """Record ``message`` at ``level``.

        Returns ``False`` when the record is below ``config.min_level`` and was
        dropped without being formatted.
        """

        scheduler = self._require_open()
        level = LogLevel.parse(level)
        if level < self.config.min_level:
            return False
        record = LogRecord(timestamp=self._clock(), level=level, message=str(message))
        scheduler.submit(record)
        if self.config.echo_level is not None and level >= self.config.echo_level:
            self._echo(record)
        return True

    def debug(self, message: str) -> bool:
        return self.log(LogLevel.DEBUG, message)

    def info(self, message: str) -> bool:
        return self.log(LogLevel.INFO, message)

    def warning(self, message: str) -> bool:
        return self.log(LogLevel.WARNING, message)

    def error(self, message: str) -> bool:
        return self.log(LogLevel.ERROR, message)

    def critical(self, message: str) -> bool:
        return self.log(LogLevel.CRITICAL, message)

    def flush(self) -> None:
        self._require_open().flush()

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------
    def rotate(self) -> Optional[Generation]:
        """Rotate now, regardless of size. Pending async records are written first."""

        scheduler = self._require_open()
        scheduler.flush()
        return scheduler.rotate()

    def generations(self) -> List[Generation]:
        return self.retention.generations()

    @property
    def rotation_count(self) -> int:
        return self._scheduler.rotation_count if self._scheduler else 0

    @property
    def records_written(self) -> int:
        return self._scheduler.records_written if self._scheduler else 0

    def _echo(self, record: LogRecord) -> None:
        stream = self._echo_stream or sys.stderr
        encoding = self.config.encoding
        stream.write(format_record(record, encoding).decode(encoding, errors="replace"))
        stream.flush()

    def _require_open(self) -> WriteScheduler:
        scheduler = self._scheduler
        if scheduler is None or scheduler.closed:
            raise StoreClosedError(f"Log store {self.config.active_path} is not open")
        return scheduler


__all__ = ["RotatingLogStore"]
