"""Ownership of the file currently receiving log records."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from ..errors import OpenError, WriteError

LOGGER = logging.getLogger(__name__)


class ActiveFileHandle:
    """Append-only handle with an O(1) running byte count.

    The handle never creates directories; the store does that once when it
    opens. Every append is flushed before returning so a record is visible on
    disk as soon as the write step completes.
    """

    def __init__(self, path: Path, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.path = Path(path)
        self._clock = clock or datetime.now
        self._handle: Optional[BinaryIO] = None
        self._size = 0
        self.opened_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> None:
        """Acquire the append handle, seeding the size from existing content."""

        if self._handle is not None:
            return
        if not self.path.parent.is_dir():
            raise OpenError(f"Log directory does not exist: {self.path.parent}")
        try:
            self._handle = self.path.open("ab")
        except OSError as exc:
            raise OpenError(f"Cannot open log file {self.path}: {exc}") from exc
        # "ab" positions at end of file, so tell() is the existing size
        self._size = self._handle.tell()
        self.opened_at = self._clock()
        LOGGER.debug("Opened %s (existing size %d bytes)", self.path, self._size)

    def append(self, data: bytes) -> None:
        """Write and flush ``data``, then count it against the current size."""

        if self._handle is None:
            raise WriteError(f"Log file {self.path} is not open")
        try:
            self._handle.write(data)
            self._handle.flush()
        except OSError as exc:
            raise WriteError(f"Failed to append to {self.path}: {exc}") from exc
        self._size += len(data)

    def current_size(self) -> int:
        return self._size

    def close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.close()
        except OSError:
            LOGGER.warning("Error while closing %s", self.path, exc_info=True)
        self._size = 0

    # ------------------------------------------------------------------
    def __enter__(self) -> "ActiveFileHandle":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["ActiveFileHandle"]
