"""Rotation of the active file into numbered or timestamped generations."""
from __future__ import annotations

import gzip
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..core.active_file import ActiveFileHandle
from ..errors import RotationError
from ..utils.config import StoreConfig
from ..utils.types import Generation, NamingStrategy
from .retention import (
    GZIP_SUFFIX,
    STAMP_FORMAT,
    RetentionManager,
    numbered_path,
    timestamped_path,
)

LOGGER = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


class Archiver(ABC):
    """Turn the active file into a generation and reopen a fresh one.

    Subclasses only decide where the rotated file goes. Closing, reopening and
    the optional gzip step are shared so both naming schemes behave the same
    way on failure.
    """

    def __init__(
        self,
        config: StoreConfig,
        retention: RetentionManager,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config
        self.retention = retention
        self._clock = clock or datetime.now

    # ------------------------------------------------------------------
    def rotate(self, active: ActiveFileHandle) -> Generation:
        """Archive ``active`` and leave it reopened at the canonical path.

        A failed rename raises :class:`RotationError` after the original file
        has been reopened, so writes continue against the oversized file.
        """

        source = active.path
        rotated_at = self._clock()
        active.close()
        try:
            generation = self._relocate(source, rotated_at)
        except OSError as exc:
            raise RotationError(f"Failed to rotate {source}: {exc}") from exc
        finally:
            active.open()

        LOGGER.info("Rotated %s -> %s", source, generation.path)
        if self.config.compression_enabled:
            generation = self.compress(generation)
        return generation

    def compress(self, generation: Generation) -> Generation:
        """Gzip ``generation`` and remove the plain copy once the archive is complete."""

        source = generation.path
        destination = source.with_name(source.name + GZIP_SUFFIX)
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=source.parent,
                prefix=".tmp_gz_",
                suffix=GZIP_SUFFIX,
            )
        except OSError as exc:
            raise RotationError(
                f"Failed to compress {source}: {exc}", generation=generation
            ) from exc
        try:
            with os.fdopen(fd, "wb") as raw:
                with source.open("rb") as f_in, gzip.GzipFile(
                    filename=source.name, mode="wb", fileobj=raw
                ) as f_out:
                    shutil.copyfileobj(f_in, f_out, COPY_CHUNK_SIZE)
                raw.flush()
                os.fsync(raw.fileno())
            os.replace(tmp_path, destination)
        except OSError as exc:
            raise RotationError(
                f"Failed to compress {source}: {exc}", generation=generation
            ) from exc
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    LOGGER.debug("Unable to remove temp archive: %s", tmp_path)

        compressed = replace(generation, path=destination, compressed=True)
        try:
            source.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise RotationError(
                f"Compressed {source} but could not remove it: {exc}", generation=compressed
            ) from exc
        LOGGER.debug("Compressed %s -> %s", source, destination)
        return compressed

    @abstractmethod
    def _relocate(self, source: Path, rotated_at: datetime) -> Generation:
        """Move ``source`` into the scheme's newest slot and describe it."""


class NumberedArchiver(Archiver):
    """``<base>.1`` is always the newest generation; older ones shift up."""

    def _relocate(self, source: Path, rotated_at: datetime) -> Generation:
        limit = self.config.max_generations

        # Anything in slot >= limit would fall outside the bound after the shift.
        for generation in self.retention.generations():
            if generation.index is not None and generation.index >= limit:
                generation.path.unlink(missing_ok=True)

        # Strictly descending so no slot is overwritten before it has moved.
        for index in range(limit - 1, 0, -1):
            for compressed in (False, True):
                current = numbered_path(self.config, index, compressed)
                if current.exists():
                    os.replace(current, numbered_path(self.config, index + 1, compressed))

        target = numbered_path(self.config, 1)
        os.replace(source, target)
        return Generation(path=target, created_at=rotated_at, index=1)


class TimestampedArchiver(Archiver):
    """Generations are named after the second they were rotated in.

    Two rotations inside the same second get an increasing counter suffix
    instead of overwriting each other.
    """

    def _relocate(self, source: Path, rotated_at: datetime) -> Generation:
        stamp = rotated_at.strftime(STAMP_FORMAT)
        counter = 0
        while self._taken(stamp, counter):
            counter += 1
        target = timestamped_path(self.config, stamp, counter)
        os.replace(source, target)
        return Generation(
            path=target,
            created_at=rotated_at,
            stamp=stamp,
            counter=counter,
        )

    def _taken(self, stamp: str, counter: int) -> bool:
        return any(
            timestamped_path(self.config, stamp, counter, compressed).exists()
            for compressed in (False, True)
        )


def create_archiver(
    config: StoreConfig,
    retention: RetentionManager,
    *,
    clock: Optional[Callable[[], datetime]] = None,
) -> Archiver:
    """Select the archiver matching ``config.naming_strategy``."""

    if config.naming_strategy is NamingStrategy.TIMESTAMPED:
        return TimestampedArchiver(config, retention, clock=clock)
    return NumberedArchiver(config, retention, clock=clock)


__all__ = [
    "Archiver",
    "NumberedArchiver",
    "TimestampedArchiver",
    "create_archiver",
]
