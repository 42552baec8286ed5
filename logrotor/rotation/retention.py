"""Enumeration and pruning of archived log generations."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..errors import RetentionError
from ..utils.config import StoreConfig
from ..utils.types import Generation, NamingStrategy

LOGGER = logging.getLogger(__name__)

GZIP_SUFFIX = ".gz"
STAMP_FORMAT = "%Y%m%d_%H%M%S"


# ----------------------------------------------------------------------
# Naming helpers shared with the archiver
# ----------------------------------------------------------------------
def numbered_path(config: StoreConfig, index: int, compressed: bool = False) -> Path:
    name = f"{config.base_name}.{index}"
    if compressed:
        name += GZIP_SUFFIX
    return config.directory / name


def timestamped_path(
    config: StoreConfig, stamp: str, counter: int = 0, compressed: bool = False
) -> Path:
    name = f"{config.base_name}_{stamp}"
    if counter:
        name += f"_{counter}"
    name += ".log"
    if compressed:
        name += GZIP_SUFFIX
    return config.directory / name


def _numbered_pattern(base_name: str) -> "re.Pattern[str]":
    return re.compile(rf"^{re.escape(base_name)}\.(\d+)(\.gz)?$")


def _timestamped_pattern(base_name: str) -> "re.Pattern[str]":
    return re.compile(rf"^{re.escape(base_name)}_(\d{{8}}_\d{{6}})(?:_(\d+))?\.log(\.gz)?$")


class RetentionManager:
    """Keep at most ``config.max_generations`` archived copies on disk."""

    def __init__(self, config: StoreConfig) -> None:
        self.config = config
        if config.naming_strategy is NamingStrategy.NUMBERED:
            self._pattern = _numbered_pattern(config.base_name)
        else:
            self._pattern = _timestamped_pattern(config.base_name)

    # ------------------------------------------------------------------
    def generations(self) -> List[Generation]:
        """Return the generations currently on disk, newest first."""

        directory = self.config.directory
        if not directory.is_dir():
            return []

        found: List[Generation] = []
        for entry in directory.iterdir():
            generation = self.parse(entry)
            if generation is not None:
                found.append(generation)
        found.sort(key=lambda item: item.recency, reverse=True)
        return found

    def parse(self, path: Path) -> Optional[Generation]:
        """Interpret ``path`` as a generation of this store, if it is one."""

        match = self._pattern.match(path.name)
        if match is None:
            return None

        if self.config.naming_strategy is NamingStrategy.NUMBERED:
            index = int(match.group(1))
            if index < 1:
                return None
            created_at = _mtime(path)
            if created_at is None:
                return None
            return Generation(
                path=path,
                created_at=created_at,
                compressed=match.group(2) is not None,
                index=index,
            )

        stamp, counter, gz = match.groups()
        try:
            created_at = datetime.strptime(stamp, STAMP_FORMAT)
        except ValueError:
            return None
        return Generation(
            path=path,
            created_at=created_at,
            compressed=gz is not None,
            stamp=stamp,
            counter=int(counter) if counter else 0,
        )

    def prune(self) -> List[Path]:
        """Delete every generation beyond the newest ``max_generations``.

        Files that disappear before they can be removed are ignored. A listing
        failure, or any other deletion failure once every deletion has been
        attempted, is raised as a single :class:`RetentionError`.
        """

        try:
            expired = self.generations()[self.config.max_generations :]
        except OSError as exc:
            raise RetentionError(
                f"Unable to list generations in {self.config.directory}: {exc}"
            ) from exc
        removed: List[Path] = []
        failures: List[str] = []
        for generation in expired:
            try:
                generation.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                failures.append(f"{generation.path}: {exc}")
                continue
            removed.append(generation.path)
            LOGGER.debug("Pruned generation %s", generation.path)

        if failures:
            raise RetentionError("Unable to delete expired generations: " + "; ".join(failures))
        return removed


def _mtime(path: Path) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime)
    except OSError:
        return None


__all__ = [
    "GZIP_SUFFIX",
    "RetentionManager",
    "STAMP_FORMAT",
    "numbered_path",
    "timestamped_path",
]
