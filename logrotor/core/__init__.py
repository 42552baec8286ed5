"""Active file ownership, write scheduling and the store orchestrator."""

from .active_file import ActiveFileHandle
from .scheduler import AsyncScheduler, DirectScheduler, WriteScheduler, create_scheduler
from .store import RotatingLogStore

__all__ = [
    "ActiveFileHandle",
    "AsyncScheduler",
    "DirectScheduler",
    "RotatingLogStore",
    "WriteScheduler",
    "create_scheduler",
]
