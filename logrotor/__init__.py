"""Size-triggered, retention-bounded log rotation exposed as a convenience import."""

from .core.store import RotatingLogStore
from .errors import (
    ConfigurationError,
    LogStoreError,
    OpenError,
    RetentionError,
    RotationError,
    StoreClosedError,
    WriteError,
)
from .rotation.retention import RetentionManager
from .utils.config import StoreConfig, load_config
from .utils.types import Generation, LogLevel, LogRecord, NamingStrategy

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "Generation",
    "LogLevel",
    "LogRecord",
    "LogStoreError",
    "NamingStrategy",
    "OpenError",
    "RetentionError",
    "RetentionManager",
    "RotatingLogStore",
    "RotationError",
    "StoreClosedError",
    "StoreConfig",
    "WriteError",
    "load_config",
]
