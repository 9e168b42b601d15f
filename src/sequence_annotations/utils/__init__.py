"""Logging setup and locking helpers."""

from .locking import NullLock, ReadWriteLock
from .logging import get_logger, setup_logging

__all__ = [
    "ReadWriteLock",
    "NullLock",
    "setup_logging",
    "get_logger",
]
