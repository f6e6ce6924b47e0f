"""
Synchronization primitives for the image index.

Provides ReadWriteLock (single writer, many readers) and MatchModeFlag,
the index's process-wide matching mode cell.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Generator


class ReadWriteLock:
    """
    Shared/exclusive lock built on a condition variable.

    Writers take priority: once a writer is waiting, new readers block
    until it has finished, so a steady stream of queries cannot starve
    inserts. Not reentrant.

    Usage:
        lock = ReadWriteLock()

        with lock.read():
            ...  # any number of threads at once

        with lock.write():
            ...  # exactly one thread, no readers
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Generator[None, None, None]:
        """Hold the shared lock for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Generator[None, None, None]:
        """Hold the exclusive lock for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class MatchMode(str, Enum):
    """Matching policy used by a query."""
    HASH = 'hash'
    HYBRID = 'hybrid'


class MatchModeFlag:
    """
    Process-wide matching mode, readable and writable at any time.

    Reads and writes are individually atomic, but nothing orders them
    against queries already in progress: a query that started before a
    toggle may still run under the old mode.
    """

    def __init__(self, hybrid: bool = True):
        self._lock = threading.Lock()
        self._hybrid = hybrid

    @property
    def hybrid(self) -> bool:
        with self._lock:
            return self._hybrid

    @hybrid.setter
    def hybrid(self, enabled: bool):
        with self._lock:
            self._hybrid = bool(enabled)

    @property
    def mode(self) -> MatchMode:
        return MatchMode.HYBRID if self.hybrid else MatchMode.HASH


__all__ = ['ReadWriteLock', 'MatchMode', 'MatchModeFlag']
