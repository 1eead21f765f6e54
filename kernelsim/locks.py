"""Spin locks held by a thread and sleep locks held on behalf of a process."""

from __future__ import annotations

import threading
from typing import Optional


class LockError(RuntimeError):
    """A lock was acquired twice or released by a thread not holding it."""


class SpinLock:
    """A mutual-exclusion lock owned by the thread that acquired it."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self.cpu: Optional[int] = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self) -> None:
        if self.holding():
            raise LockError(f"acquire {self.name}")
        self._lock.acquire()
        self.cpu = threading.get_ident()

    def release(self) -> None:
        if not self.holding():
            raise LockError(f"release {self.name}")
        self.cpu = None
        self._lock.release()

    def holding(self) -> bool:
        """Whether the calling thread holds the lock."""
        return self._lock.locked() and self.cpu == threading.get_ident()

    def __enter__(self) -> "SpinLock":
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class SleepLock:
    """A long-term lock; waiters block until it is released."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition(threading.Lock())

    def acquire(self, pid: int) -> None:
        """Block until the lock is free, then take it for process pid."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether process pid holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid