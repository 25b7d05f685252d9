"""Lock strategies guarding the compiled template set.

The template set is written during a compile pass and read on every render.
Two strategies exist:

- `ReadWriteLock`: many concurrent readers or a single writer. Required
  whenever the set can be rebuilt while requests are being served
  (development mode recompiles on every call).
- `NullLock`: no synchronisation at all. Used in production, where the set
  is compiled once and treated as immutable afterwards, so the hot path
  does not pay for an acquire/release pair.

The strategy is chosen once by `select_lock()` and never swapped.

"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol


class Lock(Protocol):
    """Read/write lock interface shared by both strategies."""

    def acquire_read(self) -> None: ...

    def release_read(self) -> None: ...

    def acquire_write(self) -> None: ...

    def release_write(self) -> None: ...

    def read(self) -> AbstractContextManager[None]: ...

    def write(self) -> AbstractContextManager[None]: ...


class _LockContexts:
    """``read()``/``write()`` context managers on top of acquire/release."""

    __slots__ = ()

    def acquire_read(self) -> None:
        raise NotImplementedError

    def release_read(self) -> None:
        raise NotImplementedError

    def acquire_write(self) -> None:
        raise NotImplementedError

    def release_write(self) -> None:
        raise NotImplementedError

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class ReadWriteLock(_LockContexts):
    """Writer-preferring readers/writer lock.

    Readers share the lock; a writer waits until all active readers have
    left and blocks new readers while it is waiting, so a stream of
    requests cannot starve a recompilation.

    Not reentrant: a thread holding the read side must not acquire the
    write side.

    Example:
        >>> lock = ReadWriteLock()
        >>> with lock.read():
        ...     pass
        >>> with lock.write():
        ...     pass

    """

    __slots__ = ("_cond", "_readers", "_writer", "_writers_waiting")

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a held read lock")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a held write lock")
            self._writer = False
            self._cond.notify_all()

    @property
    def readers(self) -> int:
        """Number of threads currently holding the read side."""
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writer


class NullLock(_LockContexts):
    """Lock that never blocks. Safe only while nothing rewrites the set."""

    __slots__ = ()

    def acquire_read(self) -> None:
        pass

    def release_read(self) -> None:
        pass

    def acquire_write(self) -> None:
        pass

    def release_write(self) -> None:
        pass


def select_lock(is_development: bool, use_mutex_lock: bool) -> ReadWriteLock | NullLock:
    """Pick the lock strategy for a renderer.

    Development mode always gets the real lock because it rebuilds the
    template set on every call; otherwise ``use_mutex_lock`` decides.
    """
    if is_development or use_mutex_lock:
        return ReadWriteLock()
    return NullLock()
