"""Reusable output buffers for HTML rendering.

Template output is executed into a pooled ``io.BytesIO`` and only copied to
the destination once execution succeeded, so a failing template never leaves
half a page on the wire. Reusing the buffers avoids one allocation per request.

Thread-Safety:
``SizedBufferPool`` is backed by ``queue.Queue`` and safe for concurrent
``get()``/``put()``. A buffer is owned by exactly one caller between the two.

"""

from __future__ import annotations

import io
import queue
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

DEFAULT_POOL_SIZE = 32
DEFAULT_BUFFER_SIZE = 1 << 19  # 512 KiB


class BufferPool(Protocol):
    """Anything that hands out and takes back ``io.BytesIO`` buffers."""

    def get(self) -> io.BytesIO: ...

    def put(self, buf: io.BytesIO) -> None: ...


class SizedBufferPool:
    """Bounded pool of byte buffers with a per-buffer size ceiling.

    ``get()`` never blocks: when the pool is empty a fresh buffer is
    allocated. ``put()`` resets the buffer before pooling it; a buffer that
    grew past ``alloc`` bytes is swapped for a fresh one so a single huge page
    does not pin memory for the lifetime of the pool.

    Example:
        >>> pool = SizedBufferPool(4, 1024)
        >>> with pool.borrow() as buf:
        ...     _ = buf.write(b"hello")
        >>> pool.available
        1

    """

    __slots__ = ("_alloc", "_buffers", "_size")

    def __init__(self, size: int = DEFAULT_POOL_SIZE, alloc: int = DEFAULT_BUFFER_SIZE):
        if size <= 0:
            raise ValueError(f"pool size must be positive, got {size}")
        if alloc <= 0:
            raise ValueError(f"buffer size must be positive, got {alloc}")
        self._size = size
        self._alloc = alloc
        self._buffers: queue.Queue[io.BytesIO] = queue.Queue(maxsize=size)

    @property
    def size(self) -> int:
        """Maximum number of idle buffers kept."""
        return self._size

    @property
    def alloc(self) -> int:
        """Size ceiling of a pooled buffer, in bytes."""
        return self._alloc

    @property
    def available(self) -> int:
        """Number of idle buffers currently pooled."""
        return self._buffers.qsize()

    def get(self) -> io.BytesIO:
        try:
            return self._buffers.get_nowait()
        except queue.Empty:
            return io.BytesIO()

    def put(self, buf: io.BytesIO) -> None:
        if buf.seek(0, io.SEEK_END) > self._alloc:
            buf = io.BytesIO()
        else:
            buf.seek(0)
            buf.truncate()
        try:
            self._buffers.put_nowait(buf)
        except queue.Full:
            pass  # pool is full, let the buffer go

    @contextmanager
    def borrow(self) -> Iterator[io.BytesIO]:
        """Acquire a buffer and return it to the pool on every exit path."""
        buf = self.get()
        try:
            yield buf
        finally:
            self.put(buf)


@contextmanager
def borrow(pool: BufferPool) -> Iterator[io.BytesIO]:
    """``SizedBufferPool.borrow()`` for any ``BufferPool`` implementation."""
    buf = pool.get()
    try:
        yield buf
    finally:
        pool.put(buf)
