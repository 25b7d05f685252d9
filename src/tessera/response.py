"""Output sinks.

Renderers write bytes to any object with a ``write(bytes)`` method. Sinks that
additionally satisfy the `ResponseWriter` protocol (a ``headers`` mapping and
``write_header(status)``) also receive the Content-Type header and status
code, and a 500 response when rendering fails. The capability is detected
with ``isinstance``; plain streams such as ``io.BytesIO`` work unchanged.

"""

from __future__ import annotations

from collections.abc import MutableMapping
from http import HTTPStatus
from typing import Protocol, runtime_checkable

CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"


@runtime_checkable
class Writer(Protocol):
    def write(self, data: bytes, /) -> object: ...


@runtime_checkable
class ResponseWriter(Protocol):
    """A writable sink that also carries HTTP headers and a status."""

    headers: MutableMapping[str, str]

    def write_header(self, status: int) -> None: ...

    def write(self, data: bytes, /) -> object: ...


class ResponseRecorder:
    """In-memory `ResponseWriter` that records what a renderer produced.

    The first ``write_header()`` wins; writing a body before any header
    implies status 200.

    Example:
        >>> rec = ResponseRecorder()
        >>> render.html(rec, 200, "home", "World")
        >>> rec.status, rec.headers["Content-Type"], rec.text
        (200, 'text/html; charset=UTF-8', '<b>Hello World.</b>')

    """

    __slots__ = ("body", "headers", "status", "wrote_header")

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.status: int = HTTPStatus.OK
        self.body = bytearray()
        self.wrote_header = False

    def write_header(self, status: int) -> None:
        if self.wrote_header:
            return
        self.status = status
        self.wrote_header = True

    def write(self, data: bytes, /) -> int:
        if not self.wrote_header:
            self.write_header(HTTPStatus.OK)
        self.body.extend(data)
        return len(data)

    @property
    def text(self) -> str:
        """Body decoded with the charset from Content-Type (UTF-8 if absent)."""
        charset = "utf-8"
        for param in self.headers.get(CONTENT_TYPE, "").split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                charset = value
        return self.body.decode(charset)


def http_error(w: ResponseWriter, message: str, status: int = HTTPStatus.INTERNAL_SERVER_ERROR) -> None:
    """Reply with a plain-text error message and ``status``."""
    w.headers.pop(CONTENT_LENGTH, None)
    w.headers[CONTENT_TYPE] = "text/plain; charset=utf-8"
    w.headers["X-Content-Type-Options"] = "nosniff"
    w.write_header(status)
    w.write(f"{message}\n".encode())
