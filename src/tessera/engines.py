"""Format engines: turn a bound value into bytes on a sink.

Each engine carries its `Head` (Content-Type and status) and implements
``render(w, data)``. `Render.render()` drives all of them and adds the
500-on-error behaviour on top.

Engines:
- `HTML`: executes a named template into a pooled buffer
- `JSON` / `JSONP`: ``json`` encoding, optionally indented, prefixed or streamed
- `XML`: ElementTree elements (or objects with ``__xml__()``)
- `Data`: raw bytes
- `Text`: plain strings

Headers are only written to sinks that satisfy `ResponseWriter`.

"""

from __future__ import annotations

import copy
import json
import xml.etree.ElementTree as ET
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from tessera.bufferpool import BufferPool, borrow
from tessera.exceptions import EncodingError
from tessera.response import CONTENT_TYPE, ResponseWriter, Writer
from tessera.store import TemplateSet

# Characters json.dumps leaves alone but that are unsafe inside <script> tags
# or break JavaScript string literals.
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_HTML_ESCAPE_TABLE = str.maketrans(_HTML_ESCAPES)
_JS_LINE_TERMINATORS = str.maketrans({"\u2028": "\\u2028", "\u2029": "\\u2029"})


class Engine(Protocol):
    """Anything that can render a bound value onto a sink."""

    def render(self, w: Writer, data: Any) -> None: ...


@dataclass(slots=True)
class Head:
    """Content-Type and status of a response."""

    content_type: str
    status: int

    def write(self, w: ResponseWriter) -> None:
        w.headers[CONTENT_TYPE] = self.content_type
        w.write_header(self.status)


def _write_head(w: Writer, head: Head) -> None:
    if isinstance(w, ResponseWriter):
        head.write(w)


@dataclass(slots=True)
class HTML:
    """Render a named template from a template set.

    Output is executed into a pooled buffer first; the head and body are
    only written once execution succeeded. The buffer goes back to the pool
    on every path.
    """

    head: Head
    name: str
    templates: TemplateSet
    buffer_pool: BufferPool
    funcs: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    encoding: str = "utf-8"

    def render(self, w: Writer, data: Any) -> None:
        with borrow(self.buffer_pool) as buf:
            self.templates.execute(buf, self.name, data, self.funcs, self.encoding)
            _write_head(w, self.head)
            w.write(buf.getvalue())


def _dumps(data: Any, *, indent: bool, unescape_html: bool) -> str:
    try:
        if indent:
            result = json.dumps(data, indent=2, ensure_ascii=False)
        else:
            result = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"json: {exc}") from exc
    if unescape_html:
        return result.translate(_JS_LINE_TERMINATORS)
    return result.translate(_HTML_ESCAPE_TABLE)


@dataclass(slots=True)
class JSON:
    """Encode a value as JSON.

    ``<``, ``>`` and ``&`` are written as ``\\u003c``-style escapes unless
    ``unescape_html`` is set. In streaming mode the head is written first
    and the document is encoded incrementally (followed by a newline), so
    an encoding failure can leave a truncated body behind.
    """

    head: Head
    indent: bool = False
    unescape_html: bool = False
    prefix: bytes = b""
    streaming: bool = False

    def render(self, w: Writer, data: Any) -> None:
        if self.streaming:
            self._render_streaming(w, data)
            return
        result = _dumps(data, indent=self.indent, unescape_html=self.unescape_html)
        _write_head(w, self.head)
        if self.prefix:
            w.write(self.prefix)
        w.write(result.encode("utf-8"))

    def _render_streaming(self, w: Writer, data: Any) -> None:
        encoder = json.JSONEncoder(
            ensure_ascii=False,
            indent=2 if self.indent else None,
            separators=None if self.indent else (",", ":"),
        )
        table = _JS_LINE_TERMINATORS if self.unescape_html else _HTML_ESCAPE_TABLE
        _write_head(w, self.head)
        if self.prefix:
            w.write(self.prefix)
        try:
            for chunk in encoder.iterencode(data):
                w.write(chunk.translate(table).encode("utf-8"))
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"json: {exc}") from exc
        w.write(b"\n")


@dataclass(slots=True)
class JSONP:
    """JSON wrapped in a ``callback(...);`` call."""

    head: Head
    callback: str
    indent: bool = False

    def render(self, w: Writer, data: Any) -> None:
        result = _dumps(data, indent=self.indent, unescape_html=False)
        _write_head(w, self.head)
        w.write(f"{self.callback}(".encode())
        w.write(result.encode("utf-8"))
        w.write(b");")


def _to_element(data: Any) -> ET.Element:
    if isinstance(data, ET.Element):
        return data
    to_xml = getattr(data, "__xml__", None)
    if callable(to_xml):
        element = to_xml()
        if isinstance(element, ET.Element):
            return element
    raise EncodingError(f"xml: cannot marshal {type(data).__name__}")


@dataclass(slots=True)
class XML:
    """Serialise an ElementTree element.

    Accepts an ``Element``, an object whose ``__xml__()`` returns one, or
    already serialised ``str``/``bytes`` (written as-is).
    """

    head: Head
    indent: bool = False
    prefix: bytes = b""

    def render(self, w: Writer, data: Any) -> None:
        if isinstance(data, bytes):
            result = data
        elif isinstance(data, str):
            result = data.encode("utf-8")
        else:
            element = _to_element(data)
            if self.indent:
                element = copy.deepcopy(element)
                ET.indent(element, space="  ")
            result = ET.tostring(element, encoding="utf-8", xml_declaration=False)
        _write_head(w, self.head)
        if self.prefix:
            w.write(self.prefix)
        w.write(result)


def _write_head_keeping_type(w: Writer, head: Head) -> None:
    if isinstance(w, ResponseWriter):
        existing = w.headers.get(CONTENT_TYPE)
        if existing:
            head = Head(existing, head.status)
        head.write(w)


@dataclass(slots=True)
class Data:
    """Raw bytes. A Content-Type already set on the sink is kept."""

    head: Head

    def render(self, w: Writer, data: Any) -> None:
        _write_head_keeping_type(w, self.head)
        w.write(bytes(data))


@dataclass(slots=True)
class Text:
    """A plain string. A Content-Type already set on the sink is kept."""

    head: Head
    encoding: str = "utf-8"

    def render(self, w: Writer, data: Any) -> None:
        _write_head_keeping_type(w, self.head)
        w.write(str(data).encode(self.encoding))
