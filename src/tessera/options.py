"""Renderer configuration.

`Options` is resolved exactly once, when a `Render` is constructed:
``Options.prepared()`` returns a copy with every empty value replaced by its
default. The caller's instance is never modified, and neither per-call
`HTMLOptions` nor anything the renderer does later writes back into it.

Example:
    >>> opts = Options(directory="views", layout="layout", is_development=True)
    >>> Render(opts)

    >>> # Same thing from the environment (or a .env file):
    >>> #   TESSERA_DIRECTORY=views TESSERA_LAYOUT=layout TESSERA_IS_DEVELOPMENT=1
    >>> Render(Options.from_env())

"""

from __future__ import annotations

import codecs
import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from tessera.bufferpool import BufferPool, SizedBufferPool
from tessera.filesystem import DirFileSystem, FileSystem
from tessera.helpers import FuncMap
from tessera.store import DEFAULT_EXTENSIONS, Delims

DEFAULT_DIRECTORY = "templates"
DEFAULT_CHARSET = "UTF-8"

CONTENT_BINARY = "application/octet-stream"
CONTENT_HTML = "text/html"
CONTENT_JSON = "application/json"
CONTENT_JSONP = "application/javascript"
CONTENT_TEXT = "text/plain"
CONTENT_XHTML = "application/xhtml+xml"
CONTENT_XML = "text/xml"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


@dataclass(slots=True)
class Options:
    """Configuration of a `Render` instance.

    Attributes:
        directory: Template directory, relative to the root of ``file_system``
            (default ``"templates"``)
        file_system: Filesystem to compile from (default: current directory)
        layout: Layout template name; empty renders pages without a layout
        extensions: Template file extensions (default ``[".tmpl"]``)
        funcs: Function maps available to every template, merged in order
        delims: Output expression delimiters (default ``{{`` / ``}}``)
        charset: Charset appended to Content-Type headers (default ``"UTF-8"``)
        disable_charset: Do not append ``; charset=...`` to Content-Type
        html_content_type: Content-Type of HTML responses (default ``text/html``)
        is_development: Recompile all templates on every HTML call
        use_mutex_lock: Guard the template set with a real read/write lock
            even outside development mode
        require_partials: Fail when a layout calls a partial the page lacks
        disable_http_error_rendering: Do not write a 500 response on errors
        render_partials_without_suffix: Let ``partial("x")`` fall back to ``x``
            when ``x-<page>`` does not exist
        buffer_pool: Pool of output buffers (default: 32 buffers of 512 KiB)
        autoescape: HTML-escape output expressions (default ``True``)
        prefix_json: Bytes written before JSON payloads
        prefix_xml: Bytes written before XML payloads
        indent_json: Pretty-print JSON payloads
        indent_xml: Pretty-print XML payloads
        unescape_html: Keep ``<``, ``>`` and ``&`` literal in JSON output
        streaming_json: Encode JSON payloads incrementally
    """

    directory: str = DEFAULT_DIRECTORY
    file_system: FileSystem | None = None
    layout: str = ""
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    funcs: list[FuncMap] = field(default_factory=list)
    delims: Delims = field(default_factory=Delims)
    charset: str = DEFAULT_CHARSET
    disable_charset: bool = False
    html_content_type: str = CONTENT_HTML
    is_development: bool = False
    use_mutex_lock: bool = False
    require_partials: bool = False
    disable_http_error_rendering: bool = False
    render_partials_without_suffix: bool = False
    buffer_pool: BufferPool | None = None
    autoescape: bool = True
    prefix_json: bytes = b""
    prefix_xml: bytes = b""
    indent_json: bool = False
    indent_xml: bool = False
    unescape_html: bool = False
    streaming_json: bool = False

    def prepared(self) -> Options:
        """Return a copy with all defaults filled in.

        Raises:
            ValueError: If ``directory`` is absolute (directories are relative
                to ``file_system``)
            LookupError: If ``charset`` names no known codec
        """
        if self.directory.startswith(("/", "\\")):
            raise ValueError(
                f"directory {self.directory!r} must be relative to the file system;"
                " pass file_system=DirFileSystem(...) to change the root"
            )
        codecs.lookup(self.encoding)
        return dataclasses.replace(
            self,
            directory=self.directory or DEFAULT_DIRECTORY,
            file_system=self.file_system if self.file_system is not None else DirFileSystem("."),
            extensions=list(self.extensions) or list(DEFAULT_EXTENSIONS),
            funcs=list(self.funcs),
            delims=self.delims.or_default(),
            charset=self.charset or DEFAULT_CHARSET,
            html_content_type=self.html_content_type or CONTENT_HTML,
            buffer_pool=self.buffer_pool if self.buffer_pool is not None else SizedBufferPool(),
        )

    @property
    def compiled_charset(self) -> str:
        """The ``; charset=...`` suffix, or ``""`` when disabled."""
        if self.disable_charset:
            return ""
        return f"; charset={self.charset or DEFAULT_CHARSET}"

    @property
    def encoding(self) -> str:
        """Codec used to encode response bodies."""
        if self.disable_charset:
            return "utf-8"
        return self.charset or DEFAULT_CHARSET

    def content_type(self, base: str) -> str:
        return base + self.compiled_charset

    def html_options(self, call: HTMLOptions | None = None) -> HTMLOptions:
        """Effective layout and call-scoped functions for one HTML call.

        Configured ``funcs`` are environment globals of the compiled set and
        are not repeated here, so keys of the bound data still shadow them.
        """
        layout = self.layout
        call_funcs: FuncMap = {}
        if call is not None:
            if call.layout:
                layout = call.layout
            call_funcs = dict(call.funcs)
        return HTMLOptions(layout=layout, funcs=call_funcs)

    @classmethod
    def from_env(
        cls,
        prefix: str = "TESSERA_",
        *,
        environ: Mapping[str, str] | None = None,
        dotenv_path: str | Path | None = None,
        **overrides: Any,
    ) -> Options:
        """Build options from ``<prefix><FIELD>`` environment variables.

        Only string, boolean and extension-list fields are read; callables,
        filesystems and pools have to be passed as ``overrides``. Values from
        ``dotenv_path`` are used where the environment has none.

        Raises:
            ValueError: If a boolean variable holds something unrecognised
        """
        source: dict[str, str] = {}
        if dotenv_path is not None:
            source.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
        source.update(os.environ if environ is None else environ)

        values: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            key = prefix + f.name.upper()
            if key not in source or f.name in overrides:
                continue
            raw = source[key]
            if f.type in ("bool", bool):
                values[f.name] = _parse_bool(key, raw)
            elif f.type in ("str", str):
                values[f.name] = raw
            elif f.type in ("bytes", bytes):
                values[f.name] = raw.encode("utf-8")
            elif f.name == "extensions":
                values[f.name] = [ext.strip() for ext in raw.split(",") if ext.strip()]
        values.update(overrides)
        return cls(**values)


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{key}={raw!r} is not a boolean")


@dataclass(slots=True)
class HTMLOptions:
    """Per-call overrides for `Render.html()`.

    Attributes:
        layout: Layout to use instead of the configured one (empty: keep it)
        funcs: Extra functions for this call, on top of ``Options.funcs``
    """

    layout: str = ""
    funcs: FuncMap = field(default_factory=dict)
