"""Render: the public entry point.

A `Render` owns the compiled template set, the buffer pool and the lock
strategy, and writes complete responses (headers, status, body) for HTML
templates and for JSON, JSONP, XML, raw data and text payloads.

HTML Call Flow:
    ```
    html(w, 200, "home", data)
      1. development mode: drop the held template set
      2. no set held: compile one (write lock)
      3. resolve layout + call-scoped functions
      4. page exists and a layout is configured:
           bind yield/current/partial to ("home", data), execute the layout
      5. execute into a pooled buffer, then write head + body
      6. on error: 500 with the error text (unless disabled), re-raise
    ```

Concurrency:
Lookups take the read side of the lock, compilation the write side. A
compile pass builds a brand-new `TemplateSet` and publishes it with a
single reference swap, so a render that already holds the previous set
finishes against it undisturbed. Execution itself runs outside the lock.

Example:
    >>> from tessera import Render, Options, ResponseRecorder
    >>> r = Render(Options(directory="templates", layout="layout"))
    >>> rec = ResponseRecorder()
    >>> r.html(rec, 200, "home", "World")
    >>> rec.text
    '<b>Hello World.</b>'

"""

from __future__ import annotations

import dataclasses
import logging
from http import HTTPStatus
from typing import Any

import jinja2

from tessera.engines import HTML, JSON, JSONP, XML, Data, Engine, Head, Text
from tessera.layout import LayoutCallbacks
from tessera.locking import NullLock, ReadWriteLock, select_lock
from tessera.options import (
    CONTENT_BINARY,
    CONTENT_JSON,
    CONTENT_JSONP,
    CONTENT_TEXT,
    CONTENT_XML,
    HTMLOptions,
    Options,
)
from tessera.response import ResponseWriter, Writer, http_error
from tessera.store import TemplateSet, compile_templates

logger = logging.getLogger(__name__)


class Render:
    """Compile a template directory once and render responses from it.

    Args:
        options: Configuration; defaults are applied to a copy
        **overrides: Field overrides applied on top of ``options``

    Thread-Safety:
        Safe for concurrent use from request threads. Outside development
        mode (and without ``use_mutex_lock``) the template set is assumed
        immutable after the first compile and no lock is taken.
    """

    __slots__ = ("_lock", "_opt", "_templates")

    def __init__(self, options: Options | None = None, **overrides: Any):
        base = options if options is not None else Options()
        if overrides:
            base = dataclasses.replace(base, **overrides)
        self._opt = base.prepared()
        self._lock: ReadWriteLock | NullLock = select_lock(
            self._opt.is_development, self._opt.use_mutex_lock
        )
        self._templates: TemplateSet | None = None

    @property
    def options(self) -> Options:
        """The prepared configuration (treat as read-only)."""
        return self._opt

    @property
    def lock(self) -> ReadWriteLock | NullLock:
        return self._lock

    @property
    def templates(self) -> TemplateSet | None:
        """The currently published template set, if any."""
        with self._lock.read():
            return self._templates

    def compile_templates(self) -> TemplateSet:
        """Compile the template directory and publish the result.

        On failure nothing stays published: lookups return ``None`` until a
        later compile succeeds.

        Raises:
            TemplateCompileError: If a template does not parse
            TemplateReadError: If a template file cannot be read
        """
        opt = self._opt
        with self._lock.write():
            try:
                templates = compile_templates(
                    opt.file_system,
                    opt.directory,
                    extensions=opt.extensions,
                    delims=opt.delims,
                    funcs=opt.funcs,
                    autoescape=opt.autoescape,
                )
            except Exception:
                self._templates = None
                raise
            self._templates = templates
            return templates

    def template_lookup(self, name: str) -> jinja2.Template | None:
        """Return the compiled unit called ``name``, or ``None``."""
        with self._lock.read():
            templates = self._templates
        if templates is None:
            return None
        return templates.lookup(name)

    def _current_templates(self) -> TemplateSet:
        if self._opt.is_development:
            with self._lock.write():
                self._templates = None
            logger.debug("development mode: discarded compiled templates")
        with self._lock.read():
            templates = self._templates
        if templates is None:
            templates = self.compile_templates()
        return templates

    def render(self, w: Writer, engine: Engine, data: Any = None) -> None:
        """Run ``engine`` against ``w``; answer with a 500 if it fails.

        The 500 is only written to `ResponseWriter` sinks and only when
        ``disable_http_error_rendering`` is off. The error is re-raised
        either way.
        """
        try:
            engine.render(w, data)
        except Exception as exc:
            self._error_response(w, exc)
            raise

    def _error_response(self, w: Writer, exc: Exception) -> None:
        if self._opt.disable_http_error_rendering or not isinstance(w, ResponseWriter):
            return
        logger.warning("rendering failed, answering with 500: %s", exc)
        http_error(w, str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)

    def html(
        self,
        w: Writer,
        status: int,
        name: str,
        data: Any = None,
        html_options: HTMLOptions | None = None,
    ) -> None:
        """Render the template ``name`` (inside the layout, if any) to ``w``.

        Raises:
            TemplateCompileError: If (re)compiling the templates failed
            TemplateExecutionError: If executing the page or layout failed
        """
        opt = self._opt
        call = opt.html_options(html_options)

        try:
            templates = self._current_templates()
        except Exception as exc:
            self._error_response(w, exc)
            raise

        funcs = call.funcs
        if call.layout and name in templates:
            callbacks = LayoutCallbacks(
                templates,
                name,
                data,
                funcs=funcs,
                require_partials=opt.require_partials,
                partials_without_suffix=opt.render_partials_without_suffix,
            )
            funcs = callbacks.namespace()
            name = call.layout

        engine = HTML(
            head=Head(opt.content_type(opt.html_content_type), status),
            name=name,
            templates=templates,
            buffer_pool=opt.buffer_pool,
            funcs=funcs,
            encoding=opt.encoding,
        )
        self.render(w, engine, data)

    def json(self, w: Writer, status: int, value: Any) -> None:
        opt = self._opt
        engine = JSON(
            head=Head(opt.content_type(CONTENT_JSON), status),
            indent=opt.indent_json,
            unescape_html=opt.unescape_html,
            prefix=opt.prefix_json,
            streaming=opt.streaming_json,
        )
        self.render(w, engine, value)

    def jsonp(self, w: Writer, status: int, callback: str, value: Any) -> None:
        opt = self._opt
        engine = JSONP(
            head=Head(opt.content_type(CONTENT_JSONP), status),
            callback=callback,
            indent=opt.indent_json,
        )
        self.render(w, engine, value)

    def xml(self, w: Writer, status: int, value: Any) -> None:
        opt = self._opt
        engine = XML(
            head=Head(opt.content_type(CONTENT_XML), status),
            indent=opt.indent_xml,
            prefix=opt.prefix_xml,
        )
        self.render(w, engine, value)

    def data(self, w: Writer, status: int, value: bytes) -> None:
        engine = Data(head=Head(CONTENT_BINARY, status))
        self.render(w, engine, value)

    def text(self, w: Writer, status: int, value: str) -> None:
        opt = self._opt
        engine = Text(head=Head(opt.content_type(CONTENT_TEXT), status), encoding=opt.encoding)
        self.render(w, engine, value)
