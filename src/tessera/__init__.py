"""Tessera: layouts and partials over a compiled directory of Jinja2 templates.

Tessera turns a directory tree of template files into one named template set
and renders complete HTTP responses from it: a page, optionally wrapped in a
layout that pulls the page in with ``yield()`` and page-specific fragments
with ``partial()``.

Quickstart:
    >>> from tessera import Render, ResponseRecorder
    >>> # templates/home.tmpl:   Hello {{ data }}.
    >>> # templates/layout.tmpl: <b>{{ yield() }}</b>
    >>> r = Render(layout="layout")
    >>> rec = ResponseRecorder()
    >>> r.html(rec, 200, "home", "World")
    >>> rec.headers["Content-Type"], rec.text
    ('text/html; charset=UTF-8', '<b>Hello World.</b>')

Architecture:
Template Files → FileSystem.walk → compile_templates → TemplateSet → Render

1. **FileSystem**: walks the template directory (disk, memory, package data)
2. **Template Store**: compiles allow-listed files into named units
   (``admin/users.tmpl`` → ``admin/users``) plus ``{% define %}`` fragments
3. **Layout Callbacks**: ``yield``/``current``/``partial`` bound per call
4. **Render**: recompilation policy, layout substitution, pooled buffers,
   headers and error responses

Development Mode:
``Render(is_development=True)`` recompiles the whole set on every HTML call,
so template edits show up without a restart. Never enable it in production.

Thread-Safety:
``Render`` is safe to share between request threads. The template set is
swapped as a whole under a read/write lock when it can change (development
mode or ``use_mutex_lock=True``); otherwise it is compiled once and read
without locking.

"""

from tessera.bufferpool import BufferPool, SizedBufferPool
from tessera.engines import HTML, JSON, JSONP, XML, Data, Engine, Head, Text
from tessera.exceptions import (
    EncodingError,
    ErrorCode,
    LayoutError,
    RenderError,
    SourceSnippet,
    TemplateCompileError,
    TemplateExecutionError,
    TemplateNotDefinedError,
    TemplateReadError,
)
from tessera.filesystem import DirFileSystem, FileSystem, MemoryFileSystem, PackageFileSystem
from tessera.helpers import FuncMap
from tessera.layout import LayoutCallbacks
from tessera.locking import NullLock, ReadWriteLock, select_lock
from tessera.options import (
    CONTENT_BINARY,
    CONTENT_HTML,
    CONTENT_JSON,
    CONTENT_JSONP,
    CONTENT_TEXT,
    CONTENT_XHTML,
    CONTENT_XML,
    HTMLOptions,
    Options,
)
from tessera.render import Render
from tessera.response import ResponseRecorder, ResponseWriter, http_error
from tessera.store import Delims, TemplateSet, compile_templates

__version__ = "0.1.0"

__all__ = [
    "CONTENT_BINARY",
    "CONTENT_HTML",
    "CONTENT_JSON",
    "CONTENT_JSONP",
    "CONTENT_TEXT",
    "CONTENT_XHTML",
    "CONTENT_XML",
    "HTML",
    "JSON",
    "JSONP",
    "XML",
    "BufferPool",
    "Data",
    "Delims",
    "DirFileSystem",
    "EncodingError",
    "Engine",
    "ErrorCode",
    "FileSystem",
    "FuncMap",
    "HTMLOptions",
    "Head",
    "LayoutCallbacks",
    "LayoutError",
    "MemoryFileSystem",
    "NullLock",
    "Options",
    "PackageFileSystem",
    "ReadWriteLock",
    "Render",
    "RenderError",
    "ResponseRecorder",
    "ResponseWriter",
    "SizedBufferPool",
    "SourceSnippet",
    "TemplateCompileError",
    "TemplateExecutionError",
    "TemplateNotDefinedError",
    "TemplateReadError",
    "TemplateSet",
    "Text",
    "__version__",
    "compile_templates",
    "http_error",
    "select_lock",
]
