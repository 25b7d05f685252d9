"""Template store: compile a directory tree into one named template set.

Every file below the template directory whose extension is allow-listed
becomes a named unit of a single `TemplateSet`:

    templates/home.tmpl          → "home"
    templates/admin/users.tmpl   → "admin/users"
    templates/notes.txt          → (skipped, extension not allowed)

Files may additionally declare named fragments that join the same set:

    {% define "footer-home" %}<footer>...</footer>{% enddefine %}

A define produces no output where it is written; it is rendered by name,
typically through a layout's ``partial()`` callback or ``{% include %}``.
Only the define body runs: macros and ``{% set %}`` values from the top
level of the surrounding file are not visible inside it. Put shared macros
in their own file and ``{% import %}`` them inside the define. A name may be
defined once per file.

Compilation is all-or-nothing. The first unreadable or unparsable file
aborts the pass with `TemplateReadError` / `TemplateCompileError` and no
set is returned.

Thread-Safety:
A `TemplateSet` is only mutated while it is being built by
`compile_templates()`. Once returned it is read-only, and concurrent
``render()``/``execute()`` calls share nothing but the compiled code.

"""

from __future__ import annotations

import logging
import posixpath
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import IO, Any
from weakref import WeakKeyDictionary

import jinja2
from jinja2 import nodes
from jinja2.ext import Extension
from jinja2.parser import Parser

from tessera.exceptions import (
    RenderError,
    TemplateCompileError,
    TemplateExecutionError,
    TemplateNotDefinedError,
    TemplateReadError,
)
from tessera.filesystem import FileSystem, clean_path
from tessera.helpers import HELPER_FUNCS, FuncMap, merge_funcs

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".tmpl",)

# Defines are compiled as Jinja2 blocks. Block names end up as Python
# identifiers, so the define name is hex-encoded behind this prefix.
_DEFINE_PREFIX = "tessera_define_"


@dataclass(frozen=True, slots=True)
class Delims:
    """Delimiters of template output expressions.

    Attributes:
        left: Opening delimiter (default ``{{``)
        right: Closing delimiter (default ``}}``)
    """

    left: str = "{{"
    right: str = "}}"

    def or_default(self) -> Delims:
        """Replace empty sides with the default delimiters."""
        return Delims(self.left or "{{", self.right or "}}")


def define_key(name: str) -> str:
    """Block name under which the define ``name`` is compiled."""
    return _DEFINE_PREFIX + name.encode("utf-8").hex()


def define_name(key: str) -> str | None:
    """Inverse of `define_key`; ``None`` for ordinary block names."""
    if not key.startswith(_DEFINE_PREFIX):
        return None
    return bytes.fromhex(key[len(_DEFINE_PREFIX) :]).decode("utf-8")


class DefineExtension(Extension):
    """``{% define "name" %}...{% enddefine %}`` named fragments.

    The body becomes a block that is never rendered in place (it sits behind
    a constant-false branch); the template store later publishes it as its
    own unit under ``name``. The body sees the same variables as the page it
    is rendered for.
    """

    tags = {"define"}

    def __init__(self, environment: jinja2.Environment):
        super().__init__(environment)
        # define names seen so far, per template being parsed
        self._seen: WeakKeyDictionary[Parser, set[str]] = WeakKeyDictionary()

    def parse(self, parser: Parser) -> nodes.Node:
        lineno = next(parser.stream).lineno
        name = parser.stream.expect("string").value
        if not name:
            parser.fail("define requires a non-empty name", lineno)
        seen = self._seen.setdefault(parser, set())
        if name in seen:
            parser.fail(f"define {name!r} declared twice", lineno)
        seen.add(name)
        body = parser.parse_statements(("name:enddefine",), drop_needle=True)
        block = nodes.Block(define_key(name), body, False, False, lineno=lineno)
        return nodes.If(nodes.Const(False), [block], [], [], lineno=lineno)


class _SetLoader(jinja2.BaseLoader):
    """Resolves ``{% include %}`` / ``{% import %}`` against the set itself."""

    has_source_access = False

    def __init__(self, templates: Mapping[str, jinja2.Template]):
        self._templates = templates

    def load(
        self,
        environment: jinja2.Environment,
        name: str,
        globals: Mapping[str, Any] | None = None,
    ) -> jinja2.Template:
        template = self._templates.get(name)
        if template is None:
            raise jinja2.TemplateNotFound(name)
        return template

    def list_templates(self) -> list[str]:
        return sorted(self._templates)


class TemplateSet:
    """Named collection of compiled templates sharing one namespace.

    Names are unique; adding a unit under an existing name replaces it.
    Units are plain ``jinja2.Template`` objects, so anything Jinja2 can
    render works here, including ``{% include "other/name" %}``.

    Data Binding:
        The value passed to ``render()``/``execute()`` is available as
        ``data``. When it is a mapping its keys are also top-level
        variables. Call-scoped functions are applied last and win over
        both.

            >>> ts.render("home", {"user": "ada"})   # {{ user }} or {{ data.user }}
            >>> ts.render("home", "World")           # {{ data }}

    Attributes:
        environment: The ``jinja2.Environment`` the units were compiled in
    """

    __slots__ = ("_environment", "_templates")

    def __init__(
        self,
        *,
        delims: Delims | None = None,
        funcs: Iterable[FuncMap] = (),
        autoescape: bool = True,
    ):
        delims = (delims or Delims()).or_default()
        self._templates: dict[str, jinja2.Template] = {}
        self._environment = jinja2.Environment(
            loader=_SetLoader(self._templates),
            autoescape=autoescape,
            variable_start_string=delims.left,
            variable_end_string=delims.right,
            extensions=[DefineExtension],
            cache_size=0,
            auto_reload=False,
            keep_trailing_newline=True,
        )
        self._environment.globals.update(merge_funcs(HELPER_FUNCS, *funcs))

    @property
    def environment(self) -> jinja2.Environment:
        return self._environment

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def names(self) -> list[str]:
        """Sorted names of all units in the set."""
        return sorted(self._templates)

    def lookup(self, name: str) -> jinja2.Template | None:
        """Return the unit called ``name``, or ``None``."""
        return self._templates.get(name)

    def add_source(self, name: str, source: str, filename: str | None = None) -> jinja2.Template:
        """Compile ``source`` and register it (and its defines) in the set.

        Raises:
            TemplateCompileError: If the source does not parse
        """
        env = self._environment
        try:
            code = env.compile(source, name, filename)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateCompileError(
                exc.message or str(exc),
                name=name,
                filename=filename,
                lineno=exc.lineno,
                source=source,
            ) from exc
        template = env.template_class.from_code(env, code, env.make_globals(None))
        self._register(name, template)

        for key in template.blocks:
            define = define_name(key)
            if define is not None:
                self._register(define, self._define_unit(template, define, key))
        return template

    def _define_unit(self, parent: jinja2.Template, name: str, key: str) -> jinja2.Template:
        namespace = {
            "name": name,
            "__file__": parent.filename,
            "blocks": parent.blocks,
            "root": parent.blocks[key],
            "debug_info": "",
        }
        return self._environment.template_class.from_module_dict(
            self._environment, namespace, parent.globals
        )

    def _register(self, name: str, template: jinja2.Template) -> None:
        if name in self._templates:
            logger.debug("template %r redefined, replacing previous unit", name)
        self._templates[name] = template

    def _generate(self, name: str, data: Any, funcs: Mapping[str, Callable[..., Any]] | None) -> Iterator[str]:
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotDefinedError(name)
        context: dict[str, Any] = {}
        if isinstance(data, Mapping):
            context.update(data)
        context["data"] = data
        if funcs:
            context.update(funcs)
        try:
            yield from template.generate(context)
        except RenderError:
            raise
        except Exception as exc:
            raise TemplateExecutionError(str(exc), template_name=name) from exc

    def render(
        self,
        name: str,
        data: Any = None,
        funcs: Mapping[str, Callable[..., Any]] | None = None,
    ) -> str:
        """Execute the unit ``name`` and return its output.

        Raises:
            TemplateNotDefinedError: If ``name`` is not in the set
            TemplateExecutionError: If execution fails
        """
        return "".join(self._generate(name, data, funcs))

    def execute(
        self,
        stream: IO[bytes],
        name: str,
        data: Any = None,
        funcs: Mapping[str, Callable[..., Any]] | None = None,
        encoding: str = "utf-8",
    ) -> None:
        """Execute the unit ``name``, writing encoded output to ``stream``.

        Raises:
            TemplateNotDefinedError: If ``name`` is not in the set
            TemplateExecutionError: If execution fails, or the output cannot
                be encoded with ``encoding``
        """
        write = stream.write
        for chunk in self._generate(name, data, funcs):
            try:
                encoded = chunk.encode(encoding)
            except (UnicodeEncodeError, LookupError) as exc:
                raise TemplateExecutionError(
                    f"cannot encode output as {encoding}: {exc}", template_name=name
                ) from exc
            write(encoded)


def compile_templates(
    fs: FileSystem,
    directory: str,
    *,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    delims: Delims | None = None,
    funcs: Iterable[FuncMap] = (),
    autoescape: bool = True,
    encoding: str = "utf-8",
) -> TemplateSet:
    """Walk ``directory`` on ``fs`` and compile every allow-listed file.

    Args:
        fs: Filesystem to read from
        directory: Root of the template tree, relative to the root of ``fs``
        extensions: Allowed file extensions, including the dot
        delims: Output delimiters shared by every unit
        funcs: Function maps merged (later wins) on top of the built-in helpers
        autoescape: HTML-escape output expressions
        encoding: Encoding of the template files

    Returns:
        A fully built TemplateSet

    Raises:
        TemplateReadError: If a matched file cannot be read or decoded
        TemplateCompileError: If a matched file does not parse
    """
    start = time.perf_counter()
    directory = clean_path(directory)
    allowed = frozenset(extensions)
    templates = TemplateSet(delims=delims, funcs=funcs, autoescape=autoescape)

    for path, is_dir in fs.walk(directory):
        if is_dir:
            continue
        rel = path if directory == "." else path[len(directory) + 1 :]
        ext = posixpath.splitext(rel)[1]
        if ext not in allowed:
            continue
        try:
            source = fs.read_file(path).decode(encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateReadError(path, str(exc)) from exc
        name = rel[: -len(ext)]
        templates.add_source(name, source, filename=path)
        logger.debug("compiled template %r from %s", name, path)

    logger.info(
        "compiled %d templates from %r in %.1fms",
        len(templates),
        directory,
        (time.perf_counter() - start) * 1000,
    )
    return templates
