"""Exceptions for the tessera rendering layer.

Exception Hierarchy:
RenderError (base)
├── TemplateCompileError        # Parse-time error in a template file (fatal)
├── TemplateReadError           # File read failed during a compile pass (fatal)
├── TemplateExecutionError      # Render-time error raised while executing a unit
│   ├── TemplateNotDefinedError # Executed name is not part of the template set
│   └── LayoutError             # yield/partial called outside of a layout
└── EncodingError               # JSON/XML marshalling failed

Compile errors abort the whole compile pass: a template set is either fully
built or not published at all. Execution errors are returned to the caller of
``Render.html()`` (and optionally rendered as a 500 response first).

Example:
    ```
    T-CMP-001: unexpected '}'
      --> templates/home.tmpl:3
       |
      3 | <h1>{{ title }}}</h1>
       |
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes for tessera errors.

    Format: T-{CATEGORY}-{NUMBER}
    Categories: CMP (compile), RUN (execution), LAY (layout), ENC (encoding)
    """

    # Compile errors (T-CMP-xxx)
    SYNTAX_ERROR = "T-CMP-001"
    READ_ERROR = "T-CMP-002"

    # Execution errors (T-RUN-xxx)
    EXECUTION_ERROR = "T-RUN-001"
    TEMPLATE_NOT_DEFINED = "T-RUN-002"

    # Layout errors (T-LAY-xxx)
    NO_LAYOUT = "T-LAY-001"

    # Encoding errors (T-ENC-xxx)
    MARSHAL_ERROR = "T-ENC-001"

    @property
    def category(self) -> str:
        """Error category (e.g., 'compile', 'execution')."""
        prefix = self.value.split("-")[1]
        return {
            "CMP": "compile",
            "RUN": "execution",
            "LAY": "layout",
            "ENC": "encoding",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int

    def format(self) -> str:
        """Format snippet with line numbers, marking the error line."""
        parts: list[str] = ["   |"]
        for lineno, content in self.lines:
            marker = ">" if lineno == self.error_line else " "
            parts.append(f"{marker}{lineno:>3} | {content}")
        parts.append("   |")
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.

    Returns:
        SourceSnippet with surrounding context lines.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RenderError(Exception):
    """Base exception for all tessera errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a one-header summary prefixed with its code."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateCompileError(RenderError):
    """A template file failed to parse.

    Raised by the template store; the compile pass that raised it published
    nothing.

    Attributes:
        message: Parser message from the template engine
        name: Derived template name (relative path without extension)
        filename: Path of the file on the filesystem
        lineno: 1-based line of the error, when known
        source: Full source text of the file
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        filename: str | None = None,
        lineno: int | None = None,
        source: str | None = None,
    ):
        self.message = message
        self.name = name
        self.filename = filename
        self.lineno = lineno
        self.source = source
        super().__init__(self._format_message())

    @property
    def location(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
        return location

    def _format_message(self) -> str:
        return f"{self.location}: {self.message}"

    @property
    def snippet(self) -> SourceSnippet | None:
        if not self.source or not self.lineno:
            return None
        return build_source_snippet(self.source, self.lineno)

    def format_compact(self) -> str:
        """Format syntax error with code, location and source snippet."""
        code_prefix = f"{self.code.value}: " if self.code else ""
        parts = [f"{code_prefix}{self.message}", f"  --> {self.location}"]
        snippet = self.snippet
        if snippet is not None:
            parts.append(snippet.format())
        return "\n".join(parts)


class TemplateReadError(RenderError):
    """A matched template file could not be read during a compile pass."""

    code: ErrorCode | None = ErrorCode.READ_ERROR

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"reading template {path!r}: {reason}")


class TemplateExecutionError(RenderError):
    """Executing a template unit failed.

    Wraps errors raised by the template engine or by template functions; the
    original exception is available as ``__cause__``.

    Attributes:
        message: Error description
        template_name: Name of the unit being executed
    """

    code: ErrorCode | None = ErrorCode.EXECUTION_ERROR

    def __init__(self, message: str, *, template_name: str | None = None):
        self.message = message
        self.template_name = template_name
        if template_name:
            super().__init__(f"template {template_name!r}: {message}")
        else:
            super().__init__(message)


class TemplateNotDefinedError(TemplateExecutionError):
    """The executed name is not part of the compiled template set."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_DEFINED

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no such template {name!r}")


class LayoutError(TemplateExecutionError):
    """A layout-only helper was called while no layout is being rendered."""

    code: ErrorCode | None = ErrorCode.NO_LAYOUT


class EncodingError(RenderError):
    """Marshalling a JSON or XML payload failed."""

    code: ErrorCode | None = ErrorCode.MARSHAL_ERROR
