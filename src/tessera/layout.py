"""Layout callbacks: let a layout template call back into the current page.

When a page is rendered inside a layout, the layout is executed instead of
the page and receives three functions bound to that one call:

- ``yield()``: the page's own rendered output (pre-escaped ``Markup``)
- ``current()``: the page's name
- ``partial(name)``: the page-scoped fragment ``"<name>-<page>"``

Example layout:
    ```
    <html>
      <head>{{ partial("head") }}</head>
      <body data-page="{{ current() }}">{{ yield() }}</body>
      {{ partial("footer") }}
    </html>
    ```

Partial Resolution:
``partial("footer")`` rendered for page ``home`` tries ``footer-home``. If
that unit does not exist and suffix fallback is enabled, plain ``footer`` is
tried. A partial that cannot be resolved renders as an empty string unless
partials are required, in which case executing the unresolved name raises
`TemplateNotDefinedError`.

Thread-Safety:
Callbacks are built per call and passed in the render namespace. They
never touch the shared environment, so concurrent requests rendering
different pages through different layouts do not see each other.

"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from markupsafe import Markup

from tessera.store import TemplateSet


@dataclass(slots=True)
class LayoutCallbacks:
    """The ``yield``/``current``/``partial`` trio for one render call.

    Attributes:
        templates: Template set the page and its partials live in
        page: Name of the requested page (before layout substitution)
        data: Value bound to the page
        funcs: Call-scoped functions the page and partials also see
        require_partials: Execute unresolved partials (and fail) instead of skipping them
        partials_without_suffix: Fall back to the bare partial name
    """

    templates: TemplateSet
    page: str
    data: Any = None
    funcs: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    require_partials: bool = False
    partials_without_suffix: bool = False

    def namespace(self) -> dict[str, Callable[..., Any]]:
        """Call-scoped functions plus the three layout callbacks."""
        return {
            **self.funcs,
            "yield": self.yield_,
            "current": self.current,
            "partial": self.partial,
        }

    def yield_(self) -> Markup:
        # already escaped while rendering the page
        return Markup(self.templates.render(self.page, self.data, self.namespace()))

    def current(self) -> str:
        return self.page

    def resolve_partial(self, name: str) -> str | None:
        """Name the partial ``name`` would execute, or ``None`` to skip it."""
        full_name = f"{name}-{self.page}"
        if full_name not in self.templates and self.partials_without_suffix:
            full_name = name
        if self.require_partials or full_name in self.templates:
            return full_name
        return None

    def partial(self, name: str) -> Markup:
        full_name = self.resolve_partial(name)
        if full_name is None:
            return Markup("")
        return Markup(self.templates.render(full_name, self.data, self.namespace()))
