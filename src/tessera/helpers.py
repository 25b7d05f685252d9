"""Built-in functions available in every compiled template set.

``yield``, ``partial`` and ``current`` only mean something while a layout
is being rendered; the renderer then shadows them with per-call callbacks
(see `tessera.layout`). Outside a layout they fail loudly (``yield``,
``partial``) or return an empty name (``current``), so a page that was
accidentally written against a layout does not render silently broken.

"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from markupsafe import Markup

from tessera.exceptions import LayoutError

FuncMap = dict[str, Callable[..., Any]]


def _yield() -> Markup:
    raise LayoutError("yield called with no layout defined")


def _partial(name: str) -> Markup:
    raise LayoutError(f"partial {name!r} called with no layout defined")


def _current() -> str:
    return ""


HELPER_FUNCS: FuncMap = {
    "yield": _yield,
    "partial": _partial,
    "current": _current,
}


def merge_funcs(*maps: FuncMap | None) -> FuncMap:
    """Merge function maps left to right; later keys win."""
    merged: FuncMap = {}
    for funcs in maps:
        if funcs:
            merged.update(funcs)
    return merged
