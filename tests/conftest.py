"""Pytest configuration and fixtures for tessera tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from tessera import MemoryFileSystem, Options, Render, ResponseRecorder, compile_templates

HOME = "Hello {{ data }}."
LAYOUT = "<b>{{ yield() }}</b>"


@pytest.fixture
def fs() -> MemoryFileSystem:
    """In-memory template tree with a page and a layout."""
    return MemoryFileSystem(
        {
            "templates/home.tmpl": HOME,
            "templates/layout.tmpl": LAYOUT,
        }
    )


@pytest.fixture
def rec() -> ResponseRecorder:
    return ResponseRecorder()


@pytest.fixture
def make_fs() -> Callable[..., MemoryFileSystem]:
    """Build a MemoryFileSystem from names relative to ``templates/``."""

    def factory(files: dict[str, str | bytes]) -> MemoryFileSystem:
        return MemoryFileSystem({f"templates/{path}": source for path, source in files.items()})

    return factory


@pytest.fixture
def make_set(make_fs):
    """Compile a TemplateSet from names relative to ``templates/``."""

    def factory(files: dict[str, str | bytes], **kwargs):
        return compile_templates(make_fs(files), "templates", **kwargs)

    return factory


@pytest.fixture
def render(fs) -> Render:
    """Renderer over the default page + layout tree, layout enabled."""
    return Render(Options(file_system=fs, layout="layout"))


@pytest.fixture
def make_render(make_fs):
    """Renderer over an ad-hoc tree; keyword arguments override Options fields."""

    def factory(files: dict[str, str | bytes], **overrides) -> Render:
        return Render(Options(file_system=make_fs(files)), **overrides)

    return factory


def assert_contains(result: str, *expected_parts: str) -> None:
    """Assert the result contains all expected parts.

    Args:
        result: The actual rendered output.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in result, (
            f"Rendered output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {result!r}"
        )
