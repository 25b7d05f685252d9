"""Fixtures for the tessera examples.

``example_app`` runs the ``app.py`` next to the test from inside the
example's own directory, so a ``Render()`` with the default ``DirFileSystem(".")``
compiles that example's ``templates/`` tree. Every test gets a freshly
executed module, and with it a fresh ``Render`` and template set.

``render_page`` renders one more page through the example's ``render``
and returns the recorder.
"""

from __future__ import annotations

import importlib.util
from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import Any

import pytest

from tessera import Render, ResponseRecorder


@pytest.fixture
def example_app(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> ModuleType:
    """Execute the sibling app.py with its directory as working directory."""
    example_dir = Path(request.path).parent
    monkeypatch.chdir(example_dir)

    module_name = f"tessera_example_{example_dir.name}"
    spec = importlib.util.spec_from_file_location(module_name, example_dir / "app.py")
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    render = getattr(module, "render", None)
    assert isinstance(render, Render), f"{example_dir.name}/app.py must define a Render named 'render'"
    return module


@pytest.fixture
def render_page(example_app: ModuleType) -> Callable[..., ResponseRecorder]:
    """Render ``name`` with ``data`` through the example's renderer."""

    def render(name: str, data: Any = None, status: int = 200) -> ResponseRecorder:
        rec = ResponseRecorder()
        example_app.render.html(rec, status, name, data)
        return rec

    return render
