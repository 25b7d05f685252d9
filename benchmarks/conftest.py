"""Fixtures for tessera rendering benchmarks.

Run with: pytest benchmarks/ --benchmark-only
"""

from __future__ import annotations

import json
import os
import platform
import sys
from pathlib import Path

import pytest

from tessera import MemoryFileSystem, Render

try:
    import importlib.metadata as importlib_metadata
except ModuleNotFoundError:  # pragma: no cover
    import importlib_metadata  # type: ignore


BASE_DIR = Path(__file__).resolve().parent
BENCHMARK_OUTPUT_DIR = BASE_DIR.parent / ".benchmarks"

PAGE = """\
{% define "title-page" %}{{ title }}{% enddefine %}
<ul>
{% for item in items %}  <li class="{{ loop.cycle('odd', 'even') }}">{{ item.name }}: {{ item.value }}</li>
{% endfor %}</ul>
"""
LAYOUT = '<html><head><title>{{ partial("title") }}</title></head><body>{{ yield() }}</body></html>'


def _version(dist: str) -> str:
    try:
        return importlib_metadata.version(dist)
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def collect_environment_metadata() -> dict[str, object]:
    """Capture reproducibility metadata for each benchmark run."""
    return {
        "python": {
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": sys.executable,
        },
        "os": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "cpu": {
            "processor": platform.processor(),
            "count": os.cpu_count(),
        },
        "tessera": _version("tessera"),
        "jinja2": _version("jinja2"),
    }


@pytest.fixture(scope="session")
def environment_metadata() -> dict[str, object]:
    """Write environment metadata to .benchmarks for ingestion."""
    BENCHMARK_OUTPUT_DIR.mkdir(exist_ok=True)
    metadata = collect_environment_metadata()
    (BENCHMARK_OUTPUT_DIR / "environment.json").write_text(json.dumps(metadata, indent=2))
    return metadata


@pytest.fixture(scope="session")
def template_fs() -> MemoryFileSystem:
    return MemoryFileSystem({"templates/page.tmpl": PAGE, "templates/layout.tmpl": LAYOUT})


@pytest.fixture(scope="session")
def page_data() -> dict[str, object]:
    return {
        "title": "Benchmark",
        "items": [{"name": f"item-{i}", "value": i * 3} for i in range(100)],
    }


@pytest.fixture
def make_render(template_fs):
    def factory(**overrides) -> Render:
        overrides.setdefault("layout", "layout")
        render = Render(file_system=template_fs, **overrides)
        render.compile_templates()
        return render

    return factory
