"""Rendering benchmarks: lock strategies, layouts and format engines.

Groups:
- "html:lock": NullLock (production) vs ReadWriteLock (use_mutex_lock)
- "html:layout": the same page with and without the layout pass
- "html:development": recompiling on every call
- "json": compact vs streaming encoding

Run with: pytest benchmarks/test_benchmark_render.py --benchmark-only
Compare: pytest benchmarks/test_benchmark_render.py --benchmark-compare
"""

from __future__ import annotations

import io

import pytest
from pytest_benchmark.fixture import BenchmarkFixture

from tessera import HTMLOptions, ResponseRecorder


def _html(render, data, options=None) -> None:
    render.html(ResponseRecorder(), 200, "page", data, options)


@pytest.mark.benchmark(group="html:lock")
def test_html_null_lock(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    benchmark(_html, make_render(), page_data)


@pytest.mark.benchmark(group="html:lock")
def test_html_rw_lock(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    benchmark(_html, make_render(use_mutex_lock=True), page_data)


@pytest.mark.benchmark(group="html:layout")
def test_html_with_layout(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    benchmark(_html, make_render(), page_data)


@pytest.mark.benchmark(group="html:layout")
def test_html_without_layout(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    benchmark(_html, make_render(layout=""), page_data)


@pytest.mark.benchmark(group="html:layout")
def test_html_with_call_funcs(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    options = HTMLOptions(funcs={"upper": str.upper})
    benchmark(_html, make_render(), page_data, options)


@pytest.mark.benchmark(group="html:development")
def test_html_development_mode(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    benchmark(_html, make_render(is_development=True), page_data)


@pytest.mark.benchmark(group="json")
def test_json_compact(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    render = make_render()
    benchmark(render.json, io.BytesIO(), 200, page_data)


@pytest.mark.benchmark(group="json")
def test_json_streaming(benchmark: BenchmarkFixture, make_render, page_data) -> None:
    render = make_render(streaming_json=True)
    benchmark(render.json, io.BytesIO(), 200, page_data)
