"""Concurrent rendering -- 8 threads, one renderer, no cross-talk.

Each request renders a different page through the shared layout with its
own data and its own call-scoped function. Layout callbacks and per-call
functions live in the render namespace of that one call, so simultaneous
requests never see each other's page, partials or helpers.

Run:
    python app.py
"""

from concurrent.futures import ThreadPoolExecutor

from tessera import HTMLOptions, MemoryFileSystem, Render, ResponseRecorder

PAGE_SOURCE = """\
{% define "title-page-ID" %}Page ID{% enddefine %}
<article id="page-{{ page_id }}">
  <ul>
  {% for tag in tags %}
    <li>{{ badge(tag) }}</li>
  {% endfor %}
  </ul>
</article>"""

files = {
    "templates/layout.tmpl": '<title>{{ partial("title") }}</title>{{ yield() }}',
}
for i in range(8):
    files[f"templates/page-{i}.tmpl"] = PAGE_SOURCE.replace("ID", str(i))

render = Render(file_system=MemoryFileSystem(files), layout="layout", use_mutex_lock=True)

pages = [{"page_id": i, "tags": [f"tag-{i}-a", f"tag-{i}-b", f"tag-{i}-c"]} for i in range(8)]


def render_page(page: dict) -> str:
    """Render a single page -- called from a worker thread."""
    i = page["page_id"]
    rec = ResponseRecorder()
    options = HTMLOptions(funcs={"badge": lambda tag: f"[{i}] {tag}"})
    render.html(rec, 200, f"page-{i}", page, options)
    return rec.text


with ThreadPoolExecutor(max_workers=8) as pool:
    results = list(pool.map(render_page, pages))

output = "\n".join(results)


def main() -> None:
    print(f"Rendered {len(results)} pages across 8 threads:\n")
    for i, html in enumerate(results):
        print(f"--- Thread {i} ---")
        print(html)
        print()


if __name__ == "__main__":
    main()
