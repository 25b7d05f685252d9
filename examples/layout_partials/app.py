"""Layouts and partials -- the most common real-world pattern.

Loads templates from disk, wraps every page in ``layout.tmpl`` and lets
each page contribute page-scoped fragments through ``{% define %}``:

- ``title-home`` / ``title-about`` fill the layout's ``partial("title")``
- only ``home`` defines a footer, so ``about`` renders without one

Templates are read from ./templates, relative to the working directory.

Run:
    cd examples/layout_partials && python app.py
"""

from tessera import Render, ResponseRecorder

render = Render(layout="layout")

site = {
    "site_name": "My Site",
    "nav_items": [
        {"url": "/", "label": "Home", "page": "home"},
        {"url": "/about", "label": "About", "page": "about"},
    ],
}


def page(name: str, **data) -> ResponseRecorder:
    rec = ResponseRecorder()
    render.html(rec, 200, name, {**site, **data})
    return rec


home_output = page("home", user="Ada").text
about_output = page("about", description="Rendered with tessera & Jinja2.").text


def main() -> None:
    print("=== Home Page ===")
    print(home_output)
    print()
    print("=== About Page ===")
    print(about_output)


if __name__ == "__main__":
    main()
