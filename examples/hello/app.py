"""Hello World -- the simplest tessera example.

Compile an in-memory template tree and render a page inside a layout.
No templates directory needed.

Run:
    python app.py
"""

from tessera import MemoryFileSystem, Render, ResponseRecorder

render = Render(
    file_system=MemoryFileSystem(
        {
            "templates/home.tmpl": "Hello {{ data }}.",
            "templates/layout.tmpl": "<b>{{ yield() }}</b>",
        }
    ),
    layout="layout",
)

rec = ResponseRecorder()
render.html(rec, 200, "home", "World")
output = rec.text


def main() -> None:
    print(rec.status, rec.headers["Content-Type"])
    print(output)
    print()

    # Multiple renders with different data
    for name in ["Tessera", "Jinja", "Python"]:
        again = ResponseRecorder()
        render.html(again, 200, "home", name)
        print(again.text)


if __name__ == "__main__":
    main()
