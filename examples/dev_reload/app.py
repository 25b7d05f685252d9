"""Development mode -- edit templates without restarting.

With ``is_development=True`` every ``html()`` call recompiles the template
tree, so edits show up on the next request. A broken edit answers with a
500 carrying the compile error; fixing the file recovers on the next call.

Run:
    python app.py
"""

from tessera import MemoryFileSystem, Render, ResponseRecorder, TemplateCompileError

fs = MemoryFileSystem({"templates/home.tmpl": "v1: {{ data }}"})
render = Render(file_system=fs, is_development=True)


def request(data: str = "hi") -> ResponseRecorder:
    rec = ResponseRecorder()
    try:
        render.html(rec, 200, "home", data)
    except TemplateCompileError:
        pass  # the 500 response is already on rec
    return rec


before = request().text

fs.write_file("templates/home.tmpl", "v2: {{ data }}")
after = request().text

fs.write_file("templates/home.tmpl", "v3: {{ data }")
broken = request()

fs.write_file("templates/home.tmpl", "v4: {{ data }}")
recovered = request().text


def main() -> None:
    print(before)
    print(after)
    print(broken.status, broken.text.strip())
    print(recovered)


if __name__ == "__main__":
    main()
