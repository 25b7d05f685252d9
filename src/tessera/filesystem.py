"""Read-only filesystems the template store can compile from.

The template store needs exactly two operations from a filesystem: a
recursive walk yielding ``(path, is_dir)`` pairs and a whole-file read.
Anything implementing the ``FileSystem`` protocol can back a template set.

Built-in Filesystems:
- `DirFileSystem`: Local directories (the default, rooted at ``"."``)
- `MemoryFileSystem`: In-memory mapping of path → source (testing/embedded)
- `PackageFileSystem`: Files bundled in an installed package (importlib.resources)

Paths:
All paths use forward slashes regardless of platform. ``walk(root)`` yields
``root`` itself first, then every entry below it in lexical order per
directory, with paths that start with ``root``.

Custom Filesystems:
    ```python
    class DatabaseFileSystem:
        def walk(self, root):
            yield root, True
            for row in db.query("SELECT path FROM templates ORDER BY path"):
                yield f"{root}/{row.path}", False

        def read_file(self, path):
            return db.query_one("SELECT source FROM templates WHERE path = ?", path).source
    ```

Thread-Safety:
All built-in filesystems are safe for concurrent reads.

"""

from __future__ import annotations

import importlib.resources
import os
import posixpath
from collections.abc import Iterator, Mapping
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """Directory walk + file read contract consumed by the template store."""

    def walk(self, root: str) -> Iterator[tuple[str, bool]]: ...

    def read_file(self, path: str) -> bytes: ...


def clean_path(path: str) -> str:
    """Normalise a slash path: no ``.`` segments, no trailing slash.

    ``""`` and ``"."`` both denote the filesystem root and come back as ``"."``.
    Paths are always relative to the filesystem, so leading slashes are
    dropped: ``"/srv/templates"`` on ``DirFileSystem(".")`` means
    ``./srv/templates``.
    """
    path = path.replace("\\", "/")
    cleaned = posixpath.normpath(path) if path else "."
    return cleaned.lstrip("/") or "."


def _join(root: str, name: str) -> str:
    return name if root == "." else f"{root}/{name}"


class DirFileSystem:
    """Local directory tree rooted at ``base``.

    Unreadable or missing directories are skipped during ``walk`` rather
    than raised, so one broken subdirectory does not hide the rest of the
    tree. ``read_file`` raises ``OSError`` as usual.

    Example:
        >>> fs = DirFileSystem("site")
        >>> list(fs.walk("templates"))
        [('templates', True), ('templates/home.tmpl', False)]
        >>> fs.read_file("templates/home.tmpl")
        b'Hello {{ data }}.'

    """

    __slots__ = ("_base",)

    def __init__(self, base: str | Path = "."):
        self._base = Path(base)

    @property
    def base(self) -> Path:
        return self._base

    def walk(self, root: str) -> Iterator[tuple[str, bool]]:
        root = clean_path(root)
        top = self._base / root
        if not top.is_dir():
            if top.is_file():
                yield root, False
            return
        yield root, True
        yield from self._walk(top, root)

    def _walk(self, directory: Path, prefix: str) -> Iterator[tuple[str, bool]]:
        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError:
            return
        for entry in entries:
            path = _join(prefix, entry.name)
            try:
                is_dir = entry.is_dir()
            except OSError:
                continue
            yield path, is_dir
            if is_dir:
                yield from self._walk(Path(entry.path), path)

    def read_file(self, path: str) -> bytes:
        return (self._base / clean_path(path)).read_bytes()


class MemoryFileSystem:
    """In-memory filesystem mapping slash paths to file contents.

    Intermediate directories are implied by the file paths. Values may be
    ``str`` (encoded as UTF-8) or ``bytes``.

    Example:
        >>> fs = MemoryFileSystem({
        ...     "templates/home.tmpl": "Hello {{ data }}.",
        ...     "templates/admin/index.tmpl": "Admin",
        ... })
        >>> [p for p, is_dir in fs.walk("templates") if not is_dir]
        ['templates/admin/index.tmpl', 'templates/home.tmpl']

    """

    __slots__ = ("_files",)

    def __init__(self, files: Mapping[str, str | bytes] | None = None):
        self._files: dict[str, bytes] = {}
        for path, content in (files or {}).items():
            self.write_file(path, content)

    def write_file(self, path: str, content: str | bytes) -> None:
        """Add or replace a file."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._files[clean_path(path)] = content

    def remove_file(self, path: str) -> None:
        del self._files[clean_path(path)]

    def _children(self, directory: str) -> tuple[list[str], list[str]]:
        prefix = "" if directory == "." else directory + "/"
        files: set[str] = set()
        dirs: set[str] = set()
        for path in self._files:
            if not path.startswith(prefix):
                continue
            head, sep, _ = path[len(prefix) :].partition("/")
            (dirs if sep else files).add(head)
        return sorted(files), sorted(dirs)

    def walk(self, root: str) -> Iterator[tuple[str, bool]]:
        root = clean_path(root)
        if root in self._files:
            yield root, False
            return
        files, dirs = self._children(root)
        if not files and not dirs and root != ".":
            return
        yield root, True
        yield from self._walk_dir(root, files, dirs)

    def _walk_dir(self, directory: str, files: list[str], dirs: list[str]) -> Iterator[tuple[str, bool]]:
        # Lexical order per directory, the way os-level walks report entries.
        for name in sorted([*files, *dirs]):
            path = _join(directory, name)
            if name in files:
                yield path, False
            if name in dirs:
                yield path, True
                yield from self._walk_dir(path, *self._children(path))

    def read_file(self, path: str) -> bytes:
        try:
            return self._files[clean_path(path)]
        except KeyError:
            raise FileNotFoundError(path) from None


class PackageFileSystem:
    """Files bundled inside an installed Python package.

    Enables templates shipped with a distribution:
        - Reusable layouts (``pip install my-layouts``)
        - Applications deployed as a wheel or zipapp

    Example:
        >>> # my_app/
        >>> #   __init__.py
        >>> #   templates/
        >>> #     home.tmpl
        >>> fs = PackageFileSystem("my_app")
        >>> fs.read_file("templates/home.tmpl")

    Thread-Safety:
        Safe. ``importlib.resources`` is thread-safe for reads.
    """

    __slots__ = ("_package_name", "_package_path")

    def __init__(self, package_name: str, package_path: str = ""):
        self._package_name = package_name
        self._package_path = package_path

    def _resolve(self, path: str) -> Traversable:
        resource = importlib.resources.files(self._package_name)
        for part in f"{self._package_path}/{clean_path(path)}".split("/"):
            if part and part != ".":
                resource = resource.joinpath(part)
        return resource

    def walk(self, root: str) -> Iterator[tuple[str, bool]]:
        root = clean_path(root)
        resource = self._resolve(root)
        if resource.is_file():
            yield root, False
            return
        if not resource.is_dir():
            return
        yield root, True
        yield from self._walk(resource, root)

    def _walk(self, traversable: Traversable, prefix: str) -> Iterator[tuple[str, bool]]:
        try:
            items = sorted(traversable.iterdir(), key=lambda item: item.name)
        except (FileNotFoundError, NotADirectoryError):
            return
        for item in items:
            path = _join(prefix, item.name)
            if item.is_dir():
                if item.name.startswith("__"):
                    continue
                yield path, True
                yield from self._walk(item, path)
            else:
                yield path, False

    def read_file(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()
