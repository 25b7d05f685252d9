"""Tests for the filesystem implementations the store compiles from."""

from __future__ import annotations

import pytest

from tessera import DirFileSystem, FileSystem, MemoryFileSystem, PackageFileSystem
from tessera.filesystem import clean_path


class TestCleanPath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("", "."),
            (".", "."),
            ("./templates/", "templates"),
            ("templates//admin", "templates/admin"),
            ("/abs/path", "abs/path"),
            ("win\\style", "win/style"),
            ("a/../b", "b"),
        ],
    )
    def test_clean(self, raw: str, expected: str) -> None:
        assert clean_path(raw) == expected


class TestProtocol:
    def test_builtins_satisfy_protocol(self) -> None:
        assert isinstance(MemoryFileSystem(), FileSystem)
        assert isinstance(DirFileSystem(), FileSystem)
        assert isinstance(PackageFileSystem("tessera"), FileSystem)


class TestMemoryFileSystem:
    def test_walk_is_lexical_depth_first(self) -> None:
        fs = MemoryFileSystem(
            {
                "t/b.tmpl": "",
                "t/a/z.tmpl": "",
                "t/a/y.tmpl": "",
                "t/c.tmpl": "",
            }
        )
        assert list(fs.walk("t")) == [
            ("t", True),
            ("t/a", True),
            ("t/a/y.tmpl", False),
            ("t/a/z.tmpl", False),
            ("t/b.tmpl", False),
            ("t/c.tmpl", False),
        ]

    def test_walk_root(self) -> None:
        fs = MemoryFileSystem({"x.tmpl": "", "d/y.tmpl": ""})
        assert list(fs.walk(".")) == [(".", True), ("d", True), ("d/y.tmpl", False), ("x.tmpl", False)]

    def test_walk_missing_root(self) -> None:
        assert list(MemoryFileSystem({"a/b": ""}).walk("nope")) == []

    def test_read(self) -> None:
        fs = MemoryFileSystem({"a.tmpl": "héllo"})
        assert fs.read_file("a.tmpl") == "héllo".encode()
        assert fs.read_file("./a.tmpl") == "héllo".encode()

    def test_read_missing(self) -> None:
        with pytest.raises(FileNotFoundError):
            MemoryFileSystem().read_file("a.tmpl")

    def test_write_and_remove(self) -> None:
        fs = MemoryFileSystem()
        fs.write_file("t/a.tmpl", b"raw")
        assert fs.read_file("t/a.tmpl") == b"raw"
        fs.remove_file("t/a.tmpl")
        assert list(fs.walk("t")) == []


class TestDirFileSystem:
    def test_walk_and_read(self, tmp_path) -> None:
        (tmp_path / "templates" / "admin").mkdir(parents=True)
        (tmp_path / "templates" / "home.tmpl").write_text("home", encoding="utf-8")
        (tmp_path / "templates" / "admin" / "users.tmpl").write_text("users", encoding="utf-8")

        fs = DirFileSystem(tmp_path)
        assert list(fs.walk("templates")) == [
            ("templates", True),
            ("templates/admin", True),
            ("templates/admin/users.tmpl", False),
            ("templates/home.tmpl", False),
        ]
        assert fs.read_file("templates/admin/users.tmpl") == b"users"

    def test_walk_missing_directory(self, tmp_path) -> None:
        assert list(DirFileSystem(tmp_path).walk("nope")) == []

    def test_read_missing_raises_oserror(self, tmp_path) -> None:
        with pytest.raises(OSError):
            DirFileSystem(tmp_path).read_file("nope.tmpl")

    def test_base(self, tmp_path) -> None:
        assert DirFileSystem(tmp_path).base == tmp_path


class TestPackageFileSystem:
    def test_walk_skips_dunder_directories(self) -> None:
        fs = PackageFileSystem("tessera")
        entries = list(fs.walk("integrations"))
        assert entries[0] == ("integrations", True)
        files = [path for path, is_dir in entries if not is_dir]
        assert "integrations/__init__.py" in files
        assert "integrations/starlette.py" in files
        assert not any("__pycache__" in path for path, _ in entries)

    def test_read_file(self) -> None:
        fs = PackageFileSystem("tessera", "integrations")
        assert fs.read_file("__init__.py").startswith(b'"""')

    def test_walk_missing(self) -> None:
        assert list(PackageFileSystem("tessera").walk("no-such-dir")) == []
