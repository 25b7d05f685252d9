"""Tests for the non-HTML format engines, driven through Render."""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET

import pytest

from tessera import EncodingError, Head, MemoryFileSystem, Render, ResponseRecorder
from tessera.engines import JSON, Text


@pytest.fixture
def r() -> Render:
    return Render(file_system=MemoryFileSystem())


def make(**overrides) -> Render:
    return Render(file_system=MemoryFileSystem(), **overrides)


class TestJSON:
    def test_compact_with_headers(self, r, rec) -> None:
        r.json(rec, 201, {"a": 1, "b": [1, 2]})
        assert rec.status == 201
        assert rec.headers["Content-Type"] == "application/json; charset=UTF-8"
        assert bytes(rec.body) == b'{"a":1,"b":[1,2]}'

    def test_html_characters_are_escaped(self, r, rec) -> None:
        r.json(rec, 200, {"a": "<b>&</b>"})
        assert bytes(rec.body) == b'{"a":"\\u003cb\\u003e\\u0026\\u003c/b\\u003e"}'

    def test_line_terminators_are_escaped(self, r, rec) -> None:
        r.json(rec, 200, "a\u2028b\u2029c")
        assert bytes(rec.body) == b'"a\\u2028b\\u2029c"'

    def test_unescape_html(self, rec) -> None:
        make(unescape_html=True).json(rec, 200, {"a": "<b>"})
        assert bytes(rec.body) == b'{"a":"<b>"}'

    def test_non_ascii_is_kept(self, r, rec) -> None:
        r.json(rec, 200, "café")
        assert rec.text == '"café"'

    def test_indent(self, rec) -> None:
        make(indent_json=True).json(rec, 200, {"a": 1})
        assert rec.text == '{\n  "a": 1\n}'

    def test_prefix(self, rec) -> None:
        make(prefix_json=b")]}',\n").json(rec, 200, [1])
        assert bytes(rec.body) == b")]}',\n[1]"

    def test_streaming(self, rec) -> None:
        make(streaming_json=True).json(rec, 200, {"a": "<"})
        assert bytes(rec.body) == b'{"a":"\\u003c"}\n'

    def test_streaming_indent(self, rec) -> None:
        make(streaming_json=True, indent_json=True).json(rec, 200, [1])
        assert rec.text == "[\n  1\n]\n"

    def test_unserialisable_value(self, r, rec) -> None:
        with pytest.raises(EncodingError) as exc_info:
            r.json(rec, 200, {"a": object()})
        assert exc_info.value.code.value == "T-ENC-001"
        assert rec.status == 500
        assert rec.text.startswith("json: ")

    def test_disable_charset(self, rec) -> None:
        make(disable_charset=True).json(rec, 200, None)
        assert rec.headers["Content-Type"] == "application/json"
        assert bytes(rec.body) == b"null"


class TestJSONP:
    def test_wraps_in_callback(self, r, rec) -> None:
        r.jsonp(rec, 200, "cb", [1, 2])
        assert rec.headers["Content-Type"] == "application/javascript; charset=UTF-8"
        assert bytes(rec.body) == b"cb([1,2]);"

    def test_escapes_html(self, r, rec) -> None:
        r.jsonp(rec, 200, "cb", "</script>")
        assert bytes(rec.body) == b'cb("\\u003c/script\\u003e");'


class TestXML:
    def test_element(self, r, rec) -> None:
        el = ET.Element("greeting", lang="en")
        el.text = "hi"
        r.xml(rec, 200, el)
        assert rec.headers["Content-Type"] == "text/xml; charset=UTF-8"
        assert bytes(rec.body) == b'<greeting lang="en">hi</greeting>'

    def test_object_with_xml_hook(self, r, rec) -> None:
        class Note:
            def __xml__(self) -> ET.Element:
                return ET.Element("note")

        r.xml(rec, 200, Note())
        assert bytes(rec.body) == b"<note />"

    def test_prebuilt_string(self, r, rec) -> None:
        r.xml(rec, 200, "<a>b</a>")
        assert bytes(rec.body) == b"<a>b</a>"

    def test_indent_leaves_input_untouched(self, rec) -> None:
        root = ET.Element("root")
        ET.SubElement(root, "child")
        make(indent_xml=True).xml(rec, 200, root)
        assert rec.text == "<root>\n  <child />\n</root>"
        assert root.text is None

    def test_prefix(self, rec) -> None:
        make(prefix_xml=b'<?xml version="1.0"?>\n').xml(rec, 200, ET.Element("a"))
        assert rec.text == '<?xml version="1.0"?>\n<a />'

    def test_unsupported_value(self, r, rec) -> None:
        with pytest.raises(EncodingError, match="cannot marshal int"):
            r.xml(rec, 200, 42)
        assert rec.status == 500


class TestDataAndText:
    def test_data(self, r, rec) -> None:
        r.data(rec, 200, b"\x00\x01")
        assert rec.headers["Content-Type"] == "application/octet-stream"
        assert bytes(rec.body) == b"\x00\x01"

    def test_data_keeps_existing_content_type(self, r, rec) -> None:
        rec.headers["Content-Type"] = "image/png"
        r.data(rec, 200, b"png")
        assert rec.headers["Content-Type"] == "image/png"

    def test_text(self, r, rec) -> None:
        r.text(rec, 202, "plain")
        assert rec.status == 202
        assert rec.headers["Content-Type"] == "text/plain; charset=UTF-8"
        assert rec.text == "plain"

    def test_text_keeps_existing_content_type(self, r, rec) -> None:
        rec.headers["Content-Type"] = "text/csv"
        r.text(rec, 200, "a,b")
        assert rec.headers["Content-Type"] == "text/csv"


class TestEnginesDirectly:
    """Engines can be used without a Render, on any writable sink."""

    def test_plain_stream_gets_body_only(self) -> None:
        buf = io.BytesIO()
        JSON(head=Head("application/json", 200)).render(buf, {"k": "v"})
        assert buf.getvalue() == b'{"k":"v"}'

    def test_render_drives_custom_engine(self, r, rec) -> None:
        r.render(rec, Text(head=Head("text/x-custom", 200)), "custom")
        assert rec.headers["Content-Type"] == "text/x-custom"
        assert rec.text == "custom"
