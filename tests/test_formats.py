"""
Tests for File Formats
======================
JSON/YAML/TOML codecs and extension lookup in flatstore/formats.py.
"""

import pytest
import sys
from pathlib import Path

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flatstore.errors import FormatError
from flatstore.formats import (
    FORMATS,
    JSON,
    TOML,
    YAML,
    decode_text,
    format_for_path,
    get_format,
    supported_extensions,
)


SAMPLE = {
    "name": "flatstore",
    "server": {"port": 8080, "debug": False, "ratio": 0.25},
    "tags": ["a", "b"],
    "unicode": "Grüße",
}


class TestLookup:
    """Tests for format selection."""

    @pytest.mark.parametrize("filename,fmt", [
        ("a.json", JSON),
        ("a.yml", YAML),
        ("a.yaml", YAML),
        ("A.YAML", YAML),
        ("a.toml", TOML),
    ])
    def test_format_for_path(self, filename, fmt):
        assert format_for_path(filename) is fmt

    def test_unknown_extension(self):
        with pytest.raises(FormatError) as exc:
            format_for_path("settings.ini")
        assert ".json" in str(exc.value)

    def test_no_extension(self):
        with pytest.raises(FormatError):
            format_for_path("Makefile")

    def test_get_format(self):
        assert get_format("json") is JSON
        assert get_format("YAML") is YAML
        with pytest.raises(FormatError):
            get_format("xml")

    def test_registry(self):
        assert set(FORMATS) == {"json", "yaml", "toml"}
        assert supported_extensions() == [".json", ".toml", ".yaml", ".yml"]

    def test_default_extension(self):
        assert YAML.default_extension == ".yml"


class TestCodecs:
    """Tests shared by every codec."""

    @pytest.mark.parametrize("fmt", [JSON, YAML, TOML])
    def test_round_trip(self, fmt):
        assert fmt.parse(fmt.serialize(SAMPLE)) == SAMPLE

    @pytest.mark.parametrize("fmt", [JSON, YAML, TOML])
    @pytest.mark.parametrize("content", [b"", b"   \n"])
    def test_empty_content(self, fmt, content):
        assert fmt.parse(content) == {}

    @pytest.mark.parametrize("fmt", [JSON, YAML, TOML])
    def test_invalid_utf8(self, fmt):
        with pytest.raises(FormatError):
            fmt.parse(b"\xff\xfe\xfa")

    def test_decode_text(self):
        assert decode_text("Grüße".encode("utf-8"), "JSON") == "Grüße"
        with pytest.raises(FormatError, match="JSON"):
            decode_text(b"\xff", "JSON")

    @pytest.mark.parametrize("fmt", [JSON, YAML, TOML])
    def test_serialize_returns_bytes(self, fmt):
        assert isinstance(fmt.serialize({"a": 1}), bytes)


class TestJson:
    """Tests for the JSON codec."""

    def test_malformed(self):
        with pytest.raises(FormatError):
            JSON.parse(b'{"a": ')

    def test_top_level_list_rejected(self):
        with pytest.raises(FormatError):
            JSON.parse(b"[1, 2]")

    def test_indented_output(self):
        text = JSON.serialize({"a": {"b": 1}}).decode()
        assert text == '{\n  "a": {\n    "b": 1\n  }\n}\n'

    def test_unicode_not_escaped(self):
        assert "Grüße" in JSON.serialize({"u": "Grüße"}).decode("utf-8")

    def test_unserializable(self):
        with pytest.raises(FormatError):
            JSON.serialize({"a": object()})


class TestYaml:
    """Tests for the YAML codec."""

    def test_malformed(self):
        with pytest.raises(FormatError):
            YAML.parse(b"a: [1, 2\n")

    def test_top_level_scalar_rejected(self):
        with pytest.raises(FormatError):
            YAML.parse(b"just a string\n")

    def test_non_string_keys_stringified(self):
        assert YAML.parse(b"1: one\nnested:\n  2: two\n") == {"1": "one", "nested": {"2": "two"}}

    def test_block_style_insertion_order(self):
        text = YAML.serialize({"b": 1, "a": {"c": 2}}).decode()
        assert text == "b: 1\na:\n  c: 2\n"

    def test_null_round_trip(self):
        assert YAML.parse(YAML.serialize({"k": None})) == {"k": None}


class TestToml:
    """Tests for the TOML codec."""

    def test_malformed(self):
        with pytest.raises(FormatError):
            TOML.parse(b"a = \n")

    def test_none_rejected(self):
        with pytest.raises(FormatError):
            TOML.serialize({"k": None})

    def test_tables(self):
        assert TOML.parse(b"[server]\nport = 8080\n") == {"server": {"port": 8080}}
