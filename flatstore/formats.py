#!/usr/bin/env python3
"""
File Formats
============
Codecs turning file bytes into a nested dict and back.

Each Format is a pair of pure functions:

    parse(bytes) -> dict
    serialize(dict) -> bytes

The format for a file is chosen by its extension:

    .json          JSON
    .yml, .yaml    YAML (PyYAML, safe loader/dumper)
    .toml          TOML (tomllib / tomli_w)

Empty or whitespace-only content parses to {} for every format.
"""

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

import tomli_w
import yaml

from flatstore.errors import FormatError
from flatstore.settings import get_setting


@dataclass(frozen=True)
class Format:
    """A named parse/serialize pair and the file extensions it handles."""
    name: str
    extensions: Tuple[str, ...]
    parse: Callable[[bytes], dict]
    serialize: Callable[[dict], bytes]

    @property
    def default_extension(self) -> str:
        return self.extensions[0]


# =============================================================================
# Helpers
# =============================================================================

def _encoding() -> str:
    return get_setting("flatfile.encoding", "utf-8")


def decode_text(data: bytes, fmt: str) -> str:
    try:
        return data.decode(_encoding())
    except UnicodeDecodeError as e:
        raise FormatError(f"{fmt} content is not valid {_encoding()}: {e}") from e


def _require_mapping(loaded: Any, fmt: str) -> dict:
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise FormatError(
            f"{fmt} top level must be a mapping, got {type(loaded).__name__}"
        )
    return loaded


def _stringify_keys(value: Any) -> Any:
    # YAML allows int/bool keys; dotted paths only address strings
    if isinstance(value, dict):
        return {str(k): _stringify_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_keys(v) for v in value]
    return value


# =============================================================================
# JSON
# =============================================================================

def parse_json(data: bytes) -> dict:
    text = decode_text(data, "JSON")
    if not text.strip():
        return {}
    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid JSON: {e}") from e
    return _require_mapping(loaded, "JSON")


def serialize_json(data: dict) -> bytes:
    indent = get_setting("formats.json.indent", 2)
    try:
        text = json.dumps(data, indent=indent, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Cannot serialize to JSON: {e}") from e
    return (text + "\n").encode(_encoding())


# =============================================================================
# YAML
# =============================================================================

def parse_yaml(data: bytes) -> dict:
    text = decode_text(data, "YAML")
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise FormatError(f"Invalid YAML: {e}") from e
    return _stringify_keys(_require_mapping(loaded, "YAML"))


def serialize_yaml(data: dict) -> bytes:
    try:
        text = yaml.safe_dump(
            data,
            default_flow_style=False,
            sort_keys=bool(get_setting("formats.yaml.sort_keys", False)),
            allow_unicode=True,
        )
    except yaml.YAMLError as e:
        raise FormatError(f"Cannot serialize to YAML: {e}") from e
    return text.encode(_encoding())


# =============================================================================
# TOML
# =============================================================================

def parse_toml(data: bytes) -> dict:
    text = decode_text(data, "TOML")
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise FormatError(f"Invalid TOML: {e}") from e


def serialize_toml(data: dict) -> bytes:
    # TOML has no null; tomli_w raises TypeError for None values
    try:
        text = tomli_w.dumps(data)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Cannot serialize to TOML: {e}") from e
    return text.encode(_encoding())


# =============================================================================
# Registry
# =============================================================================

JSON = Format("json", (".json",), parse_json, serialize_json)
YAML = Format("yaml", (".yml", ".yaml"), parse_yaml, serialize_yaml)
TOML = Format("toml", (".toml",), parse_toml, serialize_toml)

FORMATS: Dict[str, Format] = {fmt.name: fmt for fmt in (JSON, YAML, TOML)}

_BY_EXTENSION: Dict[str, Format] = {
    ext: fmt for fmt in FORMATS.values() for ext in fmt.extensions
}


def supported_extensions() -> list:
    return sorted(_BY_EXTENSION)


def get_format(name: str) -> Format:
    """Look up a format by name ("json", "yaml", "toml")."""
    fmt = FORMATS.get(name.lower())
    if fmt is None:
        available = ', '.join(sorted(FORMATS))
        raise FormatError(f"Unknown format '{name}'. Available formats: {available}")
    return fmt


def format_for_path(path) -> Format:
    """
    Select the format for a file by its extension.

    Raises:
        FormatError: if the extension is not supported
    """
    suffix = Path(path).suffix.lower()
    fmt = _BY_EXTENSION.get(suffix)
    if fmt is None:
        available = ', '.join(supported_extensions())
        raise FormatError(
            f"Unsupported file extension '{suffix or '(none)'}' for '{path}'. "
            f"Supported extensions: {available}"
        )
    return fmt


__all__ = [
    "Format",
    "JSON",
    "YAML",
    "TOML",
    "FORMATS",
    "get_format",
    "format_for_path",
    "supported_extensions",
    "decode_text",
]
