#!/usr/bin/env python3
"""
FlatFile
========
A NestedKeyStore bound to a file on disk.

Reads consult the reload policy first and re-parse the file when the
cached data is stale. Mutations are written through: the whole store is
serialized and the file overwritten, unless the mutation left the store
unchanged.

Reload policies:
    ALWAYS       re-read the file before every read
    IF_MODIFIED  re-read when the file's mtime is newer than the last sync
    NEVER        only reload() refreshes the cache

Usage:
    from flatstore import open_file, ReloadPolicy

    config = open_file("config.yaml")
    config.set("server.port", 8080)
    port = config.get_int("server.port")
    config.get_or_set_default("server.host", "localhost")

Consistency:
    A failed write raises StorageIOError but the in-memory mutation is
    kept. Use has_changed() / reload() to resync.
"""

import copy
import functools
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Set

from flatstore import fileio
from flatstore.errors import StorageIOError
from flatstore.formats import Format, JSON, TOML, YAML, decode_text, format_for_path
from flatstore.settings import get_setting
from flatstore.store import NestedKeyStore, join_path, split_path

logger = logging.getLogger(__name__)

_MISSING = object()

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


class ReloadPolicy(Enum):
    """When cached data is considered stale."""
    ALWAYS = "always"
    IF_MODIFIED = "if_modified"
    NEVER = "never"

    @classmethod
    def from_setting(cls, value) -> "ReloadPolicy":
        """Accept a ReloadPolicy or its name/value, case-insensitive."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {
            "always_reload": cls.ALWAYS,
            "reload_if_modified": cls.IF_MODIFIED,
            "never_reload": cls.NEVER,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            available = ', '.join(p.value for p in cls)
            raise ValueError(
                f"Unknown reload policy '{value}'. Available policies: {available}"
            ) from None


@functools.total_ordering
class FlatFile:
    """
    File-backed key-value store with dotted-path keys.

    Example:
        cfg = FlatFile("settings.json", reload_policy=ReloadPolicy.NEVER)
        cfg.set("ui.theme", "dark")
        "ui.theme" in cfg            # True
        cfg.key_set()                # {"ui.theme"}
    """

    FORMAT: Optional[Format] = None

    def __init__(self,
                 path,
                 file_format: Optional[Format] = None,
                 reload_policy=None,
                 path_prefix: Optional[str] = None,
                 default_content: Optional[bytes] = None,
                 default_file=None):
        """
        Open (or create) the backing file and load it.

        Args:
            path: File to bind to
            file_format: Codec to use (default: chosen by extension)
            reload_policy: ReloadPolicy or its name
                (default: flatfile.reload_policy from app.yaml)
            path_prefix: Dotted prefix prepended to every key
            default_content: Bytes written if the file has to be created
            default_file: File whose content is copied if the file has to be created

        Raises:
            FormatError: unsupported extension or unparseable content
            StorageIOError: the file cannot be created or read
        """
        self._path = Path(path)
        self.file_format = file_format or self.FORMAT or format_for_path(self._path)

        if reload_policy is None:
            reload_policy = get_setting("flatfile.reload_policy")
        if reload_policy is None:
            raise ValueError("flatfile.reload_policy must be set in app.yaml")
        self.reload_policy = ReloadPolicy.from_setting(reload_policy)

        self.path_prefix = path_prefix
        self._lock = threading.RLock()
        self._store = NestedKeyStore()
        self._last_synced = 0

        if fileio.create_file(self._path):
            initial = default_content
            if default_file is not None:
                initial = fileio.read_bytes(default_file)
            if initial:
                fileio.write_bytes(self._path, initial)

        self.reload()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def file_path(self) -> str:
        """Absolute path of the backing file."""
        return str(self._path.absolute())

    @property
    def last_synced(self) -> int:
        """mtime (ns) of the file when it was last read or written."""
        return self._last_synced

    # -------------------------------------------------------------------------
    # Staleness
    # -------------------------------------------------------------------------

    def has_changed(self) -> bool:
        """True if the file was modified after the last read/write."""
        return fileio.has_changed(self._path, self._last_synced)

    def should_reload(self) -> bool:
        if self.reload_policy is ReloadPolicy.ALWAYS:
            return True
        if self.reload_policy is ReloadPolicy.IF_MODIFIED:
            return self.has_changed()
        return False

    def reload(self):
        """Re-read and re-parse the file, discarding unsaved in-memory changes."""
        with self._lock:
            mtime = fileio.modified_time(self._path)
            data = fileio.read_bytes(self._path)
            self._store = NestedKeyStore(self.file_format.parse(data))
            self._last_synced = mtime
            logger.debug(f"Loaded {self._path} ({len(data)} bytes, {self.file_format.name})")

    def _reload_if_needed(self):
        if self.should_reload():
            self.reload()

    def _write(self):
        data = self.file_format.serialize(self._store.to_map())
        try:
            fileio.write_bytes(self._path, data)
        except StorageIOError as e:
            logger.warning(f"Write failed, in-memory data kept: {e}")
            raise
        self._last_synced = fileio.modified_time(self._path)
        logger.debug(f"Wrote {self._path} ({len(data)} bytes)")

    def _key(self, path: Optional[str]) -> Optional[str]:
        if path is not None:
            split_path(path)
        return join_path(self.path_prefix, path) if self.path_prefix else path

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, path: str, default: Any = None) -> Any:
        """Value at path (a copy for lists/dicts), or default if absent."""
        with self._lock:
            self._reload_if_needed()
            value = self._store.get(self._key(path), _MISSING)
            if value is _MISSING:
                return default
            return copy.deepcopy(value)

    def contains(self, path: str) -> bool:
        with self._lock:
            self._reload_if_needed()
            return self._store.contains(self._key(path))

    def key_set(self, path: Optional[str] = None) -> Set[str]:
        with self._lock:
            self._reload_if_needed()
            return self._store.key_set(self._key(path))

    def single_layer_key_set(self, path: Optional[str] = None) -> Set[str]:
        with self._lock:
            self._reload_if_needed()
            return self._store.single_layer_key_set(self._key(path))

    def to_map(self) -> dict:
        """Snapshot of the data (scoped to path_prefix when set)."""
        with self._lock:
            self._reload_if_needed()
            key = self._key(None)
            if key is None:
                return self._store.to_map()
            value = self._store.get(key)
            return copy.deepcopy(value) if isinstance(value, dict) else {}

    # -------------------------------------------------------------------------
    # Typed reads
    # -------------------------------------------------------------------------

    def get_string(self, path: str, default: str = "") -> str:
        value = self.get(path, _MISSING)
        if value is _MISSING or value is None or isinstance(value, (dict, list)):
            return default
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def get_int(self, path: str, default: int = 0) -> int:
        value = self.get(path, _MISSING)
        if isinstance(value, bool):
            return default
        if isinstance(value, int):
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
        if isinstance(value, (int, float, str)):
            try:
                return int(float(value))
            except (ValueError, OverflowError):
                return default
        return default

    def get_float(self, path: str, default: float = 0.0) -> float:
        value = self.get(path, _MISSING)
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                return default
        return default

    def get_bool(self, path: str, default: bool = False) -> bool:
        value = self.get(path, _MISSING)
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return default

    def get_list(self, path: str, default: Optional[List] = None) -> list:
        value = self.get(path, _MISSING)
        if isinstance(value, list):
            return value
        return [] if default is None else default

    def get_map(self, path: str, default: Optional[dict] = None) -> dict:
        value = self.get(path, _MISSING)
        if isinstance(value, dict):
            return value
        return {} if default is None else default

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def set(self, path: str, value: Any) -> bool:
        """
        Store value at path and write the file if anything changed.

        Returns:
            True if the data changed (and the file was written)
        """
        with self._lock:
            self._reload_if_needed()
            changed = self._store.set(self._key(path), value)
            if changed:
                self._write()
            return changed

    def remove(self, path: str) -> bool:
        """Remove the key at path; the file is only written if a key was removed."""
        with self._lock:
            self._reload_if_needed()
            removed = self._store.remove(self._key(path))
            if removed:
                self._write()
            return removed

    def remove_all(self, *paths: str) -> int:
        """Remove several keys with a single write. Returns how many were removed."""
        with self._lock:
            self._reload_if_needed()
            removed = sum(1 for p in paths if self._store.remove(self._key(p)))
            if removed:
                self._write()
            return removed

    def get_or_set_default(self, path: str, default: Any) -> Any:
        """Return the value at path, storing default first if the key is absent."""
        with self._lock:
            if not self.contains(path):
                self.set(path, default)
                return default
            return self.get(path)

    def set_default(self, path: str, value: Any):
        """Set value only if path is absent."""
        self.get_or_set_default(path, value)

    # -------------------------------------------------------------------------
    # Whole-file operations
    # -------------------------------------------------------------------------

    def clear_data(self):
        """Empty the in-memory data only; the file is untouched until the next write or reload."""
        with self._lock:
            self._store.clear()

    def clear_file(self):
        """Truncate the file and reload (leaving an empty store)."""
        with self._lock:
            fileio.write_bytes(self._path, b"")
            self.reload()

    def delete_file(self):
        with self._lock:
            fileio.delete_file(self._path)

    def set_content(self, data: Optional[bytes]):
        """Replace the file content with data and reload. None clears the file."""
        with self._lock:
            if data is None:
                self.clear_file()
                return
            fileio.write_bytes(self._path, data)
            self.reload()

    def set_content_from_file(self, source):
        """Copy another file's content into this one and reload. None clears the file."""
        if source is None:
            self.clear_file()
            return
        self.set_content(fileio.read_bytes(source))

    def replace_in_file(self, target: str, replacement: str):
        """Textual search-and-replace on the raw file content, then reload."""
        encoding = get_setting("flatfile.encoding", "utf-8")
        with self._lock:
            text = decode_text(fileio.read_bytes(self._path), self.file_format.name.upper())
            fileio.write_bytes(self._path, text.replace(target, replacement).encode(encoding))
            self.reload()

    # -------------------------------------------------------------------------
    # Misc
    # -------------------------------------------------------------------------

    def __contains__(self, path) -> bool:
        return self.contains(path)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FlatFile):
            return NotImplemented
        return self.file_path == other.file_path

    def __lt__(self, other) -> bool:
        if not isinstance(other, FlatFile):
            return NotImplemented
        return self.file_path < other.file_path

    def __hash__(self) -> int:
        return hash(self.file_path)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self._path)!r}, "
            f"format={self.file_format.name}, reload_policy={self.reload_policy.value})"
        )


class JsonFile(FlatFile):
    """FlatFile that always uses JSON, whatever the extension."""
    FORMAT = JSON


class YamlFile(FlatFile):
    """FlatFile that always uses YAML, whatever the extension."""
    FORMAT = YAML


class TomlFile(FlatFile):
    """FlatFile that always uses TOML, whatever the extension."""
    FORMAT = TOML


def open_file(path, reload_policy=None, **kwargs) -> FlatFile:
    """Open a FlatFile, choosing the format by file extension."""
    return FlatFile(path, reload_policy=reload_policy, **kwargs)


__all__ = [
    "FlatFile",
    "JsonFile",
    "YamlFile",
    "TomlFile",
    "ReloadPolicy",
    "open_file",
]
