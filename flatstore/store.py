#!/usr/bin/env python3
"""
Nested-Key Store
================
In-memory nested mapping addressed by dotted paths ("a.b.c").

Values are plain Python data: None, bool, int, float, str, lists of
values and dicts of str -> value. Intermediate path segments must resolve
to dicts. Reads treat anything else as absent; writes replace it with a
fresh dict (last writer wins on type conflicts).

Keys that themselves contain "." cannot be addressed; there is no
escaping mechanism.

Usage:
    store = NestedKeyStore()
    store.set("server.port", 8080)
    store.get("server.port")          # 8080
    store.key_set()                   # {"server.port"}
    store.single_layer_key_set()      # {"server"}
"""

import copy
from typing import Any, Iterator, List, Optional, Set

from flatstore.errors import InvalidKeyError

SEPARATOR = "."

_MISSING = object()


def split_path(path: str) -> List[str]:
    """
    Split a dotted path into its segments.

    Raises:
        InvalidKeyError: if path is not a string or has an empty segment
            (empty string, leading/trailing dot, double dot)
    """
    if not isinstance(path, str):
        raise InvalidKeyError(path, "key must be a string")
    parts = path.split(SEPARATOR)
    if not all(parts):
        raise InvalidKeyError(path)
    return parts


def join_path(*parts: Optional[str]) -> Optional[str]:
    """Join path fragments with the separator, skipping None/empty ones."""
    present = [p for p in parts if p]
    if not present:
        return None
    return SEPARATOR.join(present)


def _leaf_paths(mapping: dict, prefix: str = "") -> Iterator[str]:
    for key, value in mapping.items():
        full = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _leaf_paths(value, full + SEPARATOR)
        else:
            yield full


class NestedKeyStore:
    """
    A dict of dicts addressed by dotted paths.

    The store adopts the mapping passed to it as its root; values handed
    to set() are deep-copied so callers cannot mutate the tree behind the
    store's back.
    """

    def __init__(self, data: Optional[dict] = None):
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise TypeError(f"Store root must be a dict, not {type(data).__name__}")
        self._data = data

    # -------------------------------------------------------------------------
    # Path resolution
    # -------------------------------------------------------------------------

    def _parent(self, parts: List[str]) -> Optional[dict]:
        """Walk to the dict holding the last segment, or None if the chain breaks."""
        node = self._data
        for segment in parts[:-1]:
            node = node.get(segment)
            if not isinstance(node, dict):
                return None
        return node

    def _lookup(self, path: str) -> Any:
        parts = split_path(path)
        parent = self._parent(parts)
        if parent is None or parts[-1] not in parent:
            return _MISSING
        return parent[parts[-1]]

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def get(self, path: str, default: Any = None) -> Any:
        """Value at path, or default if absent. An explicitly stored None is returned as None."""
        value = self._lookup(path)
        if value is _MISSING:
            return default
        return value

    def contains(self, path: str) -> bool:
        return self._lookup(path) is not _MISSING

    def set(self, path: str, value: Any) -> bool:
        """
        Assign value at path, creating intermediate dicts on demand.

        Intermediate segments that are absent or hold a non-dict are
        replaced by an empty dict; the previous scalar or list is lost.

        Returns:
            True if the store's representation changed, False for a
            no-op assignment of an identical value
        """
        parts = split_path(path)
        before = repr(self._data)

        node = self._data
        for segment in parts[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

        return repr(self._data) != before

    def remove(self, path: str) -> bool:
        """
        Delete the leaf at path. Ancestors are kept even if they become empty.

        Returns:
            True if a key was removed, False if the path did not resolve
        """
        parts = split_path(path)
        parent = self._parent(parts)
        if parent is None or parts[-1] not in parent:
            return False
        del parent[parts[-1]]
        return True

    def key_set(self, path: Optional[str] = None) -> Set[str]:
        """
        Dotted paths of all leaves (non-dict values), at any depth.

        With path, only the subtree at path is listed and the returned keys
        are relative to it. Empty dicts contribute no keys.
        """
        node = self._data if path is None else self._lookup(path)
        if not isinstance(node, dict):
            return set()
        return set(_leaf_paths(node))

    def single_layer_key_set(self, path: Optional[str] = None) -> Set[str]:
        """Immediate child keys of the root, or of the dict at path."""
        node = self._data if path is None else self._lookup(path)
        if not isinstance(node, dict):
            return set()
        return {str(key) for key in node}

    def to_map(self) -> dict:
        """Deep copy of the root mapping."""
        return copy.deepcopy(self._data)

    def clear(self):
        self._data.clear()

    # -------------------------------------------------------------------------
    # Dunder helpers
    # -------------------------------------------------------------------------

    def __contains__(self, path) -> bool:
        return self.contains(path)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, NestedKeyStore):
            return NotImplemented
        return self._data == other._data

    __hash__ = None

    def __repr__(self) -> str:
        return f"NestedKeyStore({self._data!r})"


__all__ = [
    "NestedKeyStore",
    "split_path",
    "join_path",
    "SEPARATOR",
]
