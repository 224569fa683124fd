#!/usr/bin/env python3
"""
File I/O helpers
================
Small wrappers around pathlib that turn OSError into StorageIOError.
"""

import logging
from pathlib import Path
from typing import Union

from flatstore.errors import StorageIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def create_file(path: PathLike) -> bool:
    """
    Create an empty file (and its parent directories) if it does not exist.

    Returns:
        True if the file was created, False if it already existed
    """
    path = Path(path)
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    except OSError as e:
        raise StorageIOError(f"Could not create '{path}': {e}", path) from e
    logger.debug(f"Created {path}")
    return True


def read_bytes(path: PathLike) -> bytes:
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as e:
        raise StorageIOError(f"Could not read '{path}': {e}", path) from e


def write_bytes(path: PathLike, data: bytes):
    """Overwrite the whole file with data."""
    path = Path(path)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise StorageIOError(f"Could not write '{path}': {e}", path) from e


def delete_file(path: PathLike):
    path = Path(path)
    try:
        path.unlink()
    except OSError as e:
        raise StorageIOError(f"Could not delete '{path}': {e}", path) from e
    logger.debug(f"Deleted {path}")


def modified_time(path: PathLike) -> int:
    """Modification time in nanoseconds, or 0 if the file is missing."""
    try:
        return Path(path).stat().st_mtime_ns
    except FileNotFoundError:
        return 0
    except OSError as e:
        raise StorageIOError(f"Could not stat '{path}': {e}", path) from e


def has_changed(path: PathLike, timestamp: int) -> bool:
    """True if the file was modified strictly after timestamp (ns)."""
    return modified_time(path) > timestamp


__all__ = [
    "create_file",
    "read_bytes",
    "write_bytes",
    "delete_file",
    "modified_time",
    "has_changed",
]
