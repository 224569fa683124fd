#!/usr/bin/env python3
"""
Exceptions
==========
Error taxonomy shared by the store, the format codecs and FlatFile.

    FlatStoreError
    ├── InvalidKeyError   malformed dotted path
    ├── FormatError       parse/serialize failure, unknown extension
    └── StorageIOError    file create/read/write/delete failure
"""


class FlatStoreError(Exception):
    """Base class for all flatstore errors."""


class InvalidKeyError(FlatStoreError, ValueError):
    """A dotted path is empty, not a string, or has an empty segment."""

    def __init__(self, key, reason: str = "empty path segment"):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid key {key!r}: {reason}")


class FormatError(FlatStoreError, ValueError):
    """File content could not be parsed, or data could not be serialized."""


class StorageIOError(FlatStoreError, OSError):
    """The backing file could not be created, read, written or deleted."""

    def __init__(self, message: str, path=None):
        self.path = path
        super().__init__(message)
