#!/usr/bin/env python3
"""
flatstore - Dotted-Key Storage for Flat Files
=============================================

Read and write hierarchical JSON, YAML and TOML files through a uniform
dotted-key interface, with parsed data cached in memory and reloaded from
disk when the file changes.

Quick Start
-----------
    from flatstore import open_file, ReloadPolicy

    config = open_file("config.yaml")

    config.set("database.host", "localhost")
    config.get("database.host")                 # "localhost"
    config.get_or_set_default("database.port", 5432)

    # Never re-read the file behind the caller's back
    pinned = open_file("config.json", reload_policy=ReloadPolicy.NEVER)

Modules
-------
    flatstore.store     - NestedKeyStore, the in-memory dotted-path engine
    flatstore.flatfile  - FlatFile, the file binding with reload policies
    flatstore.formats   - JSON/YAML/TOML codecs, chosen by file extension
    flatstore.fileio    - File helpers raising StorageIOError
    flatstore.settings  - Package defaults from configs/app.yaml
    flatstore.errors    - Exception hierarchy

CLI Usage
---------
    python -m flatstore get config.yaml database.host
    python -m flatstore set config.yaml database.port 5433
    python -m flatstore keys config.yaml
"""

__version__ = "0.1.0"
__author__ = "flatstore"

from .errors import (
    FlatStoreError,
    InvalidKeyError,
    FormatError,
    StorageIOError,
)
from .store import NestedKeyStore
from .formats import (
    Format,
    JSON,
    YAML,
    TOML,
    FORMATS,
    get_format,
    format_for_path,
)
from .flatfile import (
    FlatFile,
    JsonFile,
    YamlFile,
    TomlFile,
    ReloadPolicy,
    open_file,
)

__all__ = [
    # Core
    'NestedKeyStore',
    'FlatFile',
    'JsonFile',
    'YamlFile',
    'TomlFile',
    'ReloadPolicy',
    'open_file',
    # Formats
    'Format',
    'JSON',
    'YAML',
    'TOML',
    'FORMATS',
    'get_format',
    'format_for_path',
    # Errors
    'FlatStoreError',
    'InvalidKeyError',
    'FormatError',
    'StorageIOError',
]
