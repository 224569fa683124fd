#!/usr/bin/env python3
"""
flatstore CLI
=============
Inspect and edit JSON/YAML/TOML files by dotted key.

Usage:
    flatstore get config.yaml server.port
    flatstore set config.yaml server.port 8080
    flatstore remove config.yaml server.debug
    flatstore keys config.yaml server --shallow
    flatstore dump config.yaml --as json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from flatstore import __version__
from flatstore.errors import FlatStoreError
from flatstore.flatfile import FlatFile, ReloadPolicy
from flatstore.formats import FORMATS, get_format
from flatstore.settings import get_setting

# =============================================================================
# Utilities
# =============================================================================

class Output:
    """Handles CLI output with quiet mode support."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.console = Console(soft_wrap=True, highlight=False, emoji=False)
        self.err_console = Console(stderr=True, soft_wrap=True, highlight=False, emoji=False)

    def print(self, *args, **kwargs):
        if not self.quiet:
            self.console.print(*args, markup=False, **kwargs)

    def value(self, text: str):
        """Print a requested value; shown even in quiet mode."""
        self.console.print(text, markup=False)

    def error(self, msg: str):
        self.err_console.print(f"Error: {msg}", markup=False)

    def success(self, msg: str):
        if not self.quiet:
            self.console.print(f"OK: {msg}", markup=False)

    def table(self, headers: list, rows: list, title: str = None):
        if self.quiet:
            return
        table = Table(title=title, box=box.SIMPLE)
        for header in headers:
            table.add_column(str(header))
        for row in rows:
            table.add_row(*(str(c) for c in row))
        self.console.print(table)


def configure_logging(verbose: bool = False):
    level_name = get_setting("cli.verbose_log_level" if verbose else "cli.log_level", "WARNING")
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def format_value(value) -> str:
    """Render a stored value for the terminal."""
    if isinstance(value, (dict, list)):
        return yaml.safe_dump(value, default_flow_style=False, sort_keys=False,
                              allow_unicode=True).rstrip()
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_value(text: str, as_string: bool = False):
    """Parse a command-line value as a YAML flow scalar/collection."""
    if as_string:
        return text
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def open_existing(path: str) -> FlatFile:
    if not Path(path).exists():
        raise FileNotFoundError(f"File not found: {path}")
    return FlatFile(path, reload_policy=ReloadPolicy.NEVER)


# =============================================================================
# Commands
# =============================================================================

def cmd_get(args, out: Output):
    store = open_existing(args.file)
    if not store.contains(args.key):
        out.error(f"Key not found: {args.key}")
        return 1
    value = store.get(args.key)
    if args.json:
        out.value(json.dumps(value, indent=2, ensure_ascii=False))
    else:
        out.value(format_value(value))
    return 0


def cmd_set(args, out: Output):
    store = FlatFile(args.file, reload_policy=ReloadPolicy.NEVER)
    value = parse_value(args.value, as_string=args.string)
    if store.set(args.key, value):
        out.success(f"{args.key} = {format_value(value)}")
    else:
        out.print(f"Unchanged: {args.key}")
    return 0


def cmd_remove(args, out: Output):
    store = open_existing(args.file)
    removed = store.remove_all(*args.keys)
    if removed:
        out.success(f"Removed {removed} key(s)")
        return 0
    out.error(f"Key not found: {', '.join(args.keys)}")
    return 1


def cmd_keys(args, out: Output):
    store = open_existing(args.file)
    if args.shallow:
        keys = store.single_layer_key_set(args.key)
    else:
        keys = store.key_set(args.key)

    if args.values:
        rows = []
        for key in sorted(keys):
            full = f"{args.key}.{key}" if args.key else key
            value = store.get(full)
            rows.append((key, type(value).__name__, format_value(value).replace("\n", " ")))
        out.table(["Key", "Type", "Value"], rows)
    else:
        for key in sorted(keys):
            out.value(key)
    return 0


def cmd_dump(args, out: Output):
    store = open_existing(args.file)
    fmt = get_format(args.as_format) if args.as_format else store.file_format
    text = fmt.serialize(store.to_map()).decode(get_setting("flatfile.encoding", "utf-8"))
    if args.plain or out.quiet:
        out.value(text.rstrip("\n"))
    else:
        out.console.print(Syntax(text, fmt.name, theme="ansi_dark", background_color="default"))
    return 0


def cmd_formats(args, out: Output):
    rows = [(fmt.name, ", ".join(fmt.extensions)) for fmt in FORMATS.values()]
    out.table(["Format", "Extensions"], rows, title="Supported formats")
    return 0


# =============================================================================
# Main
# =============================================================================

def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='flatstore',
        description='flatstore - dotted-key access to JSON/YAML/TOML files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s get config.yaml server.port
  %(prog)s set config.yaml server.port 8080
  %(prog)s set config.json tags "[a, b]"
  %(prog)s remove config.yaml server.debug
  %(prog)s keys config.yaml server --values
  %(prog)s dump config.yaml --as json
"""
    )

    parser.add_argument('--version', '-V', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--quiet', '-q', action='store_true', help='Suppress non-essential output')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging and tracebacks')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # --- get ---
    p = subparsers.add_parser('get', aliases=['g'], help='Print the value at a key')
    p.add_argument('file', help='JSON/YAML/TOML file')
    p.add_argument('key', help='Dotted key (e.g., server.port)')
    p.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    # --- set ---
    p = subparsers.add_parser('set', aliases=['s'], help='Set the value at a key')
    p.add_argument('file', help='JSON/YAML/TOML file (created if missing)')
    p.add_argument('key', help='Dotted key')
    p.add_argument('value', help='Value, parsed as YAML (42, true, [1, 2], {a: 1})')
    p.add_argument('--string', '-s', action='store_true', help='Store the value as a plain string')

    # --- remove ---
    p = subparsers.add_parser('remove', aliases=['rm'], help='Remove one or more keys')
    p.add_argument('file', help='JSON/YAML/TOML file')
    p.add_argument('keys', nargs='+', help='Dotted keys')

    # --- keys ---
    p = subparsers.add_parser('keys', aliases=['ls'], help='List keys')
    p.add_argument('file', help='JSON/YAML/TOML file')
    p.add_argument('key', nargs='?', help='Only list keys below this key')
    p.add_argument('--shallow', action='store_true', help='Only immediate children')
    p.add_argument('--values', action='store_true', help='Show a table with types and values')

    # --- dump ---
    p = subparsers.add_parser('dump', help='Print the whole file')
    p.add_argument('file', help='JSON/YAML/TOML file')
    p.add_argument('--as', dest='as_format', choices=sorted(FORMATS), help='Convert to format')
    p.add_argument('--plain', action='store_true', help='No syntax highlighting')

    # --- formats ---
    subparsers.add_parser('formats', help='List supported formats')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.verbose)

    cmd_map = {
        'g': 'get',
        's': 'set',
        'rm': 'remove',
        'ls': 'keys',
    }
    command = cmd_map.get(args.command, args.command)

    out = Output(quiet=args.quiet)

    commands = {
        'get': cmd_get,
        'set': cmd_set,
        'remove': cmd_remove,
        'keys': cmd_keys,
        'dump': cmd_dump,
        'formats': cmd_formats,
    }

    handler = commands.get(command)
    if handler:
        try:
            return handler(args, out)
        except KeyboardInterrupt:
            out.print("\nCancelled.")
            return 130
        except (FlatStoreError, FileNotFoundError) as e:
            out.error(str(e))
            if args.verbose:
                import traceback
                traceback.print_exc()
            return 1

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
