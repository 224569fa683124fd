"""
Tests for CLI Commands
======================
Tests for the flatstore CLI interface in flatstore/cli.py.
"""

import json
import pytest
import sys
import subprocess
from pathlib import Path

import yaml

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flatstore.cli import format_value, main, parse_value


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n"
        "  host: localhost\n"
        "  port: 8080\n"
        "  tags:\n"
        "  - a\n"
        "  - b\n"
        "debug: false\n"
    )
    return path


class TestCLIBasic:
    """Basic CLI tests."""

    def test_version_flag(self):
        """Test --version flag."""
        result = subprocess.run(
            [sys.executable, "-m", "flatstore", "--version"],
            capture_output=True,
            text=True,
            cwd=str(ROOT),
        )
        assert result.returncode == 0
        assert "flatstore" in result.stdout.lower()

    def test_help_flag(self):
        """Test --help flag."""
        result = subprocess.run(
            [sys.executable, "-m", "flatstore", "--help"],
            capture_output=True,
            text=True,
            cwd=str(ROOT),
        )
        assert result.returncode == 0
        assert "get" in result.stdout.lower()
        assert "set" in result.stdout.lower()

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_get_via_subprocess(self, config_file):
        result = subprocess.run(
            [sys.executable, "-m", "flatstore", "get", str(config_file), "server.port"],
            capture_output=True,
            text=True,
            cwd=str(ROOT),
        )
        assert result.returncode == 0
        assert result.stdout.strip() == "8080"


class TestCLIGet:
    """Tests for get command."""

    def test_get_scalar(self, config_file, capsys):
        assert main(["get", str(config_file), "server.host"]) == 0
        assert capsys.readouterr().out.strip() == "localhost"

    def test_get_bool(self, config_file, capsys):
        assert main(["get", str(config_file), "debug"]) == 0
        assert capsys.readouterr().out.strip() == "false"

    def test_get_json(self, config_file, capsys):
        assert main(["get", str(config_file), "server", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"host": "localhost", "port": 8080, "tags": ["a", "b"]}

    def test_get_missing_key(self, config_file, capsys):
        assert main(["get", str(config_file), "server.nope"]) == 1
        assert "not found" in capsys.readouterr().err.lower()

    def test_get_missing_file(self, tmp_path, capsys):
        path = tmp_path / "missing.yaml"
        assert main(["get", str(path), "a"]) == 1
        assert not path.exists()

    def test_get_invalid_key(self, config_file, capsys):
        assert main(["get", str(config_file), "server..port"]) == 1
        assert "invalid key" in capsys.readouterr().err.lower()


class TestCLISet:
    """Tests for set command."""

    def test_set_parses_value(self, config_file):
        assert main(["-q", "set", str(config_file), "server.port", "9090"]) == 0
        assert yaml.safe_load(config_file.read_text())["server"]["port"] == 9090

    def test_set_list(self, config_file):
        assert main(["-q", "set", str(config_file), "server.tags", "[x, y]"]) == 0
        assert yaml.safe_load(config_file.read_text())["server"]["tags"] == ["x", "y"]

    def test_set_string_flag(self, config_file):
        assert main(["-q", "set", str(config_file), "version", "1.10", "--string"]) == 0
        assert yaml.safe_load(config_file.read_text())["version"] == "1.10"

    def test_set_creates_file(self, tmp_path):
        path = tmp_path / "new.json"
        assert main(["-q", "set", str(path), "a.b", "true"]) == 0
        assert json.loads(path.read_text()) == {"a": {"b": True}}

    def test_set_unchanged(self, config_file, capsys):
        assert main(["set", str(config_file), "server.port", "8080"]) == 0
        assert "unchanged" in capsys.readouterr().out.lower()

    def test_set_unsupported_extension(self, tmp_path, capsys):
        assert main(["set", str(tmp_path / "x.ini"), "a", "1"]) == 1
        assert "unsupported" in capsys.readouterr().err.lower()


class TestCLIRemove:
    """Tests for remove command."""

    def test_remove(self, config_file):
        assert main(["-q", "remove", str(config_file), "server.tags", "debug"]) == 0
        assert yaml.safe_load(config_file.read_text()) == {
            "server": {"host": "localhost", "port": 8080}
        }

    def test_remove_missing(self, config_file):
        assert main(["-q", "rm", str(config_file), "nope"]) == 1


class TestCLIKeys:
    """Tests for keys command."""

    def test_keys(self, config_file, capsys):
        assert main(["keys", str(config_file)]) == 0
        lines = capsys.readouterr().out.split()
        assert lines == ["debug", "server.host", "server.port", "server.tags"]

    def test_keys_scoped_shallow(self, config_file, capsys):
        assert main(["ls", str(config_file), "server", "--shallow"]) == 0
        assert capsys.readouterr().out.split() == ["host", "port", "tags"]

    def test_keys_values_table(self, config_file, capsys):
        assert main(["keys", str(config_file), "server", "--values"]) == 0
        out = capsys.readouterr().out
        assert "localhost" in out
        assert "int" in out


class TestCLIDump:
    """Tests for dump and formats commands."""

    def test_dump_convert(self, config_file, capsys):
        assert main(["dump", str(config_file), "--as", "json", "--plain"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["server"]["port"] == 8080

    def test_dump_highlighted(self, config_file, capsys):
        assert main(["dump", str(config_file)]) == 0
        assert "localhost" in capsys.readouterr().out

    def test_formats(self, capsys):
        assert main(["formats"]) == 0
        out = capsys.readouterr().out
        assert "yaml" in out
        assert ".toml" in out


class TestHelpers:
    """Tests for value parsing/formatting helpers."""

    @pytest.mark.parametrize("text,expected", [
        ("42", 42),
        ("true", True),
        ("null", None),
        ("[1, 2]", [1, 2]),
        ("{a: 1}", {"a": 1}),
        ("plain text", "plain text"),
        ("[unclosed", "[unclosed"),
    ])
    def test_parse_value(self, text, expected):
        assert parse_value(text) == expected

    def test_parse_value_as_string(self):
        assert parse_value("42", as_string=True) == "42"

    def test_format_value(self):
        assert format_value(None) == "null"
        assert format_value(True) == "true"
        assert format_value(3) == "3"
        assert format_value({"a": [1]}) == "a:\n- 1"
