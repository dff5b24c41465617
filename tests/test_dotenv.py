"""Tests for the dotenv auto-loader."""

from __future__ import annotations

import os

import pytest

from discoverability_mcp.dotenv import (
    DEFAULT_ENV_PATH,
    ENV_FILE_OVERRIDE,
    load_dotenv,
    parse_dotenv,
    resolve_env_path,
)


def _write(tmp_path, text: str):
    env = tmp_path / ".env"
    env.write_text(text)
    return env


class TestParseDotenv:
    """Unit tests for the .env file parser."""

    @pytest.mark.parametrize("text,expected", [
        ("FOO=bar\n", {"FOO": "bar"}),
        ('URL="https://judge.me/api/v1"\n', {"URL": "https://judge.me/api/v1"}),
        ("SECRET='s3cr3t'\n", {"SECRET": "s3cr3t"}),
        ("# comment\n\nKEY=val\n  # indented\n", {"KEY": "val"}),
        ("NO_EQUALS\nGOOD=yes\n", {"GOOD": "yes"}),
        ("EMPTY=\n", {"EMPTY": ""}),
        ("Q=a=1&b=2\n", {"Q": "a=1&b=2"}),
        ("export GEMINI_API_KEY=abc123\n", {"GEMINI_API_KEY": "abc123"}),
        ("  KEY  =  value  \n", {"KEY": "value"}),
        ("=orphan\n", {}),
    ])
    def test_lines(self, tmp_path, text, expected):
        assert parse_dotenv(_write(tmp_path, text)) == expected

    def test_missing_file(self, tmp_path):
        assert parse_dotenv(tmp_path / "nonexistent") == {}

    def test_last_duplicate_wins(self, tmp_path):
        assert parse_dotenv(_write(tmp_path, "A=1\nA=2\n")) == {"A": "2"}


class TestLoadDotenv:
    """GIVEN a .env file WHEN load_dotenv THEN only unset vars are injected."""

    def test_injects_unset(self, tmp_path, monkeypatch):
        monkeypatch.setenv("_TEST_DOTENV_VAR", "")
        injected = load_dotenv(_write(tmp_path, "_TEST_DOTENV_VAR=hello\n"))

        assert os.environ["_TEST_DOTENV_VAR"] == "hello"
        assert injected == {"_TEST_DOTENV_VAR": "hello"}

    def test_existing_value_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("_TEST_EXISTING", "original")
        injected = load_dotenv(_write(tmp_path, "_TEST_EXISTING=overridden\n"))

        assert os.environ["_TEST_EXISTING"] == "original"
        assert injected == {}

    @pytest.mark.parametrize("placeholder", [
        "${_TEST_PLACEHOLDER}",
        "$_TEST_PLACEHOLDER",
        "${_TEST_PLACEHOLDER:-}",
        '"  "',
    ])
    def test_placeholders_count_as_unset(self, tmp_path, monkeypatch, placeholder):
        """MCP hosts pass unresolved ``${VAR}`` references through verbatim."""
        monkeypatch.setenv("_TEST_PLACEHOLDER", placeholder)
        injected = load_dotenv(_write(tmp_path, "_TEST_PLACEHOLDER=from-config\n"))

        assert os.environ["_TEST_PLACEHOLDER"] == "from-config"
        assert injected == {"_TEST_PLACEHOLDER": "from-config"}

    def test_other_reference_is_kept(self, tmp_path, monkeypatch):
        monkeypatch.setenv("_TEST_REF", "${SOMETHING_ELSE}")
        assert load_dotenv(_write(tmp_path, "_TEST_REF=from-config\n")) == {}

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_dotenv(tmp_path / "missing") == {}


class TestResolveEnvPath:
    def test_default(self):
        import discoverability_mcp.dotenv as dotenv_mod

        assert resolve_env_path() == dotenv_mod.DEFAULT_ENV_PATH

    def test_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv(ENV_FILE_OVERRIDE, str(tmp_path / "alt.env"))
        assert resolve_env_path() == tmp_path / "alt.env"

    def test_default_location(self):
        assert DEFAULT_ENV_PATH.parts[-2:] == ("product-discoverability-mcp", ".env")


class TestConfigIntegration:
    """Integration: get_config() loads from the .env file."""

    def test_config_loads_from_dotenv(self, tmp_path, monkeypatch, clean_config):
        env = _write(tmp_path, "GEMINI_MODEL=gemini-from-file\n")
        monkeypatch.setenv("GEMINI_MODEL", "")
        monkeypatch.setattr("discoverability_mcp.dotenv.DEFAULT_ENV_PATH", env)

        from discoverability_mcp.config import get_config

        assert get_config().default_model == "gemini-from-file"

    def test_env_var_takes_precedence(self, tmp_path, monkeypatch, clean_config):
        env = _write(tmp_path, "GEMINI_MODEL=from-file\n")
        monkeypatch.setenv("GEMINI_MODEL", "from-env")
        monkeypatch.setattr("discoverability_mcp.dotenv.DEFAULT_ENV_PATH", env)

        from discoverability_mcp.config import get_config

        assert get_config().default_model == "from-env"
