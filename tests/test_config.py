"""Tests for config.py: env loading and constants."""

import pytest

from notion_cli import config

_KNOWN_ENV_KEYS = list(config._ENV_KEYS)


class TestLoadEnv:
    @pytest.fixture(autouse=True)
    def _clean_environ(self, monkeypatch):
        """Remove known keys from os.environ so file-parsing tests are isolated."""
        for key in _KNOWN_ENV_KEYS:
            monkeypatch.delenv(key, raising=False)

    def test_basic_key_value(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("FOO=bar\nBAZ=qux\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"FOO": "bar", "BAZ": "qux"}

    def test_strips_whitespace(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("  KEY  =  value  \n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"KEY": "value"}

    def test_skips_comments_and_blank_lines(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("# comment\nA=1\n\n\nB=2\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"A": "1", "B": "2"}

    def test_value_with_equals_sign(self, tmp_path, monkeypatch):
        """token_v2 values can contain = signs (split on first only)."""
        env_file = tmp_path / ".env"
        env_file.write_text("NOTION_TOKEN_V2=abc=def=ghi\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        assert config.load_env() == {"NOTION_TOKEN_V2": "abc=def=ghi"}

    def test_missing_file_returns_empty(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "ENV_PATH", str(tmp_path / "nonexistent"))
        assert config.load_env() == {}


class TestLoadEnvOsEnvironFallback:
    """load_env() falls back to os.environ for known NOTION_* keys."""

    @pytest.fixture(autouse=True)
    def _no_env_file(self, tmp_path, monkeypatch):
        for key in _KNOWN_ENV_KEYS:
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setattr(config, "ENV_PATH", str(tmp_path / "nonexistent"))

    def test_os_environ_fallback(self, monkeypatch):
        monkeypatch.setenv("NOTION_TOKEN_V2", "from-environ")
        assert config.load_env()["NOTION_TOKEN_V2"] == "from-environ"

    def test_env_file_takes_precedence(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("NOTION_TOKEN_V2=from-file\n")
        monkeypatch.setattr(config, "ENV_PATH", str(env_file))
        monkeypatch.setenv("NOTION_TOKEN_V2", "from-environ")
        assert config.load_env()["NOTION_TOKEN_V2"] == "from-file"

    def test_unknown_keys_not_pulled_from_environ(self, monkeypatch):
        monkeypatch.setenv("RANDOM_KEY", "should-not-appear")
        assert "RANDOM_KEY" not in config.load_env()


class TestEnvParsers:
    def test_env_int_valid(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"K": "42"})
        assert config._env_int("K", 10) == 42

    def test_env_int_empty_returns_default(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"K": ""})
        assert config._env_int("K", 99) == 99

    def test_env_int_bad_value_returns_default(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"K": "not_a_number"})
        assert config._env_int("K", 30) == 30

    def test_env_float(self, monkeypatch):
        monkeypatch.setattr(config, "env", {"K": "1.5", "BAD": "abc"})
        assert config._env_float("K", 1.0) == 1.5
        assert config._env_float("BAD", 1.0) == 1.0
        assert config._env_float("MISSING", 2.0) == 2.0

    def test_env_bool(self, monkeypatch):
        for val in ("1", "true", "yes", "on", "True", "YES"):
            monkeypatch.setattr(config, "env", {"K": val})
            assert config._env_bool("K") is True
        for val in ("0", "false", "off", "anything"):
            monkeypatch.setattr(config, "env", {"K": val})
            assert config._env_bool("K") is False


class TestConstants:
    def test_option_palette(self):
        assert len(config.OPTION_COLORS) == 10
        assert config.OPTION_COLORS[0] == "default"

    def test_writes_are_not_idempotent(self):
        assert "saveTransactions" not in config.IDEMPOTENT_ENDPOINTS
        assert "syncRecordValues" in config.IDEMPOTENT_ENDPOINTS

    def test_defaults(self):
        assert config.DEFAULT_BASE_URL == "https://www.notion.so/api/v3"
        assert config.MAX_PAGE_CHUNKS >= 1
        assert config.MCP_RESPONSE_MODE in config.VALID_MCP_RESPONSE_MODES
