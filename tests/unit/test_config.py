"""
Unit tests for server configuration.
"""

import dataclasses
import os

import pytest

from staticserver.config import ServerConfig, parse_bool


class TestParseBool:
    """Tests for parse_bool()."""

    @pytest.mark.parametrize("value", ["true", "TRUE", "yes", "on", "1", " True "])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "No", "off", "0"])
    def test_false(self, value):
        assert parse_bool(value) is False

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_bool("maybe")


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.root == "."
        assert config.index_page == "index.html"
        assert config.compress_pattern == r"^\.(css|js|html)$"
        assert config.cache_control and config.expires
        assert config.etag and config.last_modified
        assert config.max_age == 3600

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ServerConfig().port = 1

    def test_from_env(self, clean_env, tmp_path):
        clean_env.setenv("STATIC_PORT", "3000")
        clean_env.setenv("STATIC_ROOT", str(tmp_path))
        clean_env.setenv("STATIC_ETAG", "false")
        clean_env.setenv("STATIC_MAX_AGE", "60")
        clean_env.setenv("STATIC_TIMEOUT", "2.5")

        config = ServerConfig.from_env()

        assert config.port == 3000
        assert config.root == str(tmp_path)
        assert config.etag is False
        assert config.cache_control is True
        assert config.max_age == 60
        assert config.timeout == 2.5

    def test_from_env_defaults(self, clean_env):
        assert ServerConfig.from_env() == ServerConfig()

    def test_from_env_invalid_bool(self, clean_env):
        clean_env.setenv("STATIC_EXPIRES", "sometimes")

        with pytest.raises(ValueError):
            ServerConfig.from_env()

    def test_with_overrides_skips_none(self):
        config = ServerConfig().with_overrides(port=9000, etag=None, root=None)

        assert config.port == 9000
        assert config.etag is True
        assert config.root == "."

    def test_with_overrides_keeps_false(self):
        """False is a real value, not "unset"."""
        assert ServerConfig().with_overrides(etag=False).etag is False

    def test_with_overrides_unknown_field(self):
        with pytest.raises(TypeError):
            ServerConfig().with_overrides(workers=4)

    def test_validate_ok(self, tmp_path):
        ServerConfig(root=str(tmp_path), port=0).validate()

    @pytest.mark.parametrize("overrides", [
        {"port": 70000},
        {"port": -1},
        {"root": "/definitely/not/here"},
        {"index_page": ""},
        {"index_page": "a/b.html"},
        {"max_age": -5},
        {"compression_level": 0},
        {"chunk_size": 10},
        {"timeout": 0},
        {"keep_alive_timeout": 0},
        {"log_format": "xml"},
        {"compress_pattern": "("},
    ])
    def test_validate_rejects(self, tmp_path, overrides):
        settings = {"root": str(tmp_path)}
        settings.update(overrides)

        with pytest.raises(ValueError):
            ServerConfig(**settings).validate()

    def test_root_path_is_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert ServerConfig(root=".").root_path == os.getcwd()
