"""
Unit tests for ServerConfig and the command-line interface.
"""

import pytest

from fileserve.__main__ import config_from_args
from fileserve.config import ServerConfig


class TestServerConfig:
    """Defaults, validation and environment variables."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.chunk_size == 8192
        assert config.accept_ranges is True
        assert config.log_format == "text"

    def test_valid_config(self, served_root):
        ServerConfig(root_dir=str(served_root)).validate()

    @pytest.mark.parametrize("overrides", [
        {"port": 0},
        {"port": 70000},
        {"max_workers": 0},
        {"buffer_size": 10},
        {"chunk_size": 0},
        {"timeout": 0},
        {"cache_max_age": -1},
        {"log_format": "xml"},
    ])
    def test_invalid_values(self, served_root, overrides):
        with pytest.raises(ValueError):
            ServerConfig(root_dir=str(served_root), **overrides).validate()

    def test_missing_root(self, tmp_path):
        with pytest.raises(ValueError, match="Root directory"):
            ServerConfig(root_dir=str(tmp_path / "nope")).validate()

    def test_from_env(self, monkeypatch, served_root):
        monkeypatch.setenv("FILESERVE_PORT", "9001")
        monkeypatch.setenv("FILESERVE_ROOT", str(served_root))
        monkeypatch.setenv("FILESERVE_CHUNK_SIZE", "4096")
        monkeypatch.setenv("FILESERVE_DISABLE_CACHE", "true")
        monkeypatch.setenv("FILESERVE_NO_RANGES", "1")
        monkeypatch.setenv("FILESERVE_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.port == 9001
        assert config.root_dir == str(served_root)
        assert config.chunk_size == 4096
        assert config.disable_cache is True
        assert config.accept_ranges is False
        assert config.log_format == "json"

    def test_response_policy(self):
        policy = ServerConfig(cache_max_age=60, download=True).response_policy()

        assert policy.cache_max_age == 60
        assert policy.download is True
        assert policy.accept_ranges is True


class TestCommandLine:
    """CLI arguments override environment defaults."""

    def test_arguments(self, served_root):
        config = config_from_args([
            str(served_root),
            "--port", "3000",
            "--chunk-size", "1024",
            "--prefix", "/files",
            "--no-ranges",
            "--download",
            "--log-level", "debug",
        ])

        assert config.root_dir == str(served_root)
        assert config.port == 3000
        assert config.chunk_size == 1024
        assert config.url_prefix == "/files"
        assert config.accept_ranges is False
        assert config.download is True
        assert config.log_level == "DEBUG"

    def test_env_used_as_default(self, monkeypatch):
        monkeypatch.setenv("FILESERVE_PORT", "9100")
        assert config_from_args([]).port == 9100

    def test_arguments_win_over_env(self, monkeypatch):
        monkeypatch.setenv("FILESERVE_PORT", "9100")
        assert config_from_args(["--port", "9200"]).port == 9200
