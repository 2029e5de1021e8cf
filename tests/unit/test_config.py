"""
Unit tests for server configuration.
"""

import dataclasses

import pytest

from rawhttp.config import ServerConfig


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        """Defaults match the documented behaviour."""
        config = ServerConfig()
        assert config.host == "0.0.0.0"
        assert config.port == 4221
        assert config.buffer_size == 1024
        assert config.timeout == 20.0
        assert config.max_message_size == 1 << 30
        assert config.directory == ""
        config.validate()

    def test_frozen(self):
        """Configuration cannot change after construction."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            ServerConfig().port = 1

    def test_from_env(self, monkeypatch):
        """RAWHTTP_* variables are read."""
        monkeypatch.setenv("RAWHTTP_HOST", "127.0.0.1")
        monkeypatch.setenv("RAWHTTP_PORT", "8080")
        monkeypatch.setenv("RAWHTTP_DIRECTORY", "/tmp/files")
        monkeypatch.setenv("RAWHTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("RAWHTTP_LOG_FORMAT", "json")

        config = ServerConfig.from_env()
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.directory == "/tmp/files"
        assert config.timeout == 2.5
        assert config.log_format == "json"

    def test_from_env_defaults(self, monkeypatch):
        """Unset variables fall back to the defaults."""
        for name in ("HOST", "PORT", "DIRECTORY", "TIMEOUT", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(f"RAWHTTP_{name}", raising=False)
        assert ServerConfig.from_env() == ServerConfig()

    def test_with_overrides_skips_none(self):
        """None leaves a field unchanged."""
        base = ServerConfig(port=9000)
        config = base.with_overrides(port=None, directory="/srv")
        assert config.port == 9000
        assert config.directory == "/srv"
        assert base.directory == ""

    @pytest.mark.parametrize("changes", [
        {"port": -1},
        {"port": 65536},
        {"backlog": 0},
        {"buffer_size": 0},
        {"timeout": 0},
        {"max_message_size": 0},
        {"log_format": "xml"},
    ])
    def test_validate_rejects(self, changes):
        """Out of range values fail validation."""
        with pytest.raises(ValueError):
            ServerConfig(**changes).validate()

    def test_port_zero_allowed(self):
        """Port 0 asks the OS for a free port."""
        ServerConfig(port=0).validate()
