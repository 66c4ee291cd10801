"""
Unit tests for server and tile configuration.
"""

import pytest

from almondbread.config import DEFAULT_VIEWER_SCRIPT_URL, ServerConfig, TileConfig


class TestTileConfig:
    """Tests for TileConfig."""

    def test_defaults(self):
        config = TileConfig()

        assert (config.width, config.height) == (256, 256)
        assert config.base_span == 4.0
        assert config.max_steps == 256
        assert config.escape_radius_sq == 4.0
        assert config.image_extensions == ("bmp",)
        assert config.max_path_length == 1000
        assert config.viewer_script_url == DEFAULT_VIEWER_SCRIPT_URL
        assert config.viewer_file is None

    def test_defaults_validate(self):
        TileConfig().validate()

    @pytest.mark.parametrize("overrides", [
        {"width": 0},
        {"height": -1},
        {"base_span": 0.0},
        {"max_steps": 0},
        {"escape_radius_sq": 0.0},
        {"image_extensions": ()},
        {"max_path_length": 0},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            TileConfig(**overrides).validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ALMOND_TILE_WIDTH", "128")
        monkeypatch.setenv("ALMOND_TILE_HEIGHT", "64")
        monkeypatch.setenv("ALMOND_MAX_STEPS", "1024")
        monkeypatch.setenv("ALMOND_BASE_SPAN", "3.5")
        monkeypatch.setenv("ALMOND_VIEWER_FILE", "/srv/viewer.html")

        config = TileConfig.from_env()

        assert (config.width, config.height) == (128, 64)
        assert config.max_steps == 1024
        assert config.base_span == 3.5
        assert config.viewer_file == "/srv/viewer.html"

    def test_from_env_empty_viewer_file(self, monkeypatch):
        monkeypatch.setenv("ALMOND_VIEWER_FILE", "")

        assert TileConfig.from_env().viewer_file is None


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.max_request_size == 8192
        assert config.log_format == "text"
        assert isinstance(config.tile, TileConfig)

    def test_tile_configs_not_shared(self):
        first, second = ServerConfig(), ServerConfig()
        first.tile.max_steps = 10

        assert second.tile.max_steps == 256

    def test_port_zero_allowed(self):
        """Port 0 lets the OS choose."""
        ServerConfig(port=0).validate()

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"min_workers": 0},
        {"min_workers": 8, "max_workers": 4},
        {"queue_size": 0},
        {"buffer_size": 16},
        {"max_request_size": 10},
        {"timeout": 0},
        {"log_format": "xml"},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    def test_validate_checks_tile(self):
        with pytest.raises(ValueError):
            ServerConfig(tile=TileConfig(width=0)).validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ALMOND_HOST", "0.0.0.0")
        monkeypatch.setenv("ALMOND_PORT", "9000")
        monkeypatch.setenv("ALMOND_WORKERS", "2")
        monkeypatch.setenv("ALMOND_TIMEOUT", "5")
        monkeypatch.setenv("ALMOND_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ALMOND_MAX_STEPS", "64")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.max_workers == 2
        assert config.min_workers == 2
        assert config.timeout == 5.0
        assert config.log_level == "DEBUG"
        assert config.tile.max_steps == 64
        config.validate()
