"""Unit tests for PreviewConfig."""

import argparse
from pathlib import Path

import pytest

from camera_preview.config import DEFAULT_CONFIG_PATH, PreviewConfig


class TestPreviewConfigDefaults:
    def test_bundled_config_matches_defaults(self):
        assert DEFAULT_CONFIG_PATH.exists()
        assert PreviewConfig.load() == PreviewConfig()

    def test_camera_base_url(self):
        config = PreviewConfig(camera_host="10.0.0.5", camera_port=8080)

        assert config.camera_base_url == "http://10.0.0.5:8080"

    def test_to_dict(self):
        values = PreviewConfig().to_dict()

        assert values["preview_path"] == "/api/2/preview"
        assert values["max_consecutive_failures"] == 3


class TestPreviewConfigValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"buffer_low_watermark": 0},
            {"buffer_low_watermark": 40},
            {"buffer_ready_watermark": 300},
            {"buffer_capacity": 0},
            {"command_timeout_secs": 0},
            {"request_timeout_secs": 0},
            {"request_timeout_secs": 5.0},
            {"request_timeout_secs": 6.0, "command_timeout_secs": 4.0},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            PreviewConfig(**overrides)

    def test_request_timeout_expires_before_watchdog(self):
        config = PreviewConfig()

        assert 0 < config.request_timeout_secs < config.command_timeout_secs

    def test_file_timeout_ordering_is_checked(self, config_file):
        path = config_file("command_timeout_secs = 2.0\n")

        with pytest.raises(ValueError, match="request_timeout_secs"):
            PreviewConfig.load(path)


class TestPreviewConfigLoad:
    def test_file_values_are_typed(self, config_file):
        path = config_file(
            "camera_host = cam.local\n"
            "camera_port = 8080\n"
            "request_timeout_secs = 1.5\n"
            "command_timeout_secs = 2.5\n"
            "volume_enabled = false\n"
            "unknown_key = 1\n"
        )

        config = PreviewConfig.load(path)

        assert config.camera_host == "cam.local"
        assert config.camera_port == 8080
        assert config.request_timeout_secs == pytest.approx(1.5)
        assert config.command_timeout_secs == pytest.approx(2.5)
        assert config.volume_enabled is False

    def test_cli_arguments_override_file(self, config_file):
        path = config_file("camera_host = cam.local\nstream_port = 5000\n")
        args = argparse.Namespace(
            camera_host="10.1.1.1",
            camera_port=None,
            stream_port=6000,
            log_level="debug",
            log_file=None,
        )

        config = PreviewConfig.load(path, args)

        assert config.camera_host == "10.1.1.1"
        assert config.camera_port == 80
        assert config.stream_port == 6000
        assert config.log_level == "debug"

    def test_missing_file_uses_defaults(self, tmp_path: Path):
        assert PreviewConfig.load(tmp_path / "nope.txt") == PreviewConfig()

    def test_from_mapping_ignores_unknown_keys(self):
        config = PreviewConfig.from_mapping({"camera_port": 81, "colour": "blue"})

        assert config.camera_port == 81
