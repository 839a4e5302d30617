"""Unit tests for ConfigLoader."""

from pathlib import Path

import pytest

from camera_preview.core.config_loader import ConfigLoader


class TestConfigLoaderParsing:
    """Untyped value parsing."""

    def test_parse_value_bool(self):
        for val in ['true', 'True', 'yes', 'on']:
            assert ConfigLoader._parse_value(val) is True
        for val in ['false', 'FALSE', 'no', 'off']:
            assert ConfigLoader._parse_value(val) is False

    def test_parse_value_numbers(self):
        assert ConfigLoader._parse_value('42') == 42
        assert ConfigLoader._parse_value('-0.5') == pytest.approx(-0.5)

    def test_parse_value_string(self):
        assert ConfigLoader._parse_value('/api/2/preview') == '/api/2/preview'


class TestConfigLoaderTypedParsing:
    """Parsing driven by the type of the default."""

    def test_bool(self):
        assert ConfigLoader._parse_value_with_type('true', bool, False) is True
        assert ConfigLoader._parse_value_with_type('1', bool, False) is True
        assert ConfigLoader._parse_value_with_type('off', bool, True) is False

    def test_int(self):
        assert ConfigLoader._parse_value_with_type('8080', int, 0) == 8080
        assert ConfigLoader._parse_value_with_type('0x10', int, 0) == 16

    def test_int_invalid_falls_back_to_default(self):
        assert ConfigLoader._parse_value_with_type('eighty', int, 80) == 80

    def test_float(self):
        assert ConfigLoader._parse_value_with_type('2.5', float, 0.0) == pytest.approx(2.5)

    def test_float_invalid_falls_back_to_default(self):
        assert ConfigLoader._parse_value_with_type('soon', float, 5.0) == 5.0

    def test_string(self):
        assert ConfigLoader._parse_value_with_type('camera.local', str, '') == 'camera.local'


class TestConfigLoaderLoad:
    """Reading files on top of defaults."""

    def test_missing_file_returns_defaults(self, tmp_path: Path):
        defaults = {'camera_port': 80}

        config = ConfigLoader.load(tmp_path / 'missing.txt', defaults)

        assert config == defaults
        assert config is not defaults

    def test_typed_values_and_comments(self, config_file):
        path = config_file(
            "# camera\n"
            "camera_host = 'cam.local'\n"
            "camera_port = 8080  # http\n"
            "volume_enabled = no\n"
            "\n"
            "not a setting\n"
        )

        config = ConfigLoader.load(path, {'camera_host': '', 'camera_port': 80, 'volume_enabled': True})

        assert config == {'camera_host': 'cam.local', 'camera_port': 8080, 'volume_enabled': False}

    def test_unknown_keys_kept_unless_strict(self, config_file):
        path = config_file("extra = 3\n")

        assert ConfigLoader.load(path, {'a': 1})['extra'] == 3
        assert 'extra' not in ConfigLoader.load(path, {'a': 1}, strict=True)

    @pytest.mark.asyncio
    async def test_load_async(self, config_file):
        path = config_file("camera_port = 81\n")

        config = await ConfigLoader.load_async(path, {'camera_port': 80})

        assert config['camera_port'] == 81
