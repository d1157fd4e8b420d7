"""Tests for configuration helpers and validation"""
import pytest
from pathlib import Path
from unittest.mock import patch

from lifequest import config
from lifequest.exceptions import ConfigurationError


class TestStartingLifeScore:
    """Test STARTING_LIFESCORE parsing"""

    def test_default_is_zero(self):
        with patch.object(config, "STARTING_LIFESCORE_RAW", "0"):
            assert config.get_starting_lifescore() == 0

    def test_value_is_clamped(self):
        with patch.object(config, "STARTING_LIFESCORE_RAW", "4000"):
            assert config.get_starting_lifescore() == 1000
        with patch.object(config, "STARTING_LIFESCORE_RAW", "-5"):
            assert config.get_starting_lifescore() == 0

    def test_unparsable_falls_back_to_zero(self):
        with patch.object(config, "STARTING_LIFESCORE_RAW", "lots"):
            assert config.get_starting_lifescore() == 0


class TestConfigValidation:
    """Test validate_config"""

    def test_valid_configuration(self):
        """Defaults pass validation"""
        with patch.object(config, "LOG_LEVEL", "INFO"), \
                patch.object(config, "STARTING_LIFESCORE_RAW", "250"), \
                patch.object(config, "CATALOG_PATH", None):
            config.validate_config()

    def test_unknown_log_level(self):
        with patch.object(config, "LOG_LEVEL", "LOUD"):
            with pytest.raises(ConfigurationError) as exc_info:
                config.validate_config()
        assert exc_info.value.config_key == "LOG_LEVEL"

    def test_lowercase_log_level_accepted(self):
        with patch.object(config, "LOG_LEVEL", "debug"), \
                patch.object(config, "STARTING_LIFESCORE_RAW", "0"), \
                patch.object(config, "CATALOG_PATH", None):
            config.validate_config()

    @pytest.mark.parametrize("raw", ["abc", "1001", "-1"])
    def test_invalid_starting_lifescore(self, raw):
        with patch.object(config, "LOG_LEVEL", "INFO"), \
                patch.object(config, "STARTING_LIFESCORE_RAW", raw):
            with pytest.raises(ConfigurationError) as exc_info:
                config.validate_config()
        assert exc_info.value.config_key == "STARTING_LIFESCORE"

    def test_missing_catalog_file(self, tmp_path):
        with patch.object(config, "LOG_LEVEL", "INFO"), \
                patch.object(config, "STARTING_LIFESCORE_RAW", "0"), \
                patch.object(config, "CATALOG_PATH", tmp_path / "missing.json"):
            with pytest.raises(ConfigurationError) as exc_info:
                config.validate_config()
        assert exc_info.value.config_key == "CATALOG_PATH"

    def test_existing_catalog_file(self, tmp_path):
        catalog_file = Path(tmp_path / "catalog.json")
        catalog_file.write_text("{}")
        with patch.object(config, "LOG_LEVEL", "INFO"), \
                patch.object(config, "STARTING_LIFESCORE_RAW", "0"), \
                patch.object(config, "CATALOG_PATH", catalog_file):
            config.validate_config()
