"""
Unit tests for environment-driven configuration.
"""

import pytest

from guildstore.core.config import Config, Environment


@pytest.fixture
def env():
    """Patched environment; Config is re-read from the real one afterwards."""
    with pytest.MonkeyPatch.context() as patcher:
        yield patcher
    Config.reload()


@pytest.mark.unit
class TestConfigLoading:
    def test_reads_prefixed_environment(self, env, tmp_path):
        # Arrange
        env.setenv("GUILDSTORE_GUILDS_DIR", str(tmp_path / "records"))
        env.setenv("GUILDSTORE_COLOR_CHAR", "%")
        env.setenv("GUILDSTORE_LOG_TO_FILE", "yes")

        # Act
        Config.reload()

        # Assert
        assert Config.GUILDS_DIR == tmp_path / "records"
        assert Config.COLOR_CODE_CHAR == "%"
        assert Config.LOG_TO_FILE is True
        assert "GUILDS_DIR" in Config.get_config_summary()["from_environment"]

    def test_suffix_gets_leading_dot(self, env):
        env.setenv("GUILDSTORE_RECORD_SUFFIX", "yaml")
        Config.reload()
        assert Config.RECORD_SUFFIX == ".yaml"

    def test_invalid_values_fall_back_to_defaults(self, env):
        # Arrange
        env.setenv("GUILDSTORE_LOG_TO_FILE", "sometimes")
        env.setenv("GUILDSTORE_COLOR_CHAR", "&&")

        # Act
        Config.reload()

        # Assert
        assert Config.LOG_TO_FILE is False
        assert Config.COLOR_CODE_CHAR == "&"
        assert set(Config.get_config_summary()["warnings"]) == {"LOG_TO_FILE", "COLOR_CHAR"}

    def test_unset_log_json_is_none(self, env):
        env.delenv("GUILDSTORE_LOG_JSON", raising=False)
        Config.reload()
        assert Config.LOG_JSON is None

    def test_environment_parsing(self, env):
        # Arrange
        env.setenv("GUILDSTORE_ENV", "Production")

        # Act
        Config.reload()

        # Assert
        assert Config.is_production()
        assert Environment.from_string("nonsense") is Environment.DEVELOPMENT


@pytest.mark.unit
class TestConfigValidation:
    def test_validate_creates_guild_directory(self, env, tmp_path):
        # Arrange
        env.setenv("GUILDSTORE_GUILDS_DIR", str(tmp_path / "created" / "guilds"))
        Config.reload()

        # Act
        Config.validate()

        # Assert
        assert (tmp_path / "created" / "guilds").is_dir()

    def test_validate_resets_bad_log_level(self, env, tmp_path):
        # Arrange
        env.setenv("GUILDSTORE_GUILDS_DIR", str(tmp_path / "guilds"))
        env.setenv("GUILDSTORE_LOG_LEVEL", "LOUD")
        Config.reload()

        # Act
        Config.validate()

        # Assert
        assert Config.LOG_LEVEL == "INFO"
