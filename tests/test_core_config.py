"""Tests for ConfigManager using QSettings."""

from pathlib import Path

from roonmpris.core.config import SETTINGS_FILE_NAME, ConfigManager


class TestConfigManagerBasics:
    """Test basic ConfigManager functionality."""

    def test_creates_directory(self, tmp_path: Path) -> None:
        """Test the configuration directory is created."""
        config_dir = tmp_path / "a" / "b"
        config = ConfigManager(config_dir)
        assert config_dir.is_dir()
        assert config.path == config_dir / SETTINGS_FILE_NAME

    def test_initially_empty(self, config: ConfigManager) -> None:
        """Test defaults on a fresh directory."""
        assert config.get_zone() is None
        assert config.get_zone_name() is None
        assert config.get_token() is None
        assert config.get_map_can_play() is False
        assert config.get_notifications_enabled() is True
        assert config.load("settings") == {"zone": None}


class TestZoneSelection:
    """Test zone settings."""

    def test_set_and_get_zone(self, config: ConfigManager) -> None:
        """Test a selected zone round-trips."""
        config.set_zone({"name": "Kitchen", "output_id": "1701"})
        assert config.get_zone() == {"name": "Kitchen", "output_id": "1701"}
        assert config.get_zone_name() == "Kitchen"

    def test_zone_without_output_id(self, config: ConfigManager) -> None:
        """Test output_id is optional."""
        config.set_zone({"name": "Den"})
        assert config.get_zone() == {"name": "Den", "output_id": ""}

    def test_clear_zone(self, config: ConfigManager) -> None:
        """Test None clears the selection."""
        config.set_zone({"name": "Kitchen", "output_id": "1701"})
        config.set_zone(None)
        assert config.get_zone() is None

    def test_generic_settings_key(self, config: ConfigManager) -> None:
        """Test the settings key maps to the zone selection."""
        config.save("settings", {"zone": {"name": "Office", "output_id": "o1"}})
        assert config.load("settings") == {"zone": {"name": "Office", "output_id": "o1"}}

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        """Test a new manager on the same directory sees saved values."""
        first = ConfigManager(tmp_path)
        first.set_zone({"name": "Kitchen", "output_id": "1701"})
        first.set_token("tok")
        first.sync()

        second = ConfigManager(tmp_path)
        assert second.get_zone_name() == "Kitchen"
        assert second.get_token() == "tok"

    def test_directories_are_independent(self, tmp_path: Path) -> None:
        """Test two configuration directories do not share values."""
        ConfigManager(tmp_path / "one").set_zone({"name": "Kitchen"})
        assert ConfigManager(tmp_path / "two").get_zone() is None


class TestOtherSettings:
    """Test token, flags and paths."""

    def test_token(self, config: ConfigManager) -> None:
        """Test the pairing token round-trips."""
        config.set_token("abc")
        assert config.get_token() == "abc"

    def test_flags(self, config: ConfigManager) -> None:
        """Test the boolean flags."""
        config.set_map_can_play(True)
        config.set_notifications_enabled(False)
        assert config.get_map_can_play() is True
        assert config.get_notifications_enabled() is False

    def test_artwork_path(self, config: ConfigManager, tmp_path: Path) -> None:
        """Test the artwork path default and override."""
        assert config.get_artwork_path().name == "roon-mpris-cover"
        config.set_artwork_path(tmp_path / "cover")
        assert config.get_artwork_path() == tmp_path / "cover"

    def test_clear(self, config: ConfigManager) -> None:
        """Test clear removes everything."""
        config.set_token("abc")
        config.set_zone({"name": "Kitchen"})
        config.clear()
        assert config.get_token() is None
        assert config.get_zone() is None
