"""Configuration manager using QSettings for persistent storage."""

import logging
import tempfile
from pathlib import Path

from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "roon-mpris"
SETTINGS_FILE_NAME = "settings.ini"

# Selected zone
_KEY_ZONE_NAME = "settings/zone_name"
_KEY_ZONE_OUTPUT_ID = "settings/zone_output_id"

# Pairing
_KEY_TOKEN = "roon/token"

# MPRIS
_KEY_MAP_CAN_PLAY = "mpris/map_can_play"

# Notifications
_KEY_NOTIFICATIONS_ENABLED = "notifications/enabled"
_KEY_ARTWORK_PATH = "notifications/artwork_path"

_DEFAULT_ARTWORK_PATH = str(Path(tempfile.gettempdir()) / "roon-mpris-cover")


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    Settings are kept in an INI file inside the configuration directory,
    so each ``--config`` directory holds an independent configuration.

    Example:
        config = ConfigManager(Path("~/.config/roon-mpris").expanduser())
        zone = config.get_zone()
        config.set_zone({"name": "Kitchen", "output_id": "1701..."})
    """

    def __init__(self, config_dir: Path = DEFAULT_CONFIG_DIR) -> None:
        """Initialize the config manager.

        Args:
            config_dir: Directory holding the settings file. Created if missing.
        """
        config_dir.mkdir(parents=True, exist_ok=True)
        self._path = config_dir / SETTINGS_FILE_NAME
        self._settings = QSettings(str(self._path), QSettings.Format.IniFormat)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    @property
    def path(self) -> Path:
        """Return the settings file path."""
        return self._path

    # -- Generic store ---------------------------------------------------------

    def load(self, key: str) -> object | None:
        """Load a stored value.

        Args:
            key: Settings key. ``"settings"`` returns the zone settings
                shape ``{"zone": {...} | None}``.

        Returns:
            The stored value, or None if absent.
        """
        if key == "settings":
            return {"zone": self.get_zone()}
        return self._settings.value(key, None)

    def save(self, key: str, value: object) -> None:
        """Persist a value.

        Args:
            key: Settings key. ``"settings"`` expects ``{"zone": {...} | None}``.
            value: Value to store.
        """
        if key == "settings":
            zone = value.get("zone") if isinstance(value, dict) else None
            self.set_zone(zone if isinstance(zone, dict) else None)
            return
        self._settings.setValue(key, value)

    # -- Zone selection --------------------------------------------------------

    def get_zone(self) -> dict[str, str] | None:
        """Return the selected zone.

        Returns:
            ``{"name": ..., "output_id": ...}``, or None if no zone is selected.
        """
        name = self._settings.value(_KEY_ZONE_NAME, "", str)
        if not name:
            return None
        output_id = self._settings.value(_KEY_ZONE_OUTPUT_ID, "", str)
        return {"name": str(name), "output_id": str(output_id) if output_id else ""}

    def get_zone_name(self) -> str | None:
        """Return the selected zone name, or None if no zone is selected."""
        zone = self.get_zone()
        return zone["name"] if zone else None

    def set_zone(self, zone: dict[str, object] | None) -> None:
        """Select a zone, or clear the selection.

        Args:
            zone: Zone object with ``name`` and optional ``output_id``, or None.
        """
        if not zone or not zone.get("name"):
            self._settings.remove(_KEY_ZONE_NAME)
            self._settings.remove(_KEY_ZONE_OUTPUT_ID)
            logger.info("Zone selection cleared")
            return
        self._settings.setValue(_KEY_ZONE_NAME, str(zone["name"]))
        self._settings.setValue(_KEY_ZONE_OUTPUT_ID, str(zone.get("output_id") or ""))
        logger.info("Zone selection set to '%s'", zone["name"])

    # -- Pairing ---------------------------------------------------------------

    def get_token(self) -> str | None:
        """Return the pairing token issued by the core, or None."""
        value = self._settings.value(_KEY_TOKEN, "", str)
        return str(value) if value else None

    def set_token(self, token: str) -> None:
        """Store the pairing token issued by the core.

        Args:
            token: Token string from the registration reply.
        """
        self._settings.setValue(_KEY_TOKEN, token)

    # -- MPRIS -----------------------------------------------------------------

    def get_map_can_play(self) -> bool:
        """Return whether CanPlay mirrors the zone's play permission.

        Off by default: the Ubuntu dock hides its media widget when CanPlay
        turns false while a track is playing.
        """
        return bool(self._settings.value(_KEY_MAP_CAN_PLAY, False, bool))

    def set_map_can_play(self, enabled: bool) -> None:
        """Enable or disable mapping CanPlay from the zone.

        Args:
            enabled: Whether to map CanPlay.
        """
        self._settings.setValue(_KEY_MAP_CAN_PLAY, enabled)

    # -- Notifications ---------------------------------------------------------

    def get_notifications_enabled(self) -> bool:
        """Return whether track-change notifications are shown (default True)."""
        return bool(self._settings.value(_KEY_NOTIFICATIONS_ENABLED, True, bool))

    def set_notifications_enabled(self, enabled: bool) -> None:
        """Enable or disable track-change notifications.

        Args:
            enabled: Whether to show notifications.
        """
        self._settings.setValue(_KEY_NOTIFICATIONS_ENABLED, enabled)

    def get_artwork_path(self) -> Path:
        """Return the scratch path the latest cover art is written to."""
        value = self._settings.value(_KEY_ARTWORK_PATH, _DEFAULT_ARTWORK_PATH, str)
        return Path(str(value) if value else _DEFAULT_ARTWORK_PATH)

    def set_artwork_path(self, path: Path) -> None:
        """Set the scratch path for cover art.

        Args:
            path: File path, overwritten on every notification.
        """
        self._settings.setValue(_KEY_ARTWORK_PATH, str(path))

    # -- General ---------------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
