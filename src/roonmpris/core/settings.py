"""Settings service shown in the Roon extension settings dialog.

The dialog has one field: the zone the bridge follows.
"""

import logging
from typing import Any, cast

from roonmpris.core.config import ConfigManager

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "Success"
STATUS_NOT_VALID = "NotValid"


def _zone_is_valid(zone: object) -> bool:
    if zone is None:
        return True
    if not isinstance(zone, dict):
        return False
    name = cast(dict[str, Any], zone).get("name")
    return isinstance(name, str) and bool(name)


def make_layout(values: dict[str, Any]) -> dict[str, Any]:
    """Build the settings layout for the given values.

    Args:
        values: Settings values, ``{"zone": {...} | None}``.

    Returns:
        Layout with ``values``, the field list and ``has_error``.
    """
    zone = values.get("zone")
    layout: list[dict[str, Any]] = [{"type": "zone", "title": "Zone", "setting": "zone"}]
    has_error = not _zone_is_valid(zone)
    if has_error:
        layout[0]["error"] = "Select a zone"
    return {"values": values, "layout": layout, "has_error": has_error}


class SettingsService:
    """Serve and persist the extension settings.

    Example:
        service = SettingsService(config)
        status, layout = service.save_settings({"zone": {...}}, is_dry_run=False)
    """

    def __init__(self, config: ConfigManager) -> None:
        """Initialize the service.

        Args:
            config: Store the selected zone is persisted to.
        """
        self._config = config

    def current_values(self) -> dict[str, Any]:
        """Return the persisted settings values."""
        return {"zone": self._config.get_zone()}

    def get_settings(self) -> dict[str, Any]:
        """Return the layout for the persisted settings."""
        return make_layout(self.current_values())

    def save_settings(self, values: object, is_dry_run: bool) -> tuple[str, dict[str, Any]]:
        """Validate submitted settings and persist them.

        Args:
            values: Submitted values from the settings dialog.
            is_dry_run: Validate only, do not persist.

        Returns:
            Tuple of (status, layout). Status is "Success" or "NotValid";
            configuration is unchanged unless the status is "Success" and
            this is not a dry run.
        """
        submitted = cast(dict[str, Any], values) if isinstance(values, dict) else {"zone": values}
        layout = make_layout(submitted)
        if layout["has_error"]:
            logger.warning("Rejected settings: %s", submitted)
            return STATUS_NOT_VALID, layout

        if not is_dry_run:
            zone = submitted.get("zone")
            self._config.set_zone(cast(dict[str, object], zone) if zone else None)
            self._config.sync()
        return STATUS_SUCCESS, layout
