"""Desktop UI: system tray icon and notifications."""

from roonmpris.ui.notifications import DesktopNotifier
from roonmpris.ui.system_tray import SystemTrayManager

__all__ = ["DesktopNotifier", "SystemTrayManager"]
