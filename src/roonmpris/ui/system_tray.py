"""System tray icon with pairing status and now playing.

The tray is optional: desktop notifications go through
:mod:`roonmpris.ui.notifications` and do not need it.

Usage:
    from roonmpris.ui.system_tray import SystemTrayManager

    tray = SystemTrayManager(session)
    tray.show()
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Slot
from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPen
from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

if TYPE_CHECKING:
    from roonmpris.core.session import SessionOrchestrator
    from roonmpris.models.zone import ZoneSnapshot

logger = logging.getLogger(__name__)

APP_TITLE = "Roon MPRIS"

_COLOR_PAIRED = "#2e7d32"
_COLOR_UNPAIRED = "#c62828"
_COLOR_OUTLINE = "#202020"


class SystemTrayManager(QObject):
    """Manages the tray icon and its status menu.

    Example:
        tray = SystemTrayManager(session)
        tray.show()
    """

    def __init__(
        self,
        session: SessionOrchestrator,
        icon: QIcon | None = None,
    ) -> None:
        """Initialize the system tray manager.

        Args:
            session: Session whose pairing and zone updates are shown.
            icon: Optional icon for the tray. Falls back to a themed icon.
        """
        super().__init__()
        self._session = session
        self._paired = False
        self._zone: ZoneSnapshot | None = None

        if icon is None:
            icon = QIcon.fromTheme("multimedia-player")
        self._base_icon = icon

        self._tray = QSystemTrayIcon(self._build_status_icon())
        self._tray.setToolTip(f"{APP_TITLE} - Not paired")

        self._menu = QMenu()
        self._tray.setContextMenu(self._menu)
        self._rebuild_menu()

        self._session.pairing_changed.connect(self._on_pairing_changed)
        self._session.zone_applied.connect(self._on_zone_applied)

    @property
    def available(self) -> bool:
        """Return True if system tray is available on this platform."""
        return QSystemTrayIcon.isSystemTrayAvailable()

    def show(self) -> None:
        """Show the tray icon."""
        if self.available:
            self._tray.show()
            logger.info("System tray icon shown")
        else:
            logger.warning("System tray not available on this platform")

    def hide(self) -> None:
        """Hide the tray icon."""
        self._tray.hide()

    def _rebuild_menu(self) -> None:
        """Rebuild the tray context menu from current state."""
        self._menu.clear()

        status = QAction("Paired" if self._paired else "Not paired", self._menu)
        status.setEnabled(False)
        self._menu.addAction(status)

        zone = self._zone
        if zone is not None:
            zone_action = QAction(f"Zone: {zone.display_name}", self._menu)
            zone_action.setEnabled(False)
            self._menu.addAction(zone_action)

            if zone.now_playing is not None:
                lines = zone.now_playing.three_line
                label = f"♫ {lines.line1 or 'Unknown'}"
                if lines.line2:
                    label += f" - {lines.line2}"
                playing = QAction(label, self._menu)
                playing.setEnabled(False)
                self._menu.addAction(playing)

        self._menu.addSeparator()
        quit_action = QAction("Quit", self._menu)
        quit_action.triggered.connect(self._on_quit)
        self._menu.addAction(quit_action)

    def _build_status_icon(self) -> QIcon:
        """Build a tray icon with a pairing status dot overlay.

        Returns:
            QIcon with green (paired) or red (unpaired) dot at bottom-right.
        """
        size = 64
        pixmap = self._base_icon.pixmap(size, size)
        if pixmap.isNull():
            return self._base_icon

        painter = QPainter(pixmap)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)

            dot_radius = 8
            dot_x = size - dot_radius * 2 - 2
            dot_y = size - dot_radius * 2 - 2
            color = QColor(_COLOR_PAIRED if self._paired else _COLOR_UNPAIRED)

            painter.setPen(QPen(QColor(_COLOR_OUTLINE), 2))
            painter.setBrush(QBrush(color))
            painter.drawEllipse(dot_x, dot_y, dot_radius * 2, dot_radius * 2)
        finally:
            painter.end()

        return QIcon(pixmap)

    @Slot(bool)
    def _on_pairing_changed(self, paired: bool) -> None:
        """Update tray icon and tooltip when the pairing state changes.

        Args:
            paired: True if a core is paired.
        """
        self._paired = paired
        self._tray.setIcon(self._build_status_icon())
        connection = self._session.state.connection
        if paired and connection is not None:
            self._tray.setToolTip(f"{APP_TITLE} - {connection.display_name}")
        else:
            self._tray.setToolTip(f"{APP_TITLE} - Not paired")
        self._rebuild_menu()

    @Slot(object)
    def _on_zone_applied(self, zone: ZoneSnapshot) -> None:
        if zone == self._zone:
            return
        self._zone = zone
        self._rebuild_menu()

    def cleanup(self) -> None:
        """Disconnect session signals and release the menu before quitting."""
        with contextlib.suppress(RuntimeError):
            self._session.pairing_changed.disconnect(self._on_pairing_changed)
            self._session.zone_applied.disconnect(self._on_zone_applied)
        self._menu.clear()
        self._tray.hide()

    def _on_quit(self) -> None:
        """Quit the application."""
        self.cleanup()
        app = QApplication.instance()
        if app:
            app.quit()
