"""Desktop notifications through ``org.freedesktop.Notifications``.

Notifications are ``Notify`` method calls sent on the session bus
connection owned by the MPRIS service, so they are shown whether or not a
system tray is available.

Usage:
    from roonmpris.ui.notifications import DesktopNotifier

    notifier = DesktopNotifier(service)
    notifier.notify("Artist", "Title", "/tmp/roon-mpris-cover")
"""

import logging
from concurrent.futures import Future
from typing import Protocol

from dbus_fast import Message, MessageType, Variant

logger = logging.getLogger(__name__)

APP_NAME = "Roon MPRIS"

NOTIFICATIONS_SERVICE = "org.freedesktop.Notifications"
NOTIFICATIONS_PATH = "/org/freedesktop/Notifications"
NOTIFY_SIGNATURE = "susssasa{sv}i"

# Notification display time in milliseconds
EXPIRE_TIMEOUT_MS = 10000


class BusCaller(Protocol):
    """Anything that can send a method call on the session bus."""

    def call(self, message: Message) -> Future[Message | None] | None:
        """Send a method call, returning None when not connected."""
        ...


def notify_message(title: str, message: str, icon: str, app_name: str = APP_NAME) -> Message:
    """Build a ``Notify`` method call.

    The icon is passed both as the application icon and as the
    ``image-path`` hint; servers differ in which one they display.

    Args:
        title: Notification summary.
        message: Notification body.
        icon: Path of the icon image, empty for none.
        app_name: Sending application's name.

    Returns:
        The method call message.
    """
    hints = {"image-path": Variant("s", icon)} if icon else {}
    return Message(
        destination=NOTIFICATIONS_SERVICE,
        path=NOTIFICATIONS_PATH,
        interface=NOTIFICATIONS_SERVICE,
        member="Notify",
        signature=NOTIFY_SIGNATURE,
        body=[app_name, 0, icon, title, message, [], hints, EXPIRE_TIMEOUT_MS],
    )


class DesktopNotifier:
    """Send desktop notifications over a bus connection.

    ``notify`` may be called from any thread; the reply is only logged.
    """

    def __init__(self, bus: BusCaller, app_name: str = APP_NAME) -> None:
        self._bus = bus
        self._app_name = app_name

    def notify(self, title: str, message: str, icon: str) -> None:
        """Show a desktop notification.

        Args:
            title: Notification title.
            message: Notification body.
            icon: Path of the icon image.
        """
        future = self._bus.call(notify_message(title, message, icon, self._app_name))
        if future is None:
            logger.warning("Session bus not connected; notification dropped: %s", message)
            return
        future.add_done_callback(self._on_reply)

    @staticmethod
    def _on_reply(future: Future[Message | None]) -> None:
        try:
            reply = future.result()
        except Exception as e:  # noqa: BLE001
            logger.warning("Notification failed: %s", e)
            return
        if reply is None:
            return
        if reply.message_type == MessageType.ERROR:
            logger.warning("Notification refused: %s %s", reply.error_name, reply.body)
        else:
            logger.debug("Notification %s shown", reply.body[0] if reply.body else "")
