"""Tests for DesktopNotifier."""

from collections.abc import Generator
from concurrent.futures import Future
from unittest.mock import MagicMock, patch

import pytest
from dbus_fast import Message, MessageType, Variant
from PySide6.QtWidgets import QSystemTrayIcon
from pytestqt.qtbot import QtBot

from roonmpris.core.config import ConfigManager
from roonmpris.core.relay import CommandRelay
from roonmpris.core.session import BridgeState, SessionOrchestrator
from roonmpris.mpris.player import MprisPlayer
from roonmpris.ui.notifications import (
    APP_NAME,
    EXPIRE_TIMEOUT_MS,
    NOTIFY_SIGNATURE,
    DesktopNotifier,
    notify_message,
)
from roonmpris.ui.system_tray import SystemTrayManager


def _reply(message_type: MessageType = MessageType.METHOD_RETURN) -> MagicMock:
    reply = MagicMock()
    reply.message_type = message_type
    reply.body = [7]
    reply.error_name = "org.freedesktop.DBus.Error.ServiceUnknown"
    return reply


@pytest.fixture
def bus() -> MagicMock:
    """Return a bus caller whose calls succeed immediately."""
    mock = MagicMock()
    future: Future[Message | None] = Future()
    future.set_result(_reply())
    mock.call.return_value = future
    return mock


class TestNotifyMessage:
    """Shape of the Notify call."""

    def test_notify_call(self) -> None:
        """Test the destination, signature and arguments."""
        message = notify_message("A, B", "Song", "/tmp/cover")
        assert message.destination == "org.freedesktop.Notifications"
        assert message.path == "/org/freedesktop/Notifications"
        assert message.interface == "org.freedesktop.Notifications"
        assert message.member == "Notify"
        assert message.signature == NOTIFY_SIGNATURE
        assert message.body == [
            APP_NAME,
            0,
            "/tmp/cover",
            "A, B",
            "Song",
            [],
            {"image-path": Variant("s", "/tmp/cover")},
            EXPIRE_TIMEOUT_MS,
        ]
        assert EXPIRE_TIMEOUT_MS == 10000

    def test_without_icon(self) -> None:
        """Test no image hint is sent without an icon."""
        message = notify_message("A", "Song", "")
        assert message.body[2] == ""
        assert message.body[6] == {}


class TestDesktopNotifier:
    """Delivery through the bus."""

    @pytest.fixture
    def hidden_tray(
        self, qtbot: QtBot, config: ConfigManager
    ) -> Generator[SystemTrayManager, None, None]:
        """Return a tray that is not shown, on a desktop without a tray."""
        session = SessionOrchestrator(BridgeState(), config, MprisPlayer(), CommandRelay(MagicMock()))
        with patch.object(QSystemTrayIcon, "isSystemTrayAvailable", return_value=False):
            tray = SystemTrayManager(session)
            tray.show()
            yield tray
        tray.cleanup()

    def test_notifies_without_tray(
        self, hidden_tray: SystemTrayManager, bus: MagicMock
    ) -> None:
        """Test notifications are sent when no tray icon is visible."""
        assert not hidden_tray.available
        assert not hidden_tray._tray.isVisible()

        DesktopNotifier(bus).notify("A, B", "Song", "/tmp/cover")

        message = bus.call.call_args.args[0]
        assert message.member == "Notify"
        assert message.body[2] == "/tmp/cover"
        assert message.body[3:5] == ["A, B", "Song"]
        assert message.body[7] == EXPIRE_TIMEOUT_MS

    def test_bus_not_connected(
        self, bus: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a notification without bus is logged and dropped."""
        bus.call.return_value = None
        DesktopNotifier(bus).notify("A", "Song", "/tmp/cover")
        assert "notification dropped: Song" in caplog.text

    def test_error_reply_logged(
        self, bus: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a refused notification is logged."""
        future: Future[Message | None] = Future()
        future.set_result(_reply(MessageType.ERROR))
        bus.call.return_value = future
        DesktopNotifier(bus).notify("A", "Song", "/tmp/cover")
        assert "Notification refused: org.freedesktop.DBus.Error.ServiceUnknown" in caplog.text

    def test_failed_call_logged(
        self, bus: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a call that raised is logged."""
        future: Future[Message | None] = Future()
        future.set_exception(ConnectionError("Session bus disconnected"))
        bus.call.return_value = future
        DesktopNotifier(bus).notify("A", "Song", "/tmp/cover")
        assert "Notification failed: Session bus disconnected" in caplog.text

    def test_custom_app_name(self, bus: MagicMock) -> None:
        """Test the application name is configurable."""
        DesktopNotifier(bus, app_name="Roon").notify("A", "Song", "")
        assert bus.call.call_args.args[0].body[0] == "Roon"
