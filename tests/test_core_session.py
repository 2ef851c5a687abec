"""Tests for SessionOrchestrator."""

from typing import Any
from unittest.mock import MagicMock

import pytest
from pytestqt.qtbot import QtBot

from roonmpris.core.config import ConfigManager
from roonmpris.core.relay import CommandRelay
from roonmpris.core.session import BridgeState, SessionOrchestrator
from roonmpris.models.connection import Connection
from roonmpris.models.events import (
    SeekChange,
    UnhandledZoneEvent,
    ZonesChanged,
    ZonesListed,
    ZonesSeekChanged,
)
from roonmpris.models.player import NotificationRequest, TransportCommand
from roonmpris.mpris.player import MprisPlayer


@pytest.fixture
def player(qtbot: QtBot) -> MprisPlayer:
    """Return a fresh player."""
    return MprisPlayer()


@pytest.fixture
def transport() -> MagicMock:
    """Return a mock transport control."""
    return MagicMock()


@pytest.fixture
def dispatcher() -> MagicMock:
    """Return a mock notification dispatcher."""
    return MagicMock()


@pytest.fixture
def on_quit() -> MagicMock:
    """Return a mock quit callback."""
    return MagicMock()


@pytest.fixture
def session(
    config: ConfigManager,
    player: MprisPlayer,
    transport: MagicMock,
    dispatcher: MagicMock,
    on_quit: MagicMock,
) -> SessionOrchestrator:
    """Return a session following the Kitchen zone."""
    config.set_zone({"name": "Kitchen", "output_id": "out-1"})
    relay = CommandRelay(transport, on_quit=on_quit)
    return SessionOrchestrator(BridgeState(), config, player, relay, dispatcher)


class TestPairing:
    """Pairing state transitions."""

    def test_paired(
        self, qtbot: QtBot, session: SessionOrchestrator, connection: Connection
    ) -> None:
        """Test pairing stores the connection and emits."""
        with qtbot.waitSignal(session.pairing_changed) as blocker:
            session.on_paired(connection)
        assert blocker.args == [True]
        assert session.state.connection == connection
        assert session.state.is_paired

    def test_unpaired(
        self,
        qtbot: QtBot,
        session: SessionOrchestrator,
        connection: Connection,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test losing the core clears the connection and logs LOST."""
        session.on_paired(connection)
        with caplog.at_level("INFO"), qtbot.waitSignal(session.pairing_changed) as blocker:
            session.on_unpaired()
        assert blocker.args == [False]
        assert session.state.connection is None
        assert "LOST" in caplog.text

    def test_unpaired_when_not_paired(self, qtbot: QtBot, session: SessionOrchestrator) -> None:
        """Test an unpair without a pairing does nothing."""
        with qtbot.assertNotEmitted(session.pairing_changed):
            session.on_unpaired()


class TestZoneEvents:
    """Zone events applied to the player."""

    def test_end_to_end_playing(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        dispatcher: MagicMock,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test pairing then a listing drives the player and a notification."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(now_playing=make_now_playing())]))

        assert player.playback_status == "Playing"
        assert player.metadata["xesam:title"] == "Song"
        assert player.metadata["xesam:artist"] == ["A", "B"]
        assert player.metadata["mpris:artUrl"] == "http://core:9100/api/image/img1"
        assert player.can_go_next
        assert player.can_pause
        assert not player.can_seek
        assert player.position == 5_000_000
        dispatcher.notify.assert_called_once_with(
            ["A", "B"], "Song", "http://core:9100/api/image/img1"
        )

    def test_ignored_while_unpaired(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        dispatcher: MagicMock,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test zone events are dropped before pairing."""
        session.on_zone_event(ZonesChanged([make_zone(now_playing=make_now_playing())]))
        assert player.playback_status == "Stopped"
        assert session.state.zone is None
        dispatcher.notify.assert_not_called()

    def test_ignored_after_unpair(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test zone events are dropped once the core is lost."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(state="paused", now_playing=make_now_playing())]))
        session.on_unpaired()
        session.on_zone_event(ZonesChanged([make_zone(now_playing=make_now_playing())]))
        assert player.playback_status == "Paused"

    def test_other_zones_ignored(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
    ) -> None:
        """Test only the configured zone is applied."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(name="Bedroom")]))
        assert session.state.zone is None
        assert player.playback_status == "Stopped"

    def test_no_configured_zone(
        self,
        session: SessionOrchestrator,
        config: ConfigManager,
        connection: Connection,
        make_zone: Any,
    ) -> None:
        """Test nothing is tracked without a zone selection."""
        config.set_zone(None)
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone()]))
        assert session.state.zone is None

    def test_unknown_state_skipped(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a zone with an unknown state is logged and skipped."""
        session.on_paired(connection)
        session.on_zone_event(ZonesChanged([make_zone(state="exploding")]))
        assert session.state.zone is None
        assert player.playback_status == "Stopped"
        assert "Unknown playback state" in caplog.text

    def test_zone_without_track_keeps_metadata(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test a zone update without a track leaves metadata as it was."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(now_playing=make_now_playing())]))
        session.on_zone_event(ZonesChanged([make_zone(state="stopped")]))
        assert player.playback_status == "Stopped"
        assert player.metadata["xesam:title"] == "Song"

    def test_notification_once_per_track(
        self,
        session: SessionOrchestrator,
        dispatcher: MagicMock,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test repeated updates of one track notify once."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(now_playing=make_now_playing())]))
        session.on_zone_event(ZonesChanged([make_zone(now_playing=make_now_playing(seek_position=9))]))
        session.on_zone_event(ZonesChanged([make_zone(now_playing=make_now_playing(title="Next"))]))
        assert dispatcher.notify.call_count == 2

    def test_notifications_disabled(
        self,
        qtbot: QtBot,
        session: SessionOrchestrator,
        config: ConfigManager,
        dispatcher: MagicMock,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test the notifications flag suppresses delivery but not the signal."""
        config.set_notifications_enabled(False)
        session.on_paired(connection)
        with qtbot.waitSignal(session.notification_requested) as blocker:
            session.on_zone_event(ZonesListed([make_zone(now_playing=make_now_playing())]))
        assert blocker.args == [NotificationRequest(["A", "B"], "Song", "http://core:9100/api/image/img1")]
        dispatcher.notify.assert_not_called()

    def test_map_can_play(
        self,
        session: SessionOrchestrator,
        config: ConfigManager,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test CanPlay follows the zone only when configured."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(now_playing=make_now_playing())]))
        assert player.can_play is True

        config.set_map_can_play(True)
        session.on_zone_event(ZonesChanged([make_zone(now_playing=make_now_playing())]))
        assert player.can_play is False

    def test_seek_updates_position(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test seek changes for the tracked zone move the position."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(now_playing=make_now_playing())]))
        metadata = player.metadata
        session.on_zone_event(
            ZonesSeekChanged([SeekChange("other", 99), SeekChange("1601bb42", 42)])
        )
        assert player.metadata == metadata
        assert player.position == 42_000_000
        assert session.state.zone is not None
        assert session.state.zone.now_playing is not None
        assert session.state.zone.now_playing.seek_position == 42

    def test_seek_emits_no_metadata(
        self,
        qtbot: QtBot,
        session: SessionOrchestrator,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test a seek update publishes no property changes."""
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone(now_playing=make_now_playing())]))
        with qtbot.assertNotEmitted(player.properties_changed):
            session.on_zone_event(ZonesSeekChanged([SeekChange("1601bb42", 12.5)]))
        assert player.position == 12_500_000

    def test_reselected_zone_drops_old_zone(
        self,
        session: SessionOrchestrator,
        config: ConfigManager,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test switching zones forgets the previous one before the new one reports."""
        config.set_zone({"name": "Kitchen"})
        session.on_paired(connection)
        session.on_zone_event(
            ZonesListed([make_zone(now_playing=make_now_playing(seek_position=30))])
        )
        assert session.zone_selector() == "1601bb42"

        config.set_zone({"name": "Bedroom"})
        session.on_zone_event(ZonesChanged([make_zone()]))

        assert session.state.zone is None
        assert session.zone_selector() is None
        assert session.position() == 0
        session.on_zone_event(ZonesSeekChanged([SeekChange("1601bb42", 99)]))
        assert player.position == 0

        session.on_zone_event(ZonesChanged([make_zone(name="Bedroom", zone_id="bed-1")]))
        assert session.state.zone is not None
        assert session.zone_selector() == "bed-1"

    def test_seek_before_zone_is_ignored(
        self, session: SessionOrchestrator, player: MprisPlayer, connection: Connection
    ) -> None:
        """Test seek changes without a tracked zone do nothing."""
        session.on_paired(connection)
        session.on_zone_event(ZonesSeekChanged([SeekChange("1601bb42", 42)]))
        assert player.position == 0

    def test_unhandled_event_logged(
        self,
        session: SessionOrchestrator,
        connection: Connection,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test other subscription payloads are only logged."""
        session.on_paired(connection)
        with caplog.at_level("INFO"):
            session.on_zone_event(UnhandledZoneEvent({"zones_removed": ["z"]}))
        assert "zones_removed" in caplog.text

    def test_zone_applied_signal(
        self,
        qtbot: QtBot,
        session: SessionOrchestrator,
        connection: Connection,
        make_zone: Any,
    ) -> None:
        """Test zone_applied carries the snapshot."""
        session.on_paired(connection)
        with qtbot.waitSignal(session.zone_applied) as blocker:
            session.on_zone_event(ZonesListed([make_zone()]))
        assert blocker.args[0].display_name == "Kitchen"


class TestCommands:
    """Player commands relayed to the core."""

    def test_next_uses_output_id(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        transport: MagicMock,
        connection: Connection,
    ) -> None:
        """Test Next reaches the configured output."""
        session.on_paired(connection)
        player.next()
        transport.control.assert_called_once_with("out-1", "next")

    def test_falls_back_to_zone_id(
        self,
        session: SessionOrchestrator,
        config: ConfigManager,
        player: MprisPlayer,
        transport: MagicMock,
        connection: Connection,
        make_zone: Any,
    ) -> None:
        """Test the tracked zone id is used without an output id."""
        config.set_zone({"name": "Kitchen"})
        session.on_paired(connection)
        session.on_zone_event(ZonesListed([make_zone()]))
        player.play_pause()
        transport.control.assert_called_once_with("1601bb42", "playpause")

    def test_command_while_unpaired(
        self, session: SessionOrchestrator, player: MprisPlayer, transport: MagicMock
    ) -> None:
        """Test commands are dropped while unpaired."""
        player.stop()
        transport.control.assert_not_called()

    def test_on_command(
        self, session: SessionOrchestrator, transport: MagicMock, connection: Connection
    ) -> None:
        """Test on_command sends the control directly."""
        session.on_paired(connection)
        session.on_command(TransportCommand.PREVIOUS)
        transport.control.assert_called_once_with("out-1", "previous")

    def test_unhandled_player_events(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        transport: MagicMock,
        on_quit: MagicMock,
        connection: Connection,
    ) -> None:
        """Test play/pause/seek are not relayed and quit exits."""
        session.on_paired(connection)
        player.play()
        player.pause()
        player.seek(1_000_000)
        transport.control.assert_not_called()
        player.quit()
        on_quit.assert_called_once_with()

    def test_position_provider(
        self,
        session: SessionOrchestrator,
        player: MprisPlayer,
        connection: Connection,
        make_zone: Any,
        make_now_playing: Any,
    ) -> None:
        """Test the player reads its position from the session."""
        assert player.position == 0
        session.on_paired(connection)
        session.on_zone_event(
            ZonesListed([make_zone(now_playing=make_now_playing(seek_position=1.25))])
        )
        assert session.position() == 1_250_000
        assert player.position == 1_250_000
