"""Session orchestrator tying a paired core to the MPRIS player.

The orchestrator runs on the Qt main thread. Worker signals are queued to
it, so every pairing, zone or command event is handled to completion
before the next one starts.

State machine:
    Unpaired --on_paired--> Paired --on_unpaired--> Unpaired

Only zones whose display name equals the configured zone name are
tracked; everything else is ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QObject, Signal, Slot

from roonmpris.core.config import ConfigManager
from roonmpris.core.notifier import NotificationDispatcher
from roonmpris.core.relay import CommandRelay
from roonmpris.core.translator import apply_seek, to_microseconds, translate
from roonmpris.errors import UnknownPlaybackStateError
from roonmpris.models.connection import Connection
from roonmpris.models.events import (
    ZoneEvent,
    ZonesChanged,
    ZonesListed,
    ZonesSeekChanged,
)
from roonmpris.models.player import NotificationRequest, PlayerState, TransportCommand
from roonmpris.models.zone import ZoneSnapshot
from roonmpris.mpris.player import MprisPlayer

logger = logging.getLogger(__name__)


@dataclass
class BridgeState:
    """Mutable bridge state, rebuilt from scratch on every start.

    Attributes:
        connection: The paired core, None while unpaired.
        zone: Last snapshot of the configured zone, None until one arrives.
    """

    connection: Connection | None = None
    zone: ZoneSnapshot | None = None

    @property
    def is_paired(self) -> bool:
        """Return True while a core is paired."""
        return self.connection is not None


class SessionOrchestrator(QObject):
    """Route core events to the player and player commands to the core.

    Example:
        session = SessionOrchestrator(BridgeState(), config, player, relay, dispatcher)
        worker.paired.connect(session.on_paired)
        worker.unpaired.connect(session.on_unpaired)
        worker.zone_event.connect(session.on_zone_event)
    """

    # Emitted on pairing state transitions (True = paired)
    pairing_changed = Signal(bool)

    # Emitted after a tracked zone snapshot has been applied to the player
    zone_applied = Signal(object)

    # Emitted when a notification is handed to the dispatcher
    notification_requested = Signal(object)

    def __init__(
        self,
        state: BridgeState,
        config: ConfigManager,
        player: MprisPlayer,
        relay: CommandRelay,
        dispatcher: NotificationDispatcher | None = None,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            state: Bridge state, shared by reference.
            config: Source of the selected zone and feature flags.
            player: MPRIS player to update.
            relay: Relay for transport commands.
            dispatcher: Notification dispatcher, None to disable notifications.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._state = state
        self._config = config
        self._player = player
        self._relay = relay
        self._dispatcher = dispatcher
        self._last_notification: NotificationRequest | None = None

        self._player.position_provider = self.position
        self._player.command_received.connect(self.on_player_event)

    @property
    def state(self) -> BridgeState:
        """Return the bridge state."""
        return self._state

    def set_dispatcher(self, dispatcher: NotificationDispatcher | None) -> None:
        """Set the notification dispatcher, None to disable notifications."""
        self._dispatcher = dispatcher

    # -- Pairing ---------------------------------------------------------------

    @Slot(object)
    def on_paired(self, connection: Connection) -> None:
        """Store the paired core.

        Args:
            connection: The newly paired core.
        """
        self._state.connection = connection
        logger.info("Core paired: %s", connection.label)
        self.pairing_changed.emit(True)

    @Slot()
    def on_unpaired(self) -> None:
        """Forget the paired core; zone events are ignored until re-paired."""
        connection = self._state.connection
        self._state.connection = None
        if connection is not None:
            logger.info("%s - LOST", connection.label)
            self.pairing_changed.emit(False)

    # -- Zone events -----------------------------------------------------------

    @Slot(object)
    def on_zone_event(self, event: ZoneEvent) -> None:
        """Apply a zone subscription event.

        Args:
            event: Decoded zone event.
        """
        connection = self._state.connection
        if connection is None:
            logger.debug("Ignoring zone event while unpaired: %s", type(event).__name__)
            return

        if isinstance(event, (ZonesListed, ZonesChanged)):
            self._on_zones(event.zones, connection)
        elif isinstance(event, ZonesSeekChanged):
            self._on_seek(event)
        else:
            logger.info("%s - %s", connection.label, event)

    def _on_zones(self, zones: list[dict[str, Any]], connection: Connection) -> None:
        zone_name = self._config.get_zone_name()
        tracked = self._state.zone
        if tracked is not None and tracked.display_name != zone_name:
            # Selection changed: stop seeking and addressing the old zone.
            logger.info("Zone '%s' is no longer selected", tracked.display_name)
            self._state.zone = None
        if not zone_name:
            return

        for raw in zones:
            if raw.get("display_name") != zone_name:
                continue
            try:
                snapshot = ZoneSnapshot.from_dict(raw)
            except UnknownPlaybackStateError as e:
                logger.error("Zone '%s' skipped: %s", zone_name, e)
                continue
            self._zone_changed(snapshot, connection)

    def _zone_changed(self, snapshot: ZoneSnapshot, connection: Connection) -> None:
        self._state.zone = snapshot
        logger.debug("Zone changed: %s", snapshot)

        player_state, notification = translate(
            snapshot, connection, map_can_play=self._config.get_map_can_play()
        )
        self._apply(player_state)
        if snapshot.now_playing is not None:
            self._player.position = to_microseconds(snapshot.now_playing.seek_position)
        self.zone_applied.emit(snapshot)

        if notification is not None:
            self._request_notification(notification)

    def _apply(self, state: PlayerState) -> None:
        player = self._player
        if state.metadata is not None:
            player.metadata = state.metadata
        player.playback_status = state.playback_status
        player.can_go_next = state.can_go_next
        player.can_go_previous = state.can_go_previous
        player.can_pause = state.can_pause
        player.can_seek = state.can_seek
        if state.can_play is not None:
            player.can_play = state.can_play

    def _request_notification(self, request: NotificationRequest) -> None:
        # One notification per track: repeated zone updates while the
        # same track plays produce an identical request.
        if request == self._last_notification:
            return
        self._last_notification = request
        self.notification_requested.emit(request)

        if self._dispatcher is None or not self._config.get_notifications_enabled():
            return
        self._dispatcher.notify(request.title_parts, request.message, request.artwork_url)

    def _on_seek(self, event: ZonesSeekChanged) -> None:
        zone = self._state.zone
        if zone is None:
            return
        for change in event.changes:
            if change.zone_id != zone.zone_id:
                continue
            zone = zone.with_seek(change.seek_position)
            self._state.zone = zone
            self._player.position = apply_seek(change.seek_position)

    def position(self) -> int:
        """Return the tracked zone's position in microseconds (0 without a zone)."""
        zone = self._state.zone
        if zone is None or zone.now_playing is None:
            return 0
        return to_microseconds(zone.now_playing.seek_position)

    # -- Player commands -------------------------------------------------------

    def zone_selector(self) -> str | None:
        """Return the id transport commands are addressed to.

        The configured output id is preferred; the tracked zone id is the
        fallback when the settings carry no output id.
        """
        zone = self._config.get_zone()
        if zone and zone.get("output_id"):
            return zone["output_id"]
        if self._state.zone is not None:
            return self._state.zone.zone_id
        return None

    @Slot(object)
    def on_command(self, command: TransportCommand) -> None:
        """Relay a transport command to the core.

        Args:
            command: Command from the player.
        """
        self._relay.dispatch(command, self._state.connection, self.zone_selector())

    @Slot(str, object)
    def on_player_event(self, event: str, args: tuple[object, ...]) -> None:
        """Handle any event raised by the player.

        Args:
            event: Player event name.
            args: Event arguments.
        """
        try:
            command = TransportCommand(event)
        except ValueError:
            self._relay.log_unhandled(event, *args)
            return
        self.on_command(command)
