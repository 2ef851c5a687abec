"""MPRIS player model.

Holds the values of the ``org.mpris.MediaPlayer2.Player`` interface and
raises every client request as a ``command_received`` signal. The D-Bus
export lives in :mod:`roonmpris.mpris.service`; this object has no bus
dependency.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)

ROOT_INTERFACE = "org.mpris.MediaPlayer2"
PLAYER_INTERFACE = "org.mpris.MediaPlayer2.Player"

PLAYBACK_STATUSES = ("Playing", "Paused", "Stopped", "Loading")


class MprisPlayer(QObject):
    """Observable MPRIS player state plus command entry points.

    Assigning a property emits ``properties_changed`` with the D-Bus
    property name when the value actually changes. Position is read on
    demand through ``position_provider`` and never emits.

    Example:
        player = MprisPlayer()
        player.command_received.connect(lambda name, args: print(name, args))
        player.playback_status = "Playing"
    """

    # Emitted when exported properties change
    # Parameters: (interface: str, changed: dict[str, Any])
    properties_changed = Signal(str, dict)

    # Emitted on every client request
    # Parameters: (event: str, args: tuple)
    command_received = Signal(str, object)

    def __init__(
        self,
        name: str = "roon",
        identity: str = "Roon",
        parent: QObject | None = None,
    ) -> None:
        """Initialize the player.

        Args:
            name: Bus name suffix (``org.mpris.MediaPlayer2.<name>``).
            identity: Human-readable player name.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self.name = name
        self.identity = identity
        self.supported_uri_schemes = ["file"]
        self.supported_mime_types = ["audio/mpeg", "application/ogg"]
        self.position_provider: Callable[[], int] | None = None

        self._metadata: dict[str, Any] = {}
        self._playback_status = "Stopped"
        self._can_go_next = False
        self._can_go_previous = False
        self._can_play = True
        self._can_pause = False
        self._can_seek = False
        self._position = 0
        self._loop_status = "None"
        self._shuffle = False
        self._volume = 1.0
        self._rate = 1.0

    def _update(self, attr: str, prop: str, value: object) -> None:
        if getattr(self, attr) == value:
            return
        setattr(self, attr, value)
        self.properties_changed.emit(PLAYER_INTERFACE, {prop: value})

    # -- Properties ------------------------------------------------------------

    @property
    def metadata(self) -> dict[str, Any]:
        """Return the track metadata map."""
        return self._metadata

    @metadata.setter
    def metadata(self, value: dict[str, Any]) -> None:
        self._update("_metadata", "Metadata", dict(value))

    @property
    def playback_status(self) -> str:
        """Return "Playing", "Paused" or "Stopped"."""
        return self._playback_status

    @playback_status.setter
    def playback_status(self, value: str) -> None:
        if value not in PLAYBACK_STATUSES:
            raise ValueError(f"Invalid playback status: {value!r}")
        self._update("_playback_status", "PlaybackStatus", value)

    @property
    def can_go_next(self) -> bool:
        """Return whether Next is available."""
        return self._can_go_next

    @can_go_next.setter
    def can_go_next(self, value: bool) -> None:
        self._update("_can_go_next", "CanGoNext", bool(value))

    @property
    def can_go_previous(self) -> bool:
        """Return whether Previous is available."""
        return self._can_go_previous

    @can_go_previous.setter
    def can_go_previous(self, value: bool) -> None:
        self._update("_can_go_previous", "CanGoPrevious", bool(value))

    @property
    def can_play(self) -> bool:
        """Return whether Play is available (default True)."""
        return self._can_play

    @can_play.setter
    def can_play(self, value: bool) -> None:
        self._update("_can_play", "CanPlay", bool(value))

    @property
    def can_pause(self) -> bool:
        """Return whether Pause is available."""
        return self._can_pause

    @can_pause.setter
    def can_pause(self, value: bool) -> None:
        self._update("_can_pause", "CanPause", bool(value))

    @property
    def can_seek(self) -> bool:
        """Return whether seeking is available."""
        return self._can_seek

    @can_seek.setter
    def can_seek(self, value: bool) -> None:
        self._update("_can_seek", "CanSeek", bool(value))

    @property
    def can_control(self) -> bool:
        """Return True; the player always accepts commands."""
        return True

    @property
    def position(self) -> int:
        """Return the playback position in microseconds."""
        if self.position_provider is not None:
            return self.position_provider()
        return self._position

    @position.setter
    def position(self, value: int) -> None:
        self._position = int(value)

    @property
    def loop_status(self) -> str:
        """Return the loop status ("None")."""
        return self._loop_status

    @property
    def shuffle(self) -> bool:
        """Return the shuffle flag."""
        return self._shuffle

    @property
    def volume(self) -> float:
        """Return the volume (0.0-1.0)."""
        return self._volume

    @property
    def rate(self) -> float:
        """Return the playback rate."""
        return self._rate

    # -- Commands --------------------------------------------------------------

    def _command(self, event: str, *args: object) -> None:
        logger.debug("Player command: %s %s", event, args)
        self.command_received.emit(event, args)

    def play_pause(self) -> None:
        """Toggle playback."""
        self._command("playpause")

    def stop(self) -> None:
        """Stop playback."""
        self._command("stop")

    def next(self) -> None:
        """Skip to the next track."""
        self._command("next")

    def previous(self) -> None:
        """Skip to the previous track."""
        self._command("previous")

    def play(self) -> None:
        """Start playback."""
        self._command("play")

    def pause(self) -> None:
        """Pause playback."""
        self._command("pause")

    def seek(self, offset: int) -> None:
        """Seek relative to the current position (microseconds)."""
        self._command("seek", offset)

    def set_position(self, track_id: str, position: int) -> None:
        """Seek to an absolute position (microseconds)."""
        self._command("position", track_id, position)

    def open_uri(self, uri: str) -> None:
        """Open a URI."""
        self._command("open", uri)

    def set_volume(self, volume: float) -> None:
        """Request a volume change."""
        self._command("volume", volume)

    def set_loop_status(self, status: str) -> None:
        """Request a loop status change."""
        self._command("loopStatus", status)

    def set_shuffle(self, shuffle: bool) -> None:
        """Request a shuffle change."""
        self._command("shuffle", shuffle)

    def raise_(self) -> None:
        """Bring the player UI forward."""
        self._command("raise")

    def quit(self) -> None:
        """Quit the player."""
        self._command("quit")
