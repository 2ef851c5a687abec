"""Player-side values produced by the zone translator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransportCommand(Enum):
    """Transport commands relayed from the desktop to the zone."""

    PLAY_PAUSE = "playpause"
    STOP = "stop"
    NEXT = "next"
    PREVIOUS = "previous"


@dataclass(frozen=True, slots=True)
class PlayerState:
    """Observable state to apply to the MPRIS player.

    Attributes:
        playback_status: MPRIS PlaybackStatus ("Playing", "Paused", ...).
        metadata: MPRIS metadata map, None when the zone has no track
            (the player keeps its previous metadata).
        can_go_next: Whether Next is available.
        can_go_previous: Whether Previous is available.
        can_pause: Whether Pause is available.
        can_seek: Whether seeking is available.
        can_play: Whether Play is available; None leaves the player default.
    """

    playback_status: str
    metadata: dict[str, Any] | None = None
    can_go_next: bool = False
    can_go_previous: bool = False
    can_pause: bool = False
    can_seek: bool = False
    can_play: bool | None = None


@dataclass(frozen=True, slots=True)
class NotificationRequest:
    """A track-change notification to show on the desktop.

    Attributes:
        title_parts: Artist names.
        message: Track title.
        artwork_url: Cover art URL, None when the track has no image.
    """

    title_parts: list[str] = field(default_factory=list)
    message: str = ""
    artwork_url: str | None = None
