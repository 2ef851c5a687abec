"""Zone models decoded from Roon transport payloads."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Self

from roonmpris.errors import UnknownPlaybackStateError


class PlaybackState(Enum):
    """Playback state of a Roon zone."""

    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    LOADING = "loading"

    @classmethod
    def parse(cls, value: object) -> "PlaybackState":
        """Convert a raw state string to a PlaybackState.

        Raises:
            UnknownPlaybackStateError: If the value is not a known state.
        """
        try:
            return cls(value)
        except ValueError:
            raise UnknownPlaybackStateError(value) from None

    @property
    def status(self) -> str:
        """Return the MPRIS PlaybackStatus string ("Playing", "Paused", ...)."""
        return self.value[:1].upper() + self.value[1:]


@dataclass(frozen=True, slots=True)
class ThreeLine:
    """Track text rendered on three lines.

    Attributes:
        line1: Track title.
        line2: Artists, separated by " / ".
        line3: Album.
    """

    line1: str = ""
    line2: str = ""
    line3: str = ""


@dataclass(frozen=True, slots=True)
class NowPlaying:
    """The track currently playing in a zone.

    Attributes:
        length: Track duration in seconds, None if unknown (e.g. radio).
        image_key: Opaque key for the cover art, None if there is none.
        three_line: Title/artist/album text.
        seek_position: Current position in seconds.
    """

    length: float | None = None
    image_key: str | None = None
    three_line: ThreeLine = ThreeLine()
    seek_position: float = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build from a Roon ``now_playing`` object."""
        lines = data.get("three_line") or {}
        return cls(
            length=data.get("length"),
            image_key=data.get("image_key") or None,
            three_line=ThreeLine(
                line1=str(lines.get("line1", "")),
                line2=str(lines.get("line2", "")),
                line3=str(lines.get("line3", "")),
            ),
            seek_position=data.get("seek_position") or 0,
        )


@dataclass(frozen=True, slots=True)
class ZoneSnapshot:
    """Immutable snapshot of a zone as received in one event.

    Attributes:
        zone_id: Unique zone identifier.
        display_name: Zone name shown to the user.
        state: Playback state.
        is_next_allowed: Whether skipping forward is allowed.
        is_previous_allowed: Whether skipping back is allowed.
        is_pause_allowed: Whether pausing is allowed.
        is_seek_allowed: Whether seeking is allowed.
        is_play_allowed: Whether starting playback is allowed.
        now_playing: Current track, None when nothing is loaded.
    """

    zone_id: str
    display_name: str
    state: PlaybackState = PlaybackState.STOPPED
    is_next_allowed: bool = False
    is_previous_allowed: bool = False
    is_pause_allowed: bool = False
    is_seek_allowed: bool = False
    is_play_allowed: bool = False
    now_playing: NowPlaying | None = None

    @property
    def is_playing(self) -> bool:
        """Return True if the zone is playing."""
        return self.state is PlaybackState.PLAYING

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build from a Roon zone object.

        Raises:
            UnknownPlaybackStateError: If the zone state is not recognised.
        """
        now_playing = data.get("now_playing")
        return cls(
            zone_id=str(data.get("zone_id", "")),
            display_name=str(data.get("display_name", "")),
            state=PlaybackState.parse(data.get("state")),
            is_next_allowed=bool(data.get("is_next_allowed", False)),
            is_previous_allowed=bool(data.get("is_previous_allowed", False)),
            is_pause_allowed=bool(data.get("is_pause_allowed", False)),
            is_seek_allowed=bool(data.get("is_seek_allowed", False)),
            is_play_allowed=bool(data.get("is_play_allowed", False)),
            now_playing=(
                NowPlaying.from_dict(now_playing) if isinstance(now_playing, dict) else None
            ),
        )

    def with_seek(self, seek_position: float) -> Self:
        """Return a copy with only the now-playing position changed.

        Snapshots without a track are returned unchanged.
        """
        if self.now_playing is None:
            return self
        return replace(self, now_playing=replace(self.now_playing, seek_position=seek_position))
