"""Translate Roon zone snapshots into MPRIS player state.

MPRIS expresses durations and positions in microseconds while Roon
reports seconds. Artist lists arrive as one " / "-separated line.
"""

import hashlib
import re

from roonmpris.core.images import resolve_image_url
from roonmpris.models.connection import Connection
from roonmpris.models.player import NotificationRequest, PlayerState
from roonmpris.models.zone import NowPlaying, ZoneSnapshot

MICROSECONDS_PER_SECOND = 1_000_000

# Must not live under /org/mpris, which MPRIS reserves.
TRACK_ID_ROOT = "/com/roon/mpris"

_ARTIST_SEPARATOR = re.compile(r"\s+/\s+")
_PATH_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def split_artists(line: str) -> list[str]:
    """Split a three-line artist line into artist names.

    Args:
        line: Artists separated by a slash with whitespace on both sides.

    Returns:
        Artist names in order. A line without a separator is one artist.
    """
    return _ARTIST_SEPARATOR.split(line)


def to_microseconds(seconds: float | None) -> int:
    """Convert seconds to whole microseconds (0 for None)."""
    if not seconds:
        return 0
    return int(round(seconds * MICROSECONDS_PER_SECOND))


def apply_seek(position_seconds: float) -> int:
    """Convert a seek update to an MPRIS position.

    Args:
        position_seconds: Zone position in seconds.

    Returns:
        Position in microseconds.
    """
    return to_microseconds(position_seconds)


def track_id(zone_id: str, now_playing: NowPlaying) -> str:
    """Return a D-Bus object path identifying a track in a zone.

    The path is stable across updates of the same track (position changes
    do not alter it) and differs when the title, artists, album or cover do.

    Args:
        zone_id: Zone the track plays in.
        now_playing: The track.

    Returns:
        Object path such as ``/com/roon/mpris/zone_1601bb42/track_9f86d081884c7d65``.
    """
    lines = now_playing.three_line
    key = "\n".join((lines.line1, lines.line2, lines.line3, now_playing.image_key or ""))
    digest = hashlib.blake2b(key.encode(), digest_size=8).hexdigest()
    zone = _PATH_UNSAFE.sub("_", zone_id)
    return f"{TRACK_ID_ROOT}/zone_{zone}/track_{digest}"


def translate(
    snapshot: ZoneSnapshot,
    connection: Connection,
    map_can_play: bool = False,
) -> tuple[PlayerState, NotificationRequest | None]:
    """Map a zone snapshot to player state and an optional notification.

    CanPlay stays at the player default unless ``map_can_play`` is set.

    Args:
        snapshot: Zone snapshot from the core.
        connection: Paired core, for resolving image URLs.
        map_can_play: Mirror the zone's play permission into CanPlay.

    Returns:
        Tuple of (player state, notification request or None).
    """
    now_playing = snapshot.now_playing
    metadata = None
    notification = None

    if now_playing is not None:
        lines = now_playing.three_line
        artists = split_artists(lines.line2)
        art_url = resolve_image_url(connection.base_address, now_playing.image_key)
        metadata = {
            "mpris:trackid": track_id(snapshot.zone_id, now_playing),
            "mpris:length": to_microseconds(now_playing.length),
            "mpris:artUrl": art_url,
            "xesam:title": lines.line1,
            "xesam:album": lines.line3,
            "xesam:artist": artists,
        }
        if snapshot.is_playing:
            notification = NotificationRequest(
                title_parts=artists,
                message=lines.line1,
                artwork_url=art_url,
            )

    state = PlayerState(
        playback_status=snapshot.state.status,
        metadata=metadata,
        can_go_next=snapshot.is_next_allowed,
        can_go_previous=snapshot.is_previous_allowed,
        can_pause=snapshot.is_pause_allowed,
        can_seek=snapshot.is_seek_allowed,
        can_play=snapshot.is_play_allowed if map_can_play else None,
    )
    return state, notification
