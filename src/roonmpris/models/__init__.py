"""Data models for zones, zone events and player state."""

from roonmpris.models.connection import Connection
from roonmpris.models.events import (
    SeekChange,
    UnhandledZoneEvent,
    ZoneEvent,
    ZonesChanged,
    ZonesListed,
    ZonesSeekChanged,
    decode_zone_event,
)
from roonmpris.models.player import NotificationRequest, PlayerState, TransportCommand
from roonmpris.models.zone import NowPlaying, PlaybackState, ThreeLine, ZoneSnapshot

__all__ = [
    "Connection",
    "NotificationRequest",
    "NowPlaying",
    "PlaybackState",
    "PlayerState",
    "SeekChange",
    "ThreeLine",
    "TransportCommand",
    "UnhandledZoneEvent",
    "ZoneEvent",
    "ZoneSnapshot",
    "ZonesChanged",
    "ZonesListed",
    "ZonesSeekChanged",
    "decode_zone_event",
]
