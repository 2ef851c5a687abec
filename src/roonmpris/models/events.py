"""Zone subscription events.

The transport service reports every zone update through one subscription
whose payload carries one of several keys. Payloads are decoded here once
into explicit event types so the rest of the bridge never inspects raw keys.
"""

from dataclasses import dataclass, field
from typing import Any, cast


@dataclass(frozen=True, slots=True)
class SeekChange:
    """A position update for one zone.

    Attributes:
        zone_id: Zone the update belongs to.
        seek_position: New position in seconds.
    """

    zone_id: str
    seek_position: float = 0


@dataclass(frozen=True, slots=True)
class ZonesListed:
    """Full zone listing, received once after subscribing."""

    zones: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ZonesChanged:
    """Zones whose state changed."""

    zones: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ZonesSeekChanged:
    """Position updates for playing zones."""

    changes: list[SeekChange] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UnhandledZoneEvent:
    """Any other payload (zones added/removed, unsubscribed, ...)."""

    body: Any = None


ZoneEvent = ZonesListed | ZonesChanged | ZonesSeekChanged | UnhandledZoneEvent


def _zone_list(value: object) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [cast(dict[str, Any], z) for z in cast(list[object], value) if isinstance(z, dict)]


def decode_zone_event(body: object) -> ZoneEvent:
    """Decode a zone subscription body into a ZoneEvent.

    A full listing or a changed listing wins over seek changes when a body
    carries both.

    Args:
        body: Decoded JSON body of a subscription message.

    Returns:
        The matching event variant.
    """
    if not isinstance(body, dict):
        return UnhandledZoneEvent(body)
    data = cast(dict[str, Any], body)

    if data.get("zones_changed") is not None:
        return ZonesChanged(_zone_list(data["zones_changed"]))
    if data.get("zones") is not None:
        return ZonesListed(_zone_list(data["zones"]))
    if data.get("zones_seek_changed") is not None:
        changes = [
            SeekChange(
                zone_id=str(item.get("zone_id", "")),
                seek_position=item.get("seek_position") or 0,
            )
            for item in _zone_list(data["zones_seek_changed"])
        ]
        return ZonesSeekChanged(changes)
    return UnhandledZoneEvent(data)
