"""Shared fixtures for roonmpris tests."""

import os

# Headless test runs have no display; default Qt to the offscreen platform.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path
from typing import Any

import pytest

from roonmpris.core.config import ConfigManager
from roonmpris.models.connection import Connection


def _make_zone(
    name: str = "Kitchen",
    zone_id: str = "1601bb42",
    state: str = "playing",
    now_playing: dict[str, Any] | None = None,
    **flags: bool,
) -> dict[str, Any]:
    """Build a zone object as the transport service reports it."""
    zone: dict[str, Any] = {
        "zone_id": zone_id,
        "display_name": name,
        "state": state,
        "is_next_allowed": True,
        "is_previous_allowed": True,
        "is_pause_allowed": True,
        "is_seek_allowed": False,
        "is_play_allowed": False,
    }
    zone.update(flags)
    if now_playing is not None:
        zone["now_playing"] = now_playing
    return zone


def _make_now_playing(
    title: str = "Song",
    artists: str = "A / B",
    album: str = "Album",
    length: float | None = 200,
    image_key: str | None = "img1",
    seek_position: float = 5,
) -> dict[str, Any]:
    """Build a now_playing object."""
    data: dict[str, Any] = {
        "length": length,
        "seek_position": seek_position,
        "three_line": {"line1": title, "line2": artists, "line3": album},
    }
    if image_key is not None:
        data["image_key"] = image_key
    return data


@pytest.fixture
def config(tmp_path: Path) -> ConfigManager:
    """Return a ConfigManager on an empty temporary directory."""
    return ConfigManager(tmp_path / "config")


@pytest.fixture
def connection() -> Connection:
    """Return a paired core connection."""
    return Connection(
        core_id="core-1",
        display_name="Roon Core",
        display_version="2.0",
        base_address="core:9100/api",
    )


@pytest.fixture
def make_zone() -> Any:
    """Return the zone object factory."""
    return _make_zone


@pytest.fixture
def make_now_playing() -> Any:
    """Return the now_playing object factory."""
    return _make_now_playing
