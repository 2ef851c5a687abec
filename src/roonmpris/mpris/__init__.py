"""MPRIS media player surface and its D-Bus export."""

from roonmpris.mpris.player import PLAYER_INTERFACE, ROOT_INTERFACE, MprisPlayer
from roonmpris.mpris.service import OBJECT_PATH, MprisService

__all__ = ["OBJECT_PATH", "PLAYER_INTERFACE", "ROOT_INTERFACE", "MprisPlayer", "MprisService"]
