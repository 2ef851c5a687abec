"""Roon extension client speaking MOO/1 over WebSocket."""

from roonmpris.api.client import ExtensionInfo, RoonClient
from roonmpris.api.moo import MooMessage, MooVerb

__all__ = ["ExtensionInfo", "MooMessage", "MooVerb", "RoonClient"]
