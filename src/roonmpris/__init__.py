"""Roon to MPRIS bridge.

Exposes the playback state of a selected Roon zone as an MPRIS media
player and relays desktop media keys back to the Roon Core.
"""

__version__ = "1.0.1"
