"""Core bridge logic.

This module contains the logic that bridges the async Roon client with
the Qt main thread, where the MPRIS player and notifications live.

Classes:
    ConfigManager: QSettings wrapper for configuration.
    SessionOrchestrator: Routes zone events to the player and commands back.
    CommandRelay: Forwards transport commands to the core.
    NotificationDispatcher: Downloads artwork and raises notifications.
    SettingsService: Serves the extension settings dialog.
    RoonWorker: QThread worker for the async client.
"""

from roonmpris.core.config import ConfigManager
from roonmpris.core.notifier import NotificationDispatcher
from roonmpris.core.relay import CommandRelay
from roonmpris.core.session import BridgeState, SessionOrchestrator
from roonmpris.core.settings import SettingsService
from roonmpris.core.worker import RoonWorker

__all__ = [
    "BridgeState",
    "CommandRelay",
    "ConfigManager",
    "NotificationDispatcher",
    "RoonWorker",
    "SessionOrchestrator",
    "SettingsService",
]
