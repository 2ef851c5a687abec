"""QThread worker for running the async RoonClient in a Qt application.

The MPRIS player, tray and notifications live on the Qt main thread, but
RoonClient uses asyncio. This worker runs the asyncio event loop in a
background thread and bridges events to the main thread via Qt signals.
"""

import asyncio
import logging
from pathlib import Path

from PySide6.QtCore import QThread, Signal

from roonmpris.api.client import DEFAULT_PORT, ExtensionInfo, RoonClient
from roonmpris.core.config import DEFAULT_CONFIG_DIR, ConfigManager
from roonmpris.core.settings import SettingsService
from roonmpris.errors import RoonError
from roonmpris.models.connection import Connection
from roonmpris.models.events import ZoneEvent

logger = logging.getLogger(__name__)


class RoonWorker(QThread):
    """Background thread worker for the Roon extension connection.

    Connects, registers, subscribes to zones and reconnects with backoff
    until stopped. The worker keeps its own ConfigManager on the same
    directory as the main thread, for the pairing token and the settings
    dialog.

    Example:
        worker = RoonWorker("192.168.1.20", 9100)
        worker.paired.connect(lambda c: print(f"Paired with {c.display_name}"))
        worker.zone_event.connect(session.on_zone_event)
        worker.start()
    """

    # Connection state signals
    connected = Signal()  # Socket open, registering
    disconnected = Signal()  # Connection attempt failed, retrying

    # Pairing signals
    paired = Signal(object)  # Connection
    unpaired = Signal()

    # Data signals
    zone_event = Signal(object)  # ZoneEvent

    # Error signal
    error_occurred = Signal(object)  # Exception

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        config_dir: Path = DEFAULT_CONFIG_DIR,
        extension: ExtensionInfo | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the worker.

        Args:
            host: Core hostname or IP.
            port: Core port (default 9100).
            config_dir: Configuration directory (token and zone settings).
            extension: Extension identity, defaults to ExtensionInfo().
            timeout: Connection timeout in seconds.
        """
        super().__init__()
        self._host = host
        self._port = port
        self._config_dir = config_dir
        self._extension = extension
        self._timeout = timeout
        self._client: RoonClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._should_run = True
        self._auto_reconnect = True
        self._reconnect_delay = 2.0  # Initial reconnect delay

    @property
    def host(self) -> str:
        """Return core host."""
        return self._host

    @property
    def port(self) -> int:
        """Return core port."""
        return self._port

    @property
    def is_connected(self) -> bool:
        """Return True if client is connected."""
        return self._client is not None and self._client.is_connected

    def stop(self) -> None:
        """Signal the worker to stop (called from main thread)."""
        self._should_run = False
        if self._client and self._loop and self._loop.is_running():
            asyncio.run_coroutine_threadsafe(self._client.disconnect(), self._loop)

    def control(self, zone_or_output_id: str, control: str) -> None:
        """Issue a transport control.

        Thread-safe call from main thread. Errors are emitted via
        error_occurred signal.

        Args:
            zone_or_output_id: Zone or output to control.
            control: Control name (playpause, stop, next, previous).
        """
        if self._loop and self._loop.is_running() and self._client:
            asyncio.run_coroutine_threadsafe(
                self._safe_control(zone_or_output_id, control),
                self._loop,
            )
        else:
            logger.warning("Not connected; dropping control %s", control)

    async def _safe_control(self, zone_or_output_id: str, control: str) -> None:
        """Send control with error handling."""
        if not self._client or not self._client.is_connected:
            return
        try:
            await self._client.control(zone_or_output_id, control)
        except Exception as e:
            self.error_occurred.emit(e)

    def run(self) -> None:
        """Run the worker thread (entry point)."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        try:
            self._loop.run_until_complete(self._connection_loop())
        except Exception as e:
            self.error_occurred.emit(e)
        finally:
            if self._client:
                self._loop.run_until_complete(self._client.disconnect())
            self._loop.close()
            self._loop = None
            self._client = None

    async def _connection_loop(self) -> None:
        """Main connection loop with auto-reconnect."""
        config = ConfigManager(self._config_dir)
        settings = SettingsService(config)
        reconnect_delay = self._reconnect_delay

        while self._should_run:
            try:
                self._client = RoonClient(
                    self._host,
                    self._port,
                    extension=self._extension,
                    token=config.get_token(),
                    settings=settings,
                    timeout=self._timeout,
                )

                self._client.set_event_handlers(
                    on_paired=self._on_paired,
                    on_unpaired=self._on_unpaired,
                    on_zone_event=self._on_zone_event,
                    on_token=config.set_token,
                    on_error=self._on_error,
                )

                await self._client.connect()
                self.connected.emit()
                reconnect_delay = self._reconnect_delay  # Reset delay

                await self._client.register()
                await self._client.subscribe_zones()

                # Keep connection alive until disconnected
                while self._should_run and self._client.is_connected:
                    await asyncio.sleep(0.5)

                if not self._should_run:
                    break

            except (OSError, ConnectionError, RoonError) as e:
                self.error_occurred.emit(e)
                if self._client:
                    await self._client.disconnect()
                if not self._should_run:
                    break

                # Auto-reconnect with backoff
                if self._auto_reconnect and self._should_run:
                    self.disconnected.emit()
                    logger.info("Reconnecting in %.0fs", reconnect_delay)
                    await asyncio.sleep(reconnect_delay)
                    reconnect_delay = min(reconnect_delay * 2, 30.0)  # Max 30s
                else:
                    break

    def _on_paired(self, connection: Connection) -> None:
        self.paired.emit(connection)

    def _on_unpaired(self) -> None:
        self.unpaired.emit()

    def _on_zone_event(self, event: ZoneEvent) -> None:
        self.zone_event.emit(event)

    def _on_error(self, error: Exception) -> None:
        """Handle client error."""
        self.error_occurred.emit(error)
