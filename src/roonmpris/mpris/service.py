"""D-Bus export of the MPRIS player using dbus-fast.

``MprisService`` owns a session bus connection on its own thread. It
claims ``org.mpris.MediaPlayer2.<name>``, exports the root and Player
interfaces at ``/org/mpris/MediaPlayer2`` and forwards player property
changes as ``org.freedesktop.DBus.Properties.PropertiesChanged``. Other
components (desktop notifications) send method calls on the same
connection through ``MprisService.call``.

Interface members are declared with dbus-fast's string signature
annotations, so this module must not use postponed annotations.
"""

import asyncio
import contextlib
import logging
from concurrent.futures import Future
from typing import Any

from dbus_fast import (
    BusType,
    Message,
    NameFlag,
    PropertyAccess,
    RequestNameReply,
    Variant,
)
from dbus_fast.aio import MessageBus
from dbus_fast.service import ServiceInterface, dbus_property, method
from PySide6.QtCore import QThread, Signal

from roonmpris.mpris.player import PLAYER_INTERFACE, ROOT_INTERFACE, MprisPlayer

logger = logging.getLogger(__name__)

OBJECT_PATH = "/org/mpris/MediaPlayer2"

# D-Bus types of the metadata keys the bridge publishes.
METADATA_SIGNATURES = {
    "mpris:trackid": "o",
    "mpris:length": "x",
    "mpris:artUrl": "s",
    "xesam:title": "s",
    "xesam:album": "s",
    "xesam:artist": "as",
}


def _variant(key: str, value: Any) -> Variant:
    signature = METADATA_SIGNATURES.get(key)
    if signature is not None:
        return Variant(signature, value)
    if isinstance(value, bool):
        return Variant("b", value)
    if isinstance(value, int):
        return Variant("x", value)
    if isinstance(value, float):
        return Variant("d", value)
    if isinstance(value, list):
        return Variant("as", [str(item) for item in value])
    return Variant("s", str(value))


def metadata_variants(metadata: dict[str, Any]) -> dict[str, Variant]:
    """Wrap player metadata in typed variants for the ``a{sv}`` Metadata property.

    ``mpris:length`` is always a 64-bit integer (``x``) and ``mpris:trackid``
    an object path (``o``), whatever their magnitude. Entries whose value is
    None, such as the art URL of a track without cover, are left out.

    Args:
        metadata: Metadata as held by MprisPlayer.

    Returns:
        Mapping of metadata key to Variant.
    """
    return {key: _variant(key, value) for key, value in metadata.items() if value is not None}


def bus_properties(changed: dict[str, Any]) -> dict[str, Any]:
    """Return changed player properties in the form dbus-fast emits them."""
    if "Metadata" in changed:
        return {**changed, "Metadata": metadata_variants(changed["Metadata"])}
    return changed


class RootInterface(ServiceInterface):
    """``org.mpris.MediaPlayer2``."""

    def __init__(self, player: MprisPlayer) -> None:
        super().__init__(ROOT_INTERFACE)
        self._player = player

    @method()
    def Raise(self) -> None:  # noqa: N802
        self._player.raise_()

    @method()
    def Quit(self) -> None:  # noqa: N802
        self._player.quit()

    @dbus_property(access=PropertyAccess.READ)
    def CanQuit(self) -> "b":  # noqa: N802
        return True

    @dbus_property(access=PropertyAccess.READ)
    def CanRaise(self) -> "b":  # noqa: N802
        return False

    @dbus_property(access=PropertyAccess.READ)
    def HasTrackList(self) -> "b":  # noqa: N802
        return False

    @dbus_property(access=PropertyAccess.READ)
    def Identity(self) -> "s":  # noqa: N802
        return self._player.identity

    @dbus_property(access=PropertyAccess.READ)
    def SupportedUriSchemes(self) -> "as":  # noqa: N802
        return list(self._player.supported_uri_schemes)

    @dbus_property(access=PropertyAccess.READ)
    def SupportedMimeTypes(self) -> "as":  # noqa: N802
        return list(self._player.supported_mime_types)


class PlayerInterface(ServiceInterface):
    """``org.mpris.MediaPlayer2.Player``.

    Methods turn into player commands; properties read the player's
    current state on every Get.
    """

    def __init__(self, player: MprisPlayer) -> None:
        super().__init__(PLAYER_INTERFACE)
        self._player = player

    @method()
    def Next(self) -> None:  # noqa: N802
        self._player.next()

    @method()
    def Previous(self) -> None:  # noqa: N802
        self._player.previous()

    @method()
    def Pause(self) -> None:  # noqa: N802
        self._player.pause()

    @method()
    def PlayPause(self) -> None:  # noqa: N802
        self._player.play_pause()

    @method()
    def Stop(self) -> None:  # noqa: N802
        self._player.stop()

    @method()
    def Play(self) -> None:  # noqa: N802
        self._player.play()

    @method()
    def Seek(self, offset: "x") -> None:  # noqa: N802
        self._player.seek(offset)

    @method()
    def SetPosition(self, track_id: "o", position: "x") -> None:  # noqa: N802
        self._player.set_position(track_id, position)

    @method()
    def OpenUri(self, uri: "s") -> None:  # noqa: N802
        self._player.open_uri(uri)

    @dbus_property(access=PropertyAccess.READ)
    def PlaybackStatus(self) -> "s":  # noqa: N802
        return self._player.playback_status

    @dbus_property()
    def LoopStatus(self) -> "s":  # noqa: N802
        return self._player.loop_status

    @LoopStatus.setter
    def LoopStatus(self, value: "s") -> None:  # noqa: N802
        self._player.set_loop_status(value)

    @dbus_property()
    def Rate(self) -> "d":  # noqa: N802
        return self._player.rate

    @Rate.setter
    def Rate(self, value: "d") -> None:  # noqa: N802
        logger.debug("Ignoring rate change to %s", value)

    @dbus_property()
    def Shuffle(self) -> "b":  # noqa: N802
        return self._player.shuffle

    @Shuffle.setter
    def Shuffle(self, value: "b") -> None:  # noqa: N802
        self._player.set_shuffle(value)

    @dbus_property(access=PropertyAccess.READ)
    def Metadata(self) -> "a{sv}":  # noqa: N802
        return metadata_variants(self._player.metadata)

    @dbus_property()
    def Volume(self) -> "d":  # noqa: N802
        return self._player.volume

    @Volume.setter
    def Volume(self, value: "d") -> None:  # noqa: N802
        self._player.set_volume(value)

    @dbus_property(access=PropertyAccess.READ)
    def Position(self) -> "x":  # noqa: N802
        return self._player.position

    @dbus_property(access=PropertyAccess.READ)
    def MinimumRate(self) -> "d":  # noqa: N802
        return 1.0

    @dbus_property(access=PropertyAccess.READ)
    def MaximumRate(self) -> "d":  # noqa: N802
        return 1.0

    @dbus_property(access=PropertyAccess.READ)
    def CanGoNext(self) -> "b":  # noqa: N802
        return self._player.can_go_next

    @dbus_property(access=PropertyAccess.READ)
    def CanGoPrevious(self) -> "b":  # noqa: N802
        return self._player.can_go_previous

    @dbus_property(access=PropertyAccess.READ)
    def CanPlay(self) -> "b":  # noqa: N802
        return self._player.can_play

    @dbus_property(access=PropertyAccess.READ)
    def CanPause(self) -> "b":  # noqa: N802
        return self._player.can_pause

    @dbus_property(access=PropertyAccess.READ)
    def CanSeek(self) -> "b":  # noqa: N802
        return self._player.can_seek

    @dbus_property(access=PropertyAccess.READ)
    def CanControl(self) -> "b":  # noqa: N802
        return self._player.can_control


class MprisService(QThread):
    """Publish an MprisPlayer on the session bus from a background thread.

    The bus connection lives on this thread's asyncio loop. Player
    property changes made on the Qt main thread are handed to the loop
    and emitted from there.

    Example:
        service = MprisService(player)
        service.registration_failed.connect(lambda e: logger.error("%s", e))
        service.start()
        ...
        service.stop()
        service.wait()
    """

    registered = Signal(str)  # Bus name
    registration_failed = Signal(object)  # Exception

    def __init__(self, player: MprisPlayer, bus_address: str | None = None) -> None:
        """Initialize the service.

        Args:
            player: Player to export.
            bus_address: Bus address, defaults to the session bus.
        """
        super().__init__()
        self._player = player
        self._bus_address = bus_address
        self._interfaces: dict[str, ServiceInterface] = {
            ROOT_INTERFACE: RootInterface(player),
            PLAYER_INTERFACE: PlayerInterface(player),
        }
        self._bus: MessageBus | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stopped: asyncio.Event | None = None
        self._should_run = True
        self._registered = False

        player.properties_changed.connect(self._on_properties_changed)

    @property
    def service_name(self) -> str:
        """Return the well-known bus name."""
        return f"{ROOT_INTERFACE}.{self._player.name}"

    @property
    def is_registered(self) -> bool:
        """Return True while the player is exported."""
        return self._registered

    def stop(self) -> None:
        """Release the bus name and end the thread (called from main thread)."""
        self._should_run = False
        loop, stopped = self._loop, self._stopped
        if loop is not None and stopped is not None and loop.is_running():
            loop.call_soon_threadsafe(stopped.set)

    def call(self, message: Message) -> Future[Message | None] | None:
        """Send a method call on the service's bus connection.

        Thread-safe.

        Args:
            message: Method call to send.

        Returns:
            Future resolving to the reply message, or None when the bus
            is not connected.
        """
        loop = self._loop
        if self._bus is None or loop is None or not loop.is_running():
            return None
        return asyncio.run_coroutine_threadsafe(self._call(message), loop)

    async def _call(self, message: Message) -> Message | None:
        bus = self._bus
        if bus is None:
            raise ConnectionError("Session bus disconnected")
        return await bus.call(message)

    def run(self) -> None:
        """Run the bus thread (entry point)."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._stopped = asyncio.Event()

        try:
            self._loop.run_until_complete(self._serve())
        except Exception as e:
            logger.warning("MPRIS player not exported: %s", e)
            self.registration_failed.emit(e)
        finally:
            self._loop.close()
            self._loop = None
            self._stopped = None

    async def _serve(self) -> None:
        """Connect, export, claim the name and wait until stopped."""
        bus = await MessageBus(bus_address=self._bus_address, bus_type=BusType.SESSION).connect()
        self._bus = bus
        try:
            for interface in self._interfaces.values():
                bus.export(OBJECT_PATH, interface)
            reply = await bus.request_name(self.service_name, NameFlag.DO_NOT_QUEUE)
            if reply not in (RequestNameReply.PRIMARY_OWNER, RequestNameReply.ALREADY_OWNER):
                raise ConnectionError(f"Could not claim {self.service_name}: {reply.name}")

            self._registered = True
            logger.info("MPRIS player registered as %s", self.service_name)
            self.registered.emit(self.service_name)

            if self._should_run and self._stopped is not None:
                await self._stopped.wait()
        finally:
            self._registered = False
            self._bus = None
            bus.disconnect()
            with contextlib.suppress(OSError, EOFError):
                await bus.wait_for_disconnect()

    def _on_properties_changed(self, interface_name: str, changed: dict[str, Any]) -> None:
        interface = self._interfaces.get(interface_name)
        loop = self._loop
        if interface is None or loop is None or not self._registered:
            return
        # The loop may close between the check and the call during shutdown.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(interface.emit_properties_changed, bus_properties(changed))
