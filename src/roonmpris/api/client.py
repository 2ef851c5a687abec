"""Roon extension client speaking MOO over a WebSocket.

The client registers as an extension with a Roon Core, answers the core's
pings, serves the extension settings dialog and talks to the transport
service (zone subscription and control). Discovery is not implemented;
the core address is configured explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

import websockets
from websockets.asyncio.client import ClientConnection

from roonmpris import __version__
from roonmpris.api.moo import MooMessage, MooVerb
from roonmpris.errors import MooProtocolError, RoonRequestError
from roonmpris.models.connection import Connection
from roonmpris.models.events import ZoneEvent, decode_zone_event

if TYPE_CHECKING:
    from roonmpris.core.settings import SettingsService

logger = logging.getLogger(__name__)

SERVICE_REGISTRY = "com.roonlabs.registry:1"
SERVICE_TRANSPORT = "com.roonlabs.transport:2"
SERVICE_SETTINGS = "com.roonlabs.settings:1"
SERVICE_PING = "com.roonlabs.ping:1"

DEFAULT_PORT = 9100

# Type aliases for event handlers
PairedHandler = Callable[[Connection], None]
UnpairedHandler = Callable[[], None]
ZoneEventHandler = Callable[[ZoneEvent], None]
TokenHandler = Callable[[str], None]
ErrorHandler = Callable[[Exception], None]
ReplyHandler = Callable[[MooMessage], None]


@dataclass(frozen=True)
class ExtensionInfo:
    """Identity the extension registers with.

    Attributes:
        extension_id: Reverse-DNS extension id.
        display_name: Name shown in Roon's extension list.
        display_version: Version shown in Roon.
        publisher: Publisher name.
        email: Contact address.
        website: Project URL.
    """

    extension_id: str = "com.8bitcloud.roon-mpris"
    display_name: str = "MPRIS adapter"
    display_version: str = __version__
    publisher: str = "Bruce Cooper"
    email: str = "bruce@brucecooper.net"
    website: str = "https://github.com/brucejcooper/roon-mpris"

    def to_dict(self) -> dict[str, str]:
        """Return the registration fields."""
        return {
            "extension_id": self.extension_id,
            "display_name": self.display_name,
            "display_version": self.display_version,
            "publisher": self.publisher,
            "email": self.email,
            "website": self.website,
        }


class RoonClient:
    """Async MOO client for a single Roon Core.

    Example:
        client = RoonClient("192.168.1.20", 9100, token=config.get_token())
        client.set_event_handlers(on_zone_event=print)
        await client.connect()
        connection = await client.register()
        await client.subscribe_zones()
    """

    _DEFAULT_TIMEOUT: float = 10.0

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        extension: ExtensionInfo | None = None,
        token: str | None = None,
        settings: SettingsService | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            host: Core hostname or IP address.
            port: Core WebSocket port (default 9100).
            extension: Extension identity, defaults to ExtensionInfo().
            token: Pairing token from a previous registration.
            settings: Settings service to expose, None to provide none.
            timeout: Connect/request timeout in seconds.
        """
        self._host = host
        self._port = port
        self._extension = extension or ExtensionInfo()
        self._token = token
        self._settings = settings
        self._timeout = timeout
        self._ws: ClientConnection | None = None
        self._request_id = 0
        self._handlers: dict[int, ReplyHandler] = {}
        self._waiters: set[asyncio.Future[MooMessage]] = set()
        self._receive_task: asyncio.Task[None] | None = None
        self._connection: Connection | None = None
        self._settings_subscriptions: dict[str, int] = {}
        self._zone_subscription_key = 0

        # Event handlers
        self._on_paired: PairedHandler | None = None
        self._on_unpaired: UnpairedHandler | None = None
        self._on_zone_event: ZoneEventHandler | None = None
        self._on_token: TokenHandler | None = None
        self._on_error: ErrorHandler | None = None

    @property
    def host(self) -> str:
        """Return core host."""
        return self._host

    @property
    def port(self) -> int:
        """Return core port."""
        return self._port

    @property
    def url(self) -> str:
        """Return the WebSocket URL."""
        return f"ws://{self._host}:{self._port}/api"

    @property
    def base_address(self) -> str:
        """Return the address HTTP resources (images) are served under."""
        return f"{self._host}:{self._port}/api"

    @property
    def is_connected(self) -> bool:
        """Return True while the socket is open."""
        return self._ws is not None

    @property
    def connection(self) -> Connection | None:
        """Return the paired core, None until registered."""
        return self._connection

    @property
    def token(self) -> str | None:
        """Return the current pairing token."""
        return self._token

    def set_event_handlers(
        self,
        on_paired: PairedHandler | None = None,
        on_unpaired: UnpairedHandler | None = None,
        on_zone_event: ZoneEventHandler | None = None,
        on_token: TokenHandler | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        """Set event handlers for client events.

        Args:
            on_paired: Called once registration succeeds.
            on_unpaired: Called when a paired session ends.
            on_zone_event: Called for every zone subscription message.
            on_token: Called with a newly issued pairing token.
            on_error: Called for non-fatal errors (bad frames, handler errors).
        """
        self._on_paired = on_paired
        self._on_unpaired = on_unpaired
        self._on_zone_event = on_zone_event
        self._on_token = on_token
        self._on_error = on_error

    # -- Connection ------------------------------------------------------------

    async def connect(self) -> None:
        """Open the WebSocket to the core.

        Raises:
            ConnectionError: If the connection fails.
        """
        if self._ws is not None:
            return
        try:
            self._ws = await websockets.connect(
                self.url, max_size=None, open_timeout=self._timeout
            )
        except (OSError, TimeoutError, websockets.InvalidHandshake, websockets.InvalidURI) as e:
            self._ws = None
            raise ConnectionError(f"Failed to connect to {self.url}: {e}") from e
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("Connected to core at %s", self.url)

    async def disconnect(self) -> None:
        """Close the socket and end the session."""
        ws = self._ws
        if self._receive_task:
            self._receive_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._receive_task
            self._receive_task = None

        if ws is not None:
            with suppress(OSError, websockets.ConnectionClosed):
                await ws.close()
        self._connection_lost()

    def _connection_lost(self) -> None:
        self._ws = None
        self._handlers.clear()
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_exception(ConnectionError("Connection to core lost"))
        self._waiters.clear()
        self._settings_subscriptions.clear()
        if self._connection is not None:
            self._connection = None
            if self._on_unpaired:
                self._on_unpaired()

    async def _receive_loop(self) -> None:
        """Background task to receive and dispatch messages."""
        ws = self._ws
        if ws is None:
            return
        try:
            async for frame in ws:
                try:
                    message = MooMessage.parse(frame)
                except MooProtocolError as e:
                    self._emit_error(e)
                    continue
                try:
                    await self._handle_message(message)
                except Exception as e:  # noqa: BLE001
                    self._emit_error(e)
        except websockets.ConnectionClosed as e:
            logger.info("Core closed the connection: %s", e)
        finally:
            if self._ws is ws:
                self._connection_lost()

    async def _handle_message(self, message: MooMessage) -> None:
        if message.verb is MooVerb.REQUEST:
            await self._handle_request(message)
            return

        if message.verb is MooVerb.COMPLETE:
            handler = self._handlers.pop(message.request_id, None)
        else:
            handler = self._handlers.get(message.request_id)
        if handler is None:
            logger.debug("Unexpected reply %s for request %d", message.name, message.request_id)
            return
        handler(message)

    def _emit_error(self, error: Exception) -> None:
        if self._on_error:
            self._on_error(error)
        else:
            logger.warning("Roon client error: %s", error)

    # -- Outgoing requests -----------------------------------------------------

    def _next_id(self) -> int:
        """Generate next request ID."""
        request_id = self._request_id
        self._request_id += 1
        return request_id

    async def _send(self, message: MooMessage) -> None:
        if self._ws is None:
            raise ConnectionError("Not connected to core")
        await self._ws.send(message.encode())

    async def send_request(self, name: str, body: Any, handler: ReplyHandler) -> int:
        """Send a request whose replies go to ``handler``.

        The handler stays registered for CONTINUE replies and is dropped
        after the COMPLETE reply.

        Returns:
            The request id.
        """
        request_id = self._next_id()
        self._handlers[request_id] = handler
        try:
            await self._send(MooMessage.request(name, request_id, body))
        except Exception:
            self._handlers.pop(request_id, None)
            raise
        return request_id

    async def request(self, name: str, body: Any = None, timeout: float | None = None) -> Any:
        """Send a request and wait for its reply.

        Args:
            name: ``<service>/<method>``.
            body: JSON body, or None.
            timeout: Seconds to wait, None for the client default.

        Returns:
            The reply body.

        Raises:
            ConnectionError: If not connected or the request times out.
            RoonRequestError: If the reply status is not "Success".
        """
        reply = await self._wait_reply(name, body, timeout or self._timeout)
        if reply.name != "Success":
            raise RoonRequestError(name, reply.name, reply.body)
        return reply.body

    async def _wait_reply(self, name: str, body: Any, timeout: float | None) -> MooMessage:
        """Send a request and return its first reply (None timeout waits forever)."""
        future: asyncio.Future[MooMessage] = asyncio.get_running_loop().create_future()

        def on_reply(message: MooMessage) -> None:
            if not future.done():
                future.set_result(message)

        self._waiters.add(future)
        try:
            request_id = await self.send_request(name, body, on_reply)
            try:
                return await asyncio.wait_for(future, timeout=timeout)
            except TimeoutError:
                self._handlers.pop(request_id, None)
                raise ConnectionError(f"Request {name} timed out") from None
        finally:
            self._waiters.discard(future)

    async def _reply(self, verb: MooVerb, status: str, request_id: int, body: Any = None) -> None:
        factory = MooMessage.complete if verb is MooVerb.COMPLETE else MooMessage.continue_
        await self._send(factory(status, request_id, body))

    # -- Registration ----------------------------------------------------------

    async def register(self) -> Connection:
        """Register the extension and wait until the core pairs with it.

        The first registration only completes once the extension is enabled
        in Roon (Settings > Extensions).

        Returns:
            The paired core.

        Raises:
            RoonRequestError: If the core rejects the registration.
        """
        info = cast(dict[str, Any], await self.request(f"{SERVICE_REGISTRY}/info") or {})
        logger.info(
            "Core %s %s (%s), registering",
            info.get("display_name", ""),
            info.get("display_version", ""),
            info.get("core_id", ""),
        )

        body: dict[str, Any] = {
            **self._extension.to_dict(),
            "required_services": [SERVICE_TRANSPORT],
            "optional_services": [],
            "provided_services": self._provided_services(),
        }
        if self._token:
            body["token"] = self._token
        else:
            logger.info("Waiting for the extension to be enabled in Roon > Settings > Extensions")
        reply = await self._wait_reply(f"{SERVICE_REGISTRY}/register", body, None)
        if reply.name != "Registered":
            raise RoonRequestError(f"{SERVICE_REGISTRY}/register", reply.name, reply.body)

        data = cast(dict[str, Any], reply.body or {})
        token = data.get("token")
        if token and token != self._token:
            self._token = str(token)
            if self._on_token:
                self._on_token(self._token)

        self._connection = Connection(
            core_id=str(data.get("core_id", "")),
            display_name=str(data.get("display_name", "")),
            display_version=str(data.get("display_version", "")),
            base_address=self.base_address,
        )
        if self._on_paired:
            self._on_paired(self._connection)
        return self._connection

    def _provided_services(self) -> list[str]:
        services = [SERVICE_PING]
        if self._settings is not None:
            services.append(SERVICE_SETTINGS)
        return services

    # -- Transport -------------------------------------------------------------

    async def subscribe_zones(self) -> int:
        """Subscribe to zone updates; each message reaches ``on_zone_event``.

        Returns:
            The subscription request id.
        """
        self._zone_subscription_key += 1
        body = {"subscription_key": self._zone_subscription_key}
        return await self.send_request(
            f"{SERVICE_TRANSPORT}/subscribe_zones", body, self._on_zones_reply
        )

    def _on_zones_reply(self, message: MooMessage) -> None:
        if message.verb is MooVerb.COMPLETE:
            logger.info("Zone subscription ended: %s", message.name)
            return
        event = decode_zone_event(message.body)
        if self._on_zone_event:
            self._on_zone_event(event)

    async def control(self, zone_or_output_id: str, control: str) -> None:
        """Issue a transport control (play, pause, playpause, stop, next, previous).

        Args:
            zone_or_output_id: Zone or output to control.
            control: Control name.

        Raises:
            RoonRequestError: If the core rejects the control.
        """
        await self.request(
            f"{SERVICE_TRANSPORT}/control",
            {"zone_or_output_id": zone_or_output_id, "control": control},
        )

    # -- Provided services -----------------------------------------------------

    async def _handle_request(self, message: MooMessage) -> None:
        if message.service == SERVICE_PING and message.method == "ping":
            await self._reply(MooVerb.COMPLETE, "Success", message.request_id)
        elif message.service == SERVICE_SETTINGS and self._settings is not None:
            await self._handle_settings(message, self._settings)
        else:
            logger.debug("Unhandled request from core: %s", message.name)
            await self._reply(
                MooVerb.COMPLETE,
                "InvalidRequest",
                message.request_id,
                {"error": f"unknown request: {message.name}"},
            )

    async def _handle_settings(self, message: MooMessage, settings: SettingsService) -> None:
        body = cast(dict[str, Any], message.body) if isinstance(message.body, dict) else {}
        request_id = message.request_id

        if message.method == "subscribe_settings":
            key = str(body.get("subscription_key", ""))
            self._settings_subscriptions[key] = request_id
            layout = {"settings": settings.get_settings()}
            await self._reply(MooVerb.CONTINUE, "Subscribed", request_id, layout)
        elif message.method == "unsubscribe_settings":
            key = str(body.get("subscription_key", ""))
            original = self._settings_subscriptions.pop(key, None)
            if original is not None:
                await self._reply(MooVerb.COMPLETE, "Unsubscribed", original)
            await self._reply(MooVerb.COMPLETE, "Unsubscribed", request_id)
        elif message.method == "get_settings":
            layout = {"settings": settings.get_settings()}
            await self._reply(MooVerb.COMPLETE, "Success", request_id, layout)
        elif message.method == "save_settings":
            submitted = body.get("settings") or {}
            values = submitted.get("values") if isinstance(submitted, dict) else None
            is_dry_run = bool(body.get("is_dry_run", False))
            status, layout = settings.save_settings(values or {}, is_dry_run)
            await self._reply(MooVerb.COMPLETE, status, request_id, {"settings": layout})
            if status == "Success" and not is_dry_run:
                for sub_id in self._settings_subscriptions.values():
                    await self._reply(MooVerb.CONTINUE, "Changed", sub_id, {"settings": layout})
        else:
            await self._reply(
                MooVerb.COMPLETE,
                "InvalidRequest",
                request_id,
                {"error": f"unknown request: {message.name}"},
            )
