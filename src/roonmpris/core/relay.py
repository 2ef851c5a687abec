"""Relay desktop media commands to the Roon transport service."""

import logging
from collections.abc import Callable
from typing import Protocol

from roonmpris.models.connection import Connection
from roonmpris.models.player import TransportCommand

logger = logging.getLogger(__name__)

# Player events with no transport equivalent; accepted and logged only.
UNHANDLED_EVENTS = frozenset(
    {
        "raise",
        "quit",
        "pause",
        "play",
        "seek",
        "position",
        "open",
        "volume",
        "loopStatus",
        "shuffle",
    }
)


class TransportControl(Protocol):
    """The transport service's control call."""

    def control(self, zone_or_output_id: str, control: str) -> None:
        """Issue a transport control for a zone or output."""
        ...


class CommandRelay:
    """Forward transport commands to the core for the selected zone.

    Example:
        relay = CommandRelay(worker, on_quit=app.quit)
        relay.dispatch(TransportCommand.NEXT, connection, "1601...")
    """

    def __init__(
        self,
        transport: TransportControl,
        on_quit: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            transport: Collaborator issuing the control calls.
            on_quit: Called when the player receives Quit.
        """
        self._transport = transport
        self._on_quit = on_quit

    def dispatch(
        self,
        command: TransportCommand,
        connection: Connection | None,
        zone_selector: str | None,
    ) -> None:
        """Send a transport command.

        The call result is not inspected and errors from the transport are
        not caught here.

        Args:
            command: Command to send.
            connection: Paired core, None when unpaired.
            zone_selector: Zone or output id of the selected zone.
        """
        if connection is None or not zone_selector:
            logger.warning("Dropping %s: no paired core or no selected zone", command.value)
            return
        logger.info("Executing event %s", command.value)
        self._transport.control(zone_selector, command.value)

    def log_unhandled(self, event: str, *args: object) -> None:
        """Log a player event that has no transport equivalent.

        ``quit`` additionally terminates the application.

        Args:
            event: Player event name.
            args: Event arguments.
        """
        if event not in UNHANDLED_EVENTS:
            logger.warning("Unknown player event: %s %s", event, args)
            return
        logger.info("Event: %s %s", event, args)
        if event == "quit" and self._on_quit is not None:
            self._on_quit()
