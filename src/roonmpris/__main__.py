"""Main entry point for the Roon MPRIS bridge."""

import argparse
import logging
import signal
import sys
from pathlib import Path

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from roonmpris import __version__
from roonmpris.api.client import DEFAULT_PORT
from roonmpris.core.config import DEFAULT_CONFIG_DIR, ConfigManager
from roonmpris.core.notifier import NotificationDispatcher
from roonmpris.core.relay import CommandRelay
from roonmpris.core.session import BridgeState, SessionOrchestrator
from roonmpris.core.worker import RoonWorker
from roonmpris.mpris.player import MprisPlayer
from roonmpris.mpris.service import MprisService
from roonmpris.ui.notifications import DesktopNotifier
from roonmpris.ui.system_tray import SystemTrayManager

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

LOG_LEVELS = {
    "none": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "all": logging.DEBUG,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="roon-mpris",
        description="Expose a Roon zone as an MPRIS media player",
    )
    parser.add_argument("-H", "--host", required=True, help="Roon Core hostname or IP")
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Roon Core port (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_DIR,
        help=f"configuration directory (default: {DEFAULT_CONFIG_DIR})",
    )
    parser.add_argument(
        "-l",
        "--log",
        choices=sorted(LOG_LEVELS),
        default="none",
        help="log verbosity (default: none)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(level_name: str) -> None:
    """Configure root logging for the given ``--log`` value."""
    logging.basicConfig(level=LOG_LEVELS[level_name], format=LOG_FORMAT)


def main(argv: list[str] | None = None) -> int:
    """Run the bridge.

    Returns:
        Exit code (0 for success).
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log)
    config_dir: Path = args.config.expanduser()

    QApplication.setApplicationName("roon-mpris")
    QApplication.setApplicationDisplayName("Roon MPRIS")
    app = QApplication(sys.argv[:1])
    app.setQuitOnLastWindowClosed(False)

    # Create core components
    config = ConfigManager(config_dir)
    worker = RoonWorker(args.host, args.port, config_dir=config_dir)
    player = MprisPlayer()
    service = MprisService(player)
    relay = CommandRelay(worker, on_quit=app.quit)
    session = SessionOrchestrator(BridgeState(), config, player, relay)

    tray = SystemTrayManager(session)
    dispatcher = NotificationDispatcher(DesktopNotifier(service), config.get_artwork_path())
    session.set_dispatcher(dispatcher)

    def on_bus_error(error: object) -> None:
        logger.error("MPRIS player not exported; media keys will not work: %s", error)

    service.registration_failed.connect(on_bus_error)

    # Connect worker signals to the session
    worker.paired.connect(session.on_paired)
    worker.unpaired.connect(session.on_unpaired)
    worker.zone_event.connect(session.on_zone_event)

    def on_error(error: object) -> None:
        logger.warning("Roon error: %s", error)

    def on_disconnected() -> None:
        logger.info("Core at %s:%d unreachable, retrying", args.host, args.port)

    worker.error_occurred.connect(on_error)
    worker.disconnected.connect(on_disconnected)

    # Quit cleanly on Ctrl+C / SIGTERM; the timer lets Python see the signal
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    signal.signal(signal.SIGTERM, lambda *_: app.quit())
    sigint_timer = QTimer()
    sigint_timer.timeout.connect(lambda: None)
    sigint_timer.start(500)

    tray.show()
    service.start()
    worker.start()
    logger.info("Connecting to Roon Core at %s:%d", args.host, args.port)

    # Run the application
    exit_code = app.exec()

    # Cleanup
    worker.stop()
    worker.wait()
    dispatcher.shutdown()
    service.stop()
    service.wait()
    tray.cleanup()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
