"""Track-change notifications with downloaded cover art.

The desktop notifier needs the cover art as a local file, so each
notification first downloads the image to a fixed scratch path. Downloads
run one at a time on a background thread; a request superseded by a newer
one before it is shown is dropped.
"""

from __future__ import annotations

import logging
import shutil
import threading
import urllib.error
import urllib.request
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import suppress
from pathlib import Path
from typing import Protocol

from roonmpris import __version__

logger = logging.getLogger(__name__)

# Request timeout in seconds
REQUEST_TIMEOUT = 10

USER_AGENT = f"roon-mpris/{__version__}"


class Notifier(Protocol):
    """Desktop notification sink."""

    def notify(self, title: str, message: str, icon: str) -> None:
        """Show a notification."""
        ...


class NotificationDispatcher:
    """Download cover art, then raise a desktop notification.

    The artist line is shown as the notification title and the track title
    as its message, matching the text earlier releases produced.

    Example:
        dispatcher = NotificationDispatcher(notifier, Path("/tmp/cover"))
        dispatcher.notify(["Artist"], "Title", "http://core:9100/api/image/abc")
    """

    def __init__(self, notifier: Notifier, artwork_path: Path) -> None:
        """Initialize the dispatcher.

        Args:
            notifier: Desktop notifier to call once the art is on disk.
            artwork_path: Scratch file overwritten by every download.
        """
        self._notifier = notifier
        self._artwork_path = artwork_path
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="artwork")
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def artwork_path(self) -> Path:
        """Return the scratch path cover art is written to."""
        return self._artwork_path

    def notify(
        self,
        title_parts: Sequence[str],
        message: str,
        artwork_url: str | None,
    ) -> Future[None] | None:
        """Queue a notification. Returns immediately.

        Nothing is shown for tracks without artwork.

        Args:
            title_parts: Artist names.
            message: Track title.
            artwork_url: Cover art URL.

        Returns:
            Future for the queued job, or None if nothing was queued.
        """
        if not artwork_url:
            logger.debug("No artwork for '%s', skipping notification", message)
            return None

        with self._lock:
            self._generation += 1
            generation = self._generation

        title = ", ".join(title_parts)
        return self._executor.submit(self._run, generation, title, message, artwork_url)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _run(self, generation: int, title: str, message: str, artwork_url: str) -> None:
        """Download the art and notify (runs on the executor thread)."""
        if not self._is_current(generation):
            logger.debug("Notification for '%s' superseded before download", message)
            return

        if not self._download(artwork_url):
            return

        if not self._is_current(generation):
            logger.debug("Notification for '%s' superseded after download", message)
            return

        self._notifier.notify(title, message, str(self._artwork_path))

    def _download(self, url: str) -> bool:
        """Fetch the image into the scratch file.

        Args:
            url: Image URL.

        Returns:
            True on success. On failure the partial file is removed.
        """
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        try:
            with (
                urllib.request.urlopen(req, timeout=REQUEST_TIMEOUT) as response,
                self._artwork_path.open("wb") as file,
            ):
                shutil.copyfileobj(response, file)
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            with suppress(OSError):
                self._artwork_path.unlink()
            logger.warning("Error downloading image: %s", e)
            return False
        return True

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting work and release the download thread.

        Args:
            wait: Block until queued downloads finish.
        """
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
