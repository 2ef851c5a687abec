"""Exceptions raised by the bridge."""


class RoonError(Exception):
    """Base class for errors talking to a Roon Core."""


class MooProtocolError(RoonError):
    """A MOO frame could not be parsed."""


class RoonRequestError(RoonError):
    """A request completed with a non-success status.

    Attributes:
        name: Request name (service/method).
        status: Status name returned by the core (e.g. "InvalidRequest").
        body: Decoded response body, if any.
    """

    def __init__(self, name: str, status: str, body: object = None) -> None:
        super().__init__(f"{name} failed: {status}")
        self.name = name
        self.status = status
        self.body = body


class UnknownPlaybackStateError(ValueError):
    """A zone reported a playback state outside the known set."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Unknown playback state: {value!r}")
        self.value = value
