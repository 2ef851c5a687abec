"""MOO/1 message framing used by Roon extensions.

Each WebSocket frame carries one message:

    MOO/1 REQUEST com.roonlabs.transport:2/control
    Request-Id: 7
    Content-Length: 52
    Content-Type: application/json

    {"zone_or_output_id": "1601...", "control": "next"}

For REQUEST the name is ``<service>/<method>``; for COMPLETE and CONTINUE
replies it is the status ("Success", "Subscribed", "Changed", ...).
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self

from roonmpris.errors import MooProtocolError

MOO_VERSION = "1"
JSON_CONTENT_TYPE = "application/json"

_FIRST_LINE = re.compile(r"^MOO/(\d+) ([A-Z]+) (.*)$")
_HEADER_LINE = re.compile(r"^([^:]+):\s*(.*)$")


def _content_type(body: Any) -> str:
    return JSON_CONTENT_TYPE if body is not None else ""


class MooVerb(Enum):
    """MOO message verbs."""

    REQUEST = "REQUEST"
    COMPLETE = "COMPLETE"
    CONTINUE = "CONTINUE"


@dataclass(frozen=True)
class MooMessage:
    """A single MOO message.

    Attributes:
        verb: REQUEST, COMPLETE or CONTINUE.
        name: Request name or reply status.
        request_id: Id pairing replies to requests.
        body: Decoded JSON body, raw bytes for other content types, or None.
        content_type: Body content type, empty without a body.
        headers: Any other headers, as received.
    """

    verb: MooVerb
    name: str
    request_id: int
    body: Any = None
    content_type: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def service(self) -> str:
        """Return the service part of a request name."""
        return self.name.rsplit("/", 1)[0] if "/" in self.name else ""

    @property
    def method(self) -> str:
        """Return the method part of a request name."""
        return self.name.rsplit("/", 1)[-1]

    @classmethod
    def request(cls, name: str, request_id: int, body: Any = None) -> Self:
        """Create a request."""
        return cls(MooVerb.REQUEST, name, request_id, body, _content_type(body))

    @classmethod
    def complete(cls, status: str, request_id: int, body: Any = None) -> Self:
        """Create a final reply."""
        return cls(MooVerb.COMPLETE, status, request_id, body, _content_type(body))

    @classmethod
    def continue_(cls, status: str, request_id: int, body: Any = None) -> Self:
        """Create an intermediate reply (subscriptions)."""
        return cls(MooVerb.CONTINUE, status, request_id, body, _content_type(body))

    def encode(self) -> bytes:
        """Serialize to a frame payload."""
        header = f"MOO/{MOO_VERSION} {self.verb.value} {self.name}\nRequest-Id: {self.request_id}\n"
        if self.body is None:
            return (header + "\n").encode("utf-8")

        if isinstance(self.body, bytes):
            payload = self.body
            content_type = self.content_type or "application/octet-stream"
        else:
            payload = json.dumps(self.body).encode("utf-8")
            content_type = JSON_CONTENT_TYPE
        header += f"Content-Length: {len(payload)}\nContent-Type: {content_type}\n\n"
        return header.encode("utf-8") + payload

    @classmethod
    def parse(cls, data: bytes | str) -> Self:
        """Parse a frame payload.

        Raises:
            MooProtocolError: If the frame is not a valid MOO message.
        """
        raw = data.encode("utf-8") if isinstance(data, str) else data
        head, sep, payload = raw.partition(b"\n\n")
        if not sep:
            raise MooProtocolError("Missing header terminator")

        lines = head.decode("utf-8").split("\n")
        first = _FIRST_LINE.match(lines[0])
        if first is None:
            raise MooProtocolError(f"Bad first line: {lines[0]!r}")
        version, verb_str, name = first.groups()
        if version != MOO_VERSION:
            raise MooProtocolError(f"Unsupported MOO version: {version}")
        try:
            verb = MooVerb(verb_str)
        except ValueError:
            raise MooProtocolError(f"Unknown verb: {verb_str}") from None

        headers: dict[str, str] = {}
        for line in lines[1:]:
            match = _HEADER_LINE.match(line)
            if match is None:
                raise MooProtocolError(f"Bad header line: {line!r}")
            headers[match.group(1)] = match.group(2)

        try:
            request_id = int(headers.pop("Request-Id"))
        except (KeyError, ValueError):
            raise MooProtocolError("Missing or invalid Request-Id") from None

        content_type = headers.pop("Content-Type", "")
        length_str = headers.pop("Content-Length", None)
        body: Any = None
        if length_str is not None:
            try:
                length = int(length_str)
            except ValueError:
                raise MooProtocolError(f"Invalid Content-Length: {length_str!r}") from None
            if len(payload) < length:
                raise MooProtocolError("Truncated body")
            payload = payload[:length]
            if content_type == JSON_CONTENT_TYPE:
                try:
                    body = json.loads(payload.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError) as e:
                    raise MooProtocolError(f"Invalid JSON body: {e}") from e
            else:
                body = payload

        return cls(verb, name, request_id, body, content_type, headers)
