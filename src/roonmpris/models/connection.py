"""Connection model for a paired Roon Core."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Connection:
    """A paired Roon Core session.

    Attributes:
        core_id: Unique core identifier.
        display_name: Human-readable core name.
        display_version: Core software version.
        base_address: Address the core serves HTTP resources under
            (host:port/api), used to build image URLs.
    """

    core_id: str
    display_name: str = ""
    display_version: str = ""
    base_address: str = ""

    @property
    def label(self) -> str:
        """Return a short description for log lines."""
        return f"{self.display_name} {self.display_version} ({self.core_id})".strip()
