"""HTTP header and request records."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Header:
    """One HTTP header line."""

    name: str = ""
    value: str = ""


@dataclass
class Request:
    """A request received from a client."""

    method: str = ""
    uri: str = ""
    http_version_major: int = 0
    http_version_minor: int = 0
    headers: list[Header] = field(default_factory=list)

    def header(self, name: str) -> str | None:
        """Value of the first header with this name, ignoring case, or None."""
        wanted = name.lower()
        return next((h.value for h in self.headers if h.name.lower() == wanted), None)