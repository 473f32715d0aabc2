"""Platform tags used in archive names and build identifiers."""

from __future__ import annotations

from enum import Enum


class PlatformTag(str, Enum):
    """Canonical platform tag for a host.

    ``WINDOWS`` exists so that naming helpers cover every tag, but no
    host currently resolves to it and the fetcher rejects it.
    """

    MACOS = "macOS"
    LINUX = "linux"
    WINDOWS = "windows"

    def __str__(self) -> str:
        return self.value
