"""Host platform resolution.

Maps the running OS to a :class:`PlatformTag`.  Unknown hosts fail closed
with :class:`UnsupportedPlatform`; there is no fallback tag.
"""

from __future__ import annotations

import platform as _platform

from driverforge.core.errors import UnsupportedPlatform
from driverforge.models.platform import PlatformTag

# Values of platform.system() that have a driver build.
_SYSTEM_TAGS: dict[str, PlatformTag] = {
    "Darwin": PlatformTag.MACOS,
    "Linux": PlatformTag.LINUX,
}

# Every PlatformTag must appear here.
_PAYLOAD_EXTENSIONS: dict[PlatformTag, str] = {
    PlatformTag.MACOS: "so",
    PlatformTag.LINUX: "so",
    PlatformTag.WINDOWS: "dll",
}


def resolve_platform(system: str | None = None) -> PlatformTag:
    """Return the platform tag for *system* (default: the running host).

    Raises
    ------
    UnsupportedPlatform
        If the OS has no driver build.  Windows is in this set.
    """
    name = system if system is not None else _platform.system()
    tag = _SYSTEM_TAGS.get(name)
    if tag is None:
        raise UnsupportedPlatform(f"Platform {name or '<unknown>'} not supported")
    return tag


def payload_extension(platform: PlatformTag) -> str:
    """Shared-library extension of the driver payload for *platform*."""
    try:
        return _PAYLOAD_EXTENSIONS[PlatformTag(platform)]
    except (KeyError, ValueError) as exc:
        raise UnsupportedPlatform(f"No payload naming for platform {platform!r}") from exc
