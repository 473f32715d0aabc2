"""Build identifier composition.

The identifier names one (driver, host) build:

    {platform}-node-{date}-{host_hash}-{artifact_hash}

``date`` is the later of the two commit dates, so a change on either side
moves the identifier forward.  The same inputs always give the same
identifier; nothing here reads the clock.

Other runtimes and the backend compute this identifier independently.
Keep the format in sync with them.
"""

from __future__ import annotations

from driverforge.models.build import BuildIdentifier
from driverforge.models.platform import PlatformTag
from driverforge.models.revisions import ArtifactMetadata, HostRevisionInfo


def later_date(host_date: str, artifact_date: str) -> str:
    """Return the later of two ``YYYYMMDD`` stamps (host wins a tie)."""
    return host_date if int(host_date) >= int(artifact_date) else artifact_date


def compose_build_id(
    platform: PlatformTag,
    host: HostRevisionInfo,
    artifact: ArtifactMetadata,
) -> BuildIdentifier:
    """Combine host and driver revisions into a :class:`BuildIdentifier`."""
    return BuildIdentifier(
        platform=platform,
        date=later_date(host.revision_date, artifact.revision_date),
        host_hash=host.revision_hash,
        artifact_hash=artifact.revision_hash,
    )
