"""Stage 1: Driver Fetch & Stage.

Downloads the driver archive for the resolved platform (honouring the
configured revision override), unpacks it and keeps only the payload and
its metadata in memory.

Reads from *run_context*:
    platform:  from Stage 0.
    config:    BuildConfig (``driver_revision``).

Outputs:
    download_name:     remote archive name that was requested.
    artifact_revision: revision from the fetched descriptor.
    artifact_date:     ``YYYYMMDD`` from the fetched descriptor.
    payload_size:      driver size in bytes.
    payload_digest:    ``sha256:<hex>`` of the driver.
"""

from __future__ import annotations

from typing import Any

from driverforge.config import BuildConfig
from driverforge.core.fetcher import ArtifactFetcher
from driverforge.core.hasher import content_address
from driverforge.models.platform import PlatformTag
from driverforge.stages.base import BaseStage


class FetchStage(BaseStage):
    """Stage 1: download, unpack and read the driver."""

    def __init__(self, fetcher: ArtifactFetcher) -> None:
        self._fetcher = fetcher

    @property
    def stage_id(self) -> str:
        return "s1_fetch"

    @property
    def display_name(self) -> str:
        return "Driver Fetch & Stage"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        platform: PlatformTag = run_context["platform"]
        config: BuildConfig = run_context["config"]

        artifact = self._fetcher.fetch_artifact(platform, config.driver_revision)
        run_context["artifact"] = artifact

        return {
            "download_name": artifact.download_name,
            "artifact_revision": artifact.metadata.revision_hash,
            "artifact_date": artifact.metadata.revision_date,
            "payload_size": len(artifact.payload),
            "payload_digest": content_address(artifact.payload),
        }
