"""Build identifier, embedded source and run report models."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, computed_field

from driverforge.models.platform import PlatformTag
from driverforge.models.revisions import (
    DATE_STAMP_PATTERN,
    ArtifactMetadata,
    HostRevisionInfo,
)
from driverforge.models.stages import StageRecord

_BUILD_ID_RE = re.compile(
    r"^(?P<platform>[A-Za-z]+)-node-(?P<date>\d{8})-(?P<host>[^-]+)-(?P<artifact>.+)$"
)


class BuildIdentifier(BaseModel):
    """Reproducible identifier of one driver + host build.

    Renders as ``{platform}-node-{date}-{host_hash}-{artifact_hash}``.
    """

    model_config = ConfigDict(frozen=True)

    platform: PlatformTag
    date: str = Field(pattern=DATE_STAMP_PATTERN)
    host_hash: str = Field(min_length=1)
    artifact_hash: str = Field(min_length=1)

    @property
    def value(self) -> str:
        return f"{self.platform.value}-node-{self.date}-{self.host_hash}-{self.artifact_hash}"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> BuildIdentifier:
        """Split a rendered identifier back into its parts.

        Raises ``ValueError`` if *text* is not a well-formed identifier.
        """
        match = _BUILD_ID_RE.match(text)
        if match is None:
            raise ValueError(f"Not a build identifier: {text!r}")
        return cls(
            platform=PlatformTag(match["platform"]),
            date=match["date"],
            host_hash=match["host"],
            artifact_hash=match["artifact"],
        )


class EmbeddedSource(BaseModel):
    """Everything the generated C++ file declares.

    This is the intermediate form between the raw payload and the rendered
    text; escaping lives in :mod:`driverforge.core.embedder`.
    """

    model_config = ConfigDict(frozen=True)

    payload: bytes
    build_id: str
    namespace: str = "node"
    payload_symbol: str = "gRecordReplayDriver"
    size_symbol: str = "gRecordReplayDriverSize"
    build_id_symbol: str = "gBuildId"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def payload_size(self) -> int:
        return len(self.payload)


class EnvOverlay(Mapping[str, str]):
    """Read-only set of environment variables layered over the parent's.

    The overlay applies to a single child process; the parent process
    environment is never modified.
    """

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = MappingProxyType(dict(values or {}))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"EnvOverlay({dict(self._values)!r})"

    def apply(self, base: Mapping[str, str]) -> dict[str, str]:
        """Return a new environment: *base* with the overlay on top."""
        merged = dict(base)
        merged.update(self._values)
        return merged


class FetchedArtifact(BaseModel):
    """Driver payload and metadata that survive fetch-and-stage."""

    model_config = ConfigDict(frozen=True)

    payload: bytes
    metadata: ArtifactMetadata
    download_name: str


class PipelineReport(BaseModel):
    """Summary of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    platform: PlatformTag
    artifact: ArtifactMetadata
    host: HostRevisionInfo
    build_id: str
    download_name: str
    payload_size: int
    payload_digest: str  # "sha256:<hex>"
    output_path: Path
    parallelism: int | None = None
    built: bool = False
    stages: list[StageRecord] = []
