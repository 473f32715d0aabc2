"""driverforge data models: all Pydantic v2, all frozen (immutable)."""

from driverforge.models.build import (
    BuildIdentifier,
    EmbeddedSource,
    EnvOverlay,
    FetchedArtifact,
    PipelineReport,
)
from driverforge.models.platform import PlatformTag
from driverforge.models.revisions import (
    ArtifactMetadata,
    HostRevisionInfo,
    RevisionRecord,
)
from driverforge.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    StageDefinition,
    StageRecord,
    StageState,
)

__all__ = [
    # platform
    "PlatformTag",
    # revisions
    "RevisionRecord",
    "ArtifactMetadata",
    "HostRevisionInfo",
    # build
    "BuildIdentifier",
    "EmbeddedSource",
    "EnvOverlay",
    "FetchedArtifact",
    "PipelineReport",
    # stages
    "StageState",
    "StageDefinition",
    "StageRecord",
    "DEFAULT_STAGE_DEFINITIONS",
]
