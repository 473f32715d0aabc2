"""Stage 3: Build Identifier."""

from __future__ import annotations

from typing import Any

from driverforge.core.build_id import compose_build_id
from driverforge.models.build import FetchedArtifact
from driverforge.models.revisions import HostRevisionInfo
from driverforge.stages.base import BaseStage


class BuildIdStage(BaseStage):
    """Stage 3: compose the build identifier from both revisions."""

    @property
    def stage_id(self) -> str:
        return "s3_build_id"

    @property
    def display_name(self) -> str:
        return "Build Identifier"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        artifact: FetchedArtifact = run_context["artifact"]
        host: HostRevisionInfo = run_context["host_revision"]

        build_id = compose_build_id(run_context["platform"], host, artifact.metadata)
        run_context["build_id"] = build_id
        return {"build_id": build_id.value, "date": build_id.date}
