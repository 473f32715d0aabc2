"""Pipeline runner: wires collaborators into the six linear stages.

    platform -> fetch -> host revision -> build id -> embed -> build

Each stage's output feeds the next.  The run is single-threaded and fail
fast: the first exception propagates to the caller and no later stage runs.
The generated source file is the only state left behind.
"""

from __future__ import annotations

import logging
from typing import Any

from driverforge.config import BuildConfig
from driverforge.core.build_trigger import BuildBackend, BuildTrigger, MakeBackend, Runner
from driverforge.core.fetcher import ArtifactFetcher, HttpTransport, Transport
from driverforge.core.revision_dater import GitRevisionSource, RevisionDater, RevisionSource
from driverforge.models.build import FetchedArtifact, PipelineReport
from driverforge.models.stages import DEFAULT_STAGE_DEFINITIONS, StageState
from driverforge.stages import (
    BaseStage,
    BuildIdStage,
    BuildStage,
    EmbedStage,
    FetchStage,
    HostRevisionStage,
    PlatformStage,
)

logger = logging.getLogger(__name__)


class BuildPipeline:
    """One driver-embedding run over a node source tree.

    Parameters
    ----------
    config:
        Run configuration.  Loaded from the environment if not provided.
    transport:
        URL-to-bytes collaborator (default :class:`HttpTransport`).
    revision_source:
        Commit metadata collaborator (default :class:`GitRevisionSource`
        over the source root).
    backend:
        Build backend (default :class:`MakeBackend`).
    configure_runner:
        Process runner for the configure step (default: real subprocess).
    system:
        OS name override for platform resolution (default: the host).
    """

    def __init__(
        self,
        config: BuildConfig | None = None,
        *,
        transport: Transport | None = None,
        revision_source: RevisionSource | None = None,
        backend: BuildBackend | None = None,
        configure_runner: Runner | None = None,
        system: str | None = None,
    ) -> None:
        self.config = config or BuildConfig()

        transport = transport or HttpTransport(timeout=self.config.fetch_timeout_seconds)
        revision_source = revision_source or GitRevisionSource(
            self.config.source_root, timeout=self.config.git_timeout_seconds
        )

        self.fetcher = ArtifactFetcher(
            transport,
            self.config.resolved_work_dir,
            self.config.download_base_url,
            stem=self.config.artifact_stem,
        )
        self.dater = RevisionDater(revision_source)
        self.trigger = BuildTrigger(
            backend or MakeBackend(),
            out_dir=self.config.build_out_dir,
            build_type=self.config.build_type,
        )

        self.stages: list[BaseStage] = [
            PlatformStage(system),
            FetchStage(self.fetcher),
            HostRevisionStage(self.dater),
            BuildIdStage(),
            EmbedStage(),
            BuildStage(self.trigger, configure_runner),
        ]
        self.run_context: dict[str, Any] = {}

    def _new_context(self) -> dict[str, Any]:
        return {
            "config": self.config,
            "stage_definitions": {d.stage_id: d for d in DEFAULT_STAGE_DEFINITIONS},
            "stage_states": {d.stage_id: StageState.NOT_STARTED for d in DEFAULT_STAGE_DEFINITIONS},
            "stage_results": {},
            "stage_records": [],
        }

    def run(self, *, skip_build: bool = False) -> PipelineReport:
        """Run every stage in order and return the run report.

        Parameters
        ----------
        skip_build:
            Stop after the source file is written (no configure/make).

        Raises
        ------
        PipelineError
            Any stage failure, unchanged.  Nothing is retried.
        """
        self.run_context = ctx = self._new_context()
        logger.info(
            "Starting driverforge run in %s%s",
            self.config.source_root,
            f" (driver revision {self.config.driver_revision})" if self.config.driver_revision else "",
        )

        for stage in self.stages:
            if skip_build and isinstance(stage, BuildStage):
                logger.info("Skipping %s", stage.display_name)
                continue
            stage.run_stage(ctx)

        artifact: FetchedArtifact = ctx["artifact"]
        fetch_result = ctx["stage_results"]["s1_fetch"]
        return PipelineReport(
            platform=ctx["platform"],
            artifact=artifact.metadata,
            host=ctx["host_revision"],
            build_id=ctx["build_id"].value,
            download_name=artifact.download_name,
            payload_size=len(artifact.payload),
            payload_digest=fetch_result["payload_digest"],
            output_path=ctx["output_path"],
            parallelism=ctx.get("parallelism"),
            built=not skip_build,
            stages=list(ctx["stage_records"]),
        )
