"""Stage 5: Native Build.

Optionally runs ``./configure``, then the build backend with the
don't-record overlay.  A non-zero exit raises ``BuildFailed``.

Outputs:
    parallelism: job count handed to the backend.
    configured:  whether configure ran.
"""

from __future__ import annotations

from typing import Any

from driverforge.config import BuildConfig
from driverforge.core.build_trigger import (
    BuildTrigger,
    Runner,
    default_parallelism,
    dont_record_overlay,
    run_configure,
)
from driverforge.stages.base import BaseStage


class BuildStage(BaseStage):
    """Stage 5: run the native build."""

    def __init__(self, trigger: BuildTrigger, configure_runner: Runner | None = None) -> None:
        self._trigger = trigger
        self._configure_runner = configure_runner

    @property
    def stage_id(self) -> str:
        return "s5_build"

    @property
    def display_name(self) -> str:
        return "Native Build"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        config: BuildConfig = run_context["config"]
        parallelism = default_parallelism(config.jobs)
        run_context["parallelism"] = parallelism

        if config.configure_node:
            run_configure(config.source_root, self._configure_runner)

        self._trigger.run_build(
            config.source_root,
            parallelism,
            dont_record_overlay(config.dont_record_var),
        )
        return {"parallelism": parallelism, "configured": config.configure_node}
