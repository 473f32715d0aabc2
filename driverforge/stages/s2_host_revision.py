"""Stage 2: Host Revision.

Dates and hashes the enclosing source checkout.

Outputs:
    host_revision: 12-character hash of the checkout's commit.
    host_date:     ``YYYYMMDD`` UTC commit date.
"""

from __future__ import annotations

from typing import Any

from driverforge.config import BuildConfig
from driverforge.core.revision_dater import RevisionDater
from driverforge.stages.base import BaseStage


class HostRevisionStage(BaseStage):
    """Stage 2: resolve the host checkout's revision info."""

    def __init__(self, dater: RevisionDater) -> None:
        self._dater = dater

    @property
    def stage_id(self) -> str:
        return "s2_host_revision"

    @property
    def display_name(self) -> str:
        return "Host Revision"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        config: BuildConfig = run_context["config"]
        info = self._dater.host_revision(config.host_revision_ref)
        run_context["host_revision"] = info
        return {
            "host_revision": info.revision_hash,
            "host_date": info.revision_date,
        }
