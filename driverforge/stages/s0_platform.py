"""Stage 0: Platform Resolution.

Resolves the host platform tag once.  Every later stage reads it from
``run_context["platform"]`` instead of resolving again.

Outputs:
    platform:  the PlatformTag value.
"""

from __future__ import annotations

from typing import Any

from driverforge.core.platform_resolver import resolve_platform
from driverforge.stages.base import BaseStage


class PlatformStage(BaseStage):
    """Stage 0: map the host OS to a platform tag (fails closed)."""

    def __init__(self, system: str | None = None) -> None:
        self._system = system

    @property
    def stage_id(self) -> str:
        return "s0_platform"

    @property
    def display_name(self) -> str:
        return "Platform Resolution"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        platform = resolve_platform(self._system)
        run_context["platform"] = platform
        return {"platform": platform.value}
