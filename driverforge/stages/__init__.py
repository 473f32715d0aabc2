"""driverforge pipeline stages, in execution order.

Usage::

    from driverforge.stages import STAGE_ORDER, STAGE_REGISTRY

    for stage_id in STAGE_ORDER:
        print(stage_id, STAGE_REGISTRY[stage_id].__name__)
"""

from __future__ import annotations

from driverforge.stages.base import BaseStage, StagePrerequisiteError
from driverforge.stages.s0_platform import PlatformStage
from driverforge.stages.s1_fetch import FetchStage
from driverforge.stages.s2_host_revision import HostRevisionStage
from driverforge.stages.s3_build_id import BuildIdStage
from driverforge.stages.s4_embed import EmbedStage
from driverforge.stages.s5_build import BuildStage

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "s0_platform": PlatformStage,
    "s1_fetch": FetchStage,
    "s2_host_revision": HostRevisionStage,
    "s3_build_id": BuildIdStage,
    "s4_embed": EmbedStage,
    "s5_build": BuildStage,
}

STAGE_ORDER: list[str] = list(STAGE_REGISTRY)

__all__ = [
    "BaseStage",
    "StagePrerequisiteError",
    "STAGE_REGISTRY",
    "STAGE_ORDER",
    "PlatformStage",
    "FetchStage",
    "HostRevisionStage",
    "BuildIdStage",
    "EmbedStage",
    "BuildStage",
]
