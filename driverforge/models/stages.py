"""Stage models for the linear driverforge pipeline."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StageState(str, Enum):
    """State of a single pipeline stage within one run."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    FAILED = "failed"
    PASSED = "passed"


class StageDefinition(BaseModel):
    """A pipeline stage and its position in the run.

    The pipeline is strictly linear: each stage's prerequisite is the
    stage before it.
    """

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: int
    prerequisites: list[str] = []


class StageRecord(BaseModel):
    """Outcome of one executed stage."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    state: StageState
    output_hash: str = ""
    error: str | None = None


DEFAULT_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(
        stage_id="s0_platform",
        display_name="Platform Resolution",
        ordinal=0,
        prerequisites=[],
    ),
    StageDefinition(
        stage_id="s1_fetch",
        display_name="Driver Fetch & Stage",
        ordinal=1,
        prerequisites=["s0_platform"],
    ),
    StageDefinition(
        stage_id="s2_host_revision",
        display_name="Host Revision",
        ordinal=2,
        prerequisites=["s1_fetch"],
    ),
    StageDefinition(
        stage_id="s3_build_id",
        display_name="Build Identifier",
        ordinal=3,
        prerequisites=["s2_host_revision"],
    ),
    StageDefinition(
        stage_id="s4_embed",
        display_name="Source Embedding",
        ordinal=4,
        prerequisites=["s3_build_id"],
    ),
    StageDefinition(
        stage_id="s5_build",
        display_name="Native Build",
        ordinal=5,
        prerequisites=["s4_embed"],
    ),
]
