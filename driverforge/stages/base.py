"""Abstract base stage with enforced lifecycle.

Every concrete stage inherits from BaseStage and implements only
``execute()``.  The ``run_stage()`` wrapper is **not overridable**: it
enforces the lifecycle ordering:

    validate_prerequisites -> execute -> compute_output_hash -> record

A failing stage is recorded as FAILED and its exception propagates
unchanged, so the caller sees the original error type and no later stage
runs.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, final

from driverforge.core.hasher import compute_output_hash
from driverforge.models.stages import StageRecord, StageState

logger = logging.getLogger(__name__)


class StagePrerequisiteError(RuntimeError):
    """Raised when a stage runs before the stages it depends on passed."""


class BaseStage(abc.ABC):
    """Abstract base for all driverforge pipeline stages.

    Subclasses **must** implement:
        * ``stage_id``:   unique identifier (e.g. ``"s1_fetch"``).
        * ``display_name``: human-readable name for reports.
        * ``execute(run_context)``: the stage's core logic.

    Keys of the result dict starting with ``_`` carry in-memory values
    (payload bytes, model instances) and are excluded from the output hash.

    Subclasses **must not** override ``run_stage()``.
    """

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        """Unique stage identifier (e.g. ``'s1_fetch'``)."""
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        """Human-readable display name."""
        ...

    @abc.abstractmethod
    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Execute the stage's core logic.

        Parameters
        ----------
        run_context:
            Mutable dict carrying run-wide state: ``config``, prior stage
            outputs, and the values each stage publishes for the next.

        Returns
        -------
        dict:
            Structured result dict appropriate to the stage's purpose.
        """
        ...

    # ------------------------------------------------------------------
    # Lifecycle: NOT overridable
    # ------------------------------------------------------------------

    @final
    def run_stage(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Execute the full stage lifecycle.  **Do not override.**

        Returns the result dict produced by ``execute()``, augmented with
        an ``_output_hash`` key.
        """
        self.validate_prerequisites(run_context)

        states: dict[str, StageState] = run_context.setdefault("stage_states", {})
        states[self.stage_id] = StageState.RUNNING
        logger.info("%s [%s] started", self.display_name, self.stage_id)

        try:
            result = self.execute(run_context)
        except Exception as exc:
            states[self.stage_id] = StageState.FAILED
            run_context.setdefault("stage_records", []).append(
                StageRecord(
                    stage_id=self.stage_id,
                    display_name=self.display_name,
                    state=StageState.FAILED,
                    error=str(exc),
                )
            )
            logger.error(
                "%s [%s] failed: %s",
                self.display_name,
                self.stage_id,
                exc,
            )
            raise

        output_hash = self._compute_output_hash(result)
        self._record(run_context, result, output_hash)
        result["_output_hash"] = output_hash
        return result

    @final
    def validate_prerequisites(self, run_context: dict[str, Any]) -> None:
        """Ensure every prerequisite stage has PASSED.

        Reads ``stage_states`` and ``stage_definitions`` from
        *run_context*.  Raises ``StagePrerequisiteError`` otherwise.
        """
        stage_states: dict[str, StageState] = run_context.get("stage_states", {})
        definition = run_context.get("stage_definitions", {}).get(self.stage_id)
        prerequisites: list[str] = definition.prerequisites if definition else []

        blocking: list[str] = []
        for prereq_id in prerequisites:
            state = stage_states.get(prereq_id, StageState.NOT_STARTED)
            if state != StageState.PASSED:
                blocking.append(f"{prereq_id} is {state.value}")

        if blocking:
            raise StagePrerequisiteError(
                f"Cannot run {self.stage_id}: prerequisites not met: "
                + "; ".join(blocking)
            )

    @final
    def _compute_output_hash(self, result: dict[str, Any]) -> str:
        """SHA-256 of canonical(stage_id + public result keys)."""
        hashable = {k: v for k, v in result.items() if not k.startswith("_")}
        return compute_output_hash(self.stage_id, hashable)

    @final
    def _record(
        self,
        run_context: dict[str, Any],
        result: dict[str, Any],
        output_hash: str,
    ) -> None:
        """Store the result and a PASSED record for downstream stages."""
        run_context.setdefault("stage_results", {})[self.stage_id] = result
        run_context.setdefault("stage_states", {})[self.stage_id] = StageState.PASSED
        run_context.setdefault("stage_records", []).append(
            StageRecord(
                stage_id=self.stage_id,
                display_name=self.display_name,
                state=StageState.PASSED,
                output_hash=output_hash,
            )
        )
        logger.info(
            "%s [%s] passed: output=%s",
            self.display_name,
            self.stage_id,
            output_hash[:12],
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"
