"""Failure taxonomy for a driverforge run.

Every error is fatal: nothing in the pipeline retries or falls back.  The
CLI reports the message and exits non-zero so that an operator can
diagnose and re-run.
"""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for every failure a pipeline run can raise."""


class UnsupportedPlatform(PipelineError):
    """Raised when the host OS has no platform tag (there is no default)."""


class FetchError(PipelineError):
    """Raised when the driver archive cannot be downloaded."""


class ArchiveError(PipelineError):
    """Raised when the archive cannot be unpacked or lacks expected files."""


class RevisionNotFound(PipelineError):
    """Raised when version control cannot resolve a revision reference."""


class DateNormalizationError(PipelineError):
    """Raised when a commit timestamp cannot be normalized to a UTC date."""


class CommandNotFound(PipelineError):
    """Raised when an external command cannot be launched at all."""


class BuildFailed(PipelineError):
    """Raised when the configure step or the build backend exits non-zero."""

    def __init__(self, exit_code: int, command: str = "") -> None:
        self.exit_code = exit_code
        self.command = command
        detail = f": {command}" if command else ""
        super().__init__(f"Build failed with exit code {exit_code}{detail}")
