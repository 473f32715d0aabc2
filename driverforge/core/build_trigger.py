"""Native build invocation.

Runs the node build (``make -j<N> -C out BUILDTYPE=Release``) with an
environment overlay that stops the freshly built node from recording
itself while it takes part in its own compilation.  The overlay is passed
to the child process only; ``os.environ`` is never modified.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from driverforge.core.errors import BuildFailed
from driverforge.core.process import format_command, run_command
from driverforge.models.build import EnvOverlay

logger = logging.getLogger(__name__)

# Signature of driverforge.core.process.run_command, narrowed to what we use.
Runner = Callable[..., subprocess.CompletedProcess[str]]


def default_parallelism(override: int | None = None) -> int:
    """Job count for the backend: *override*, else the logical core count."""
    if override is not None:
        if override < 1:
            raise ValueError(f"Parallelism must be positive, got {override}")
        return override
    return os.cpu_count() or 1


def dont_record_overlay(var: str = "RECORD_REPLAY_DONT_RECORD") -> EnvOverlay:
    """Overlay disabling recording while node runs during its own build."""
    return EnvOverlay({var: "1"})


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


@runtime_checkable
class BuildBackend(Protocol):
    """Something that can run a build and report its exit code."""

    def invoke(self, working_dir: Path, flags: Sequence[str], env: EnvOverlay) -> int:
        """Run the build in *working_dir* and return its exit code."""
        ...


class MakeBackend:
    """Build backend running ``make`` as a child process.

    Parameters
    ----------
    runner:
        Process runner (default :func:`run_command`).
    program:
        Build tool executable.
    base_env:
        Environment the overlay is applied on (default: ``os.environ``).
    """

    def __init__(
        self,
        runner: Runner | None = None,
        *,
        program: str = "make",
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self._runner = runner or run_command
        self.program = program
        self._base_env = base_env

    def invoke(self, working_dir: Path, flags: Sequence[str], env: EnvOverlay) -> int:
        base = self._base_env if self._base_env is not None else os.environ
        result = self._runner(
            [self.program, *flags],
            cwd=Path(working_dir),
            env=env.apply(base),
        )
        return int(result.returncode)


def run_configure(source_root: Path, runner: Runner | None = None) -> None:
    """Run ``<source_root>/configure`` from inside the source root.

    Raises
    ------
    BuildFailed
        If configure exits non-zero.
    """
    runner = runner or run_command
    source_root = Path(source_root)
    cmd = [str(source_root / "configure")]
    result = runner(cmd, cwd=source_root)
    if result.returncode != 0:
        raise BuildFailed(int(result.returncode), format_command(cmd))


# ---------------------------------------------------------------------------
# Trigger
# ---------------------------------------------------------------------------


class BuildTrigger:
    """Invoke a :class:`BuildBackend` and fail on a non-zero exit.

    Parameters
    ----------
    backend:
        Backend to invoke (default :class:`MakeBackend`).
    out_dir:
        Build output directory, relative to the working directory.
    build_type:
        Value passed as ``BUILDTYPE``.
    """

    def __init__(
        self,
        backend: BuildBackend | None = None,
        *,
        out_dir: str = "out",
        build_type: str = "Release",
    ) -> None:
        self.backend = backend or MakeBackend()
        self.out_dir = out_dir
        self.build_type = build_type

    def flags(self, parallelism: int) -> list[str]:
        return [f"-j{parallelism}", "-C", self.out_dir, f"BUILDTYPE={self.build_type}"]

    def run_build(
        self,
        working_dir: Path,
        parallelism: int,
        env: EnvOverlay | None = None,
    ) -> None:
        """Run the backend synchronously.

        Raises
        ------
        ValueError
            If *parallelism* is not positive.
        BuildFailed
            If the backend exits non-zero.
        """
        if parallelism < 1:
            raise ValueError(f"Parallelism must be positive, got {parallelism}")
        flags = self.flags(parallelism)
        overlay = env if env is not None else EnvOverlay()
        logger.info(
            "Building in %s with %d jobs (env overlay: %s)",
            working_dir,
            parallelism,
            ", ".join(f"{k}={v}" for k, v in overlay.items()) or "none",
        )
        exit_code = self.backend.invoke(Path(working_dir), flags, overlay)
        if exit_code != 0:
            program = getattr(self.backend, "program", "build")
            raise BuildFailed(exit_code, format_command([program, *flags]))
