"""Thin wrapper around :func:`subprocess.run` for external commands.

Every command line is logged before it runs, so a failing step can be
reproduced by hand from the log.  Exit codes are returned to the caller,
which decides which error type a non-zero status maps to.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from driverforge.core.errors import CommandNotFound

logger = logging.getLogger(__name__)


def format_command(cmd: Sequence[str]) -> str:
    """Render *cmd* as a shell-pasteable string."""
    return shlex.join(str(part) for part in cmd)


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    capture: bool = False,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run *cmd* synchronously and return the completed process.

    Parameters
    ----------
    cmd:
        Command list (e.g. ``["make", "-j8", "-C", "out"]``).
    cwd:
        Working directory for the child process.
    env:
        Full environment for the child.  ``None`` inherits the parent's.
    capture:
        Capture stdout/stderr as text instead of streaming to the terminal.
    timeout:
        Seconds before :class:`subprocess.TimeoutExpired` is raised.

    Raises
    ------
    CommandNotFound
        If the executable does not exist or cannot be launched.
    """
    pretty = format_command(cmd)
    logger.info("$ %s", pretty)
    try:
        return subprocess.run(
            list(cmd),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            capture_output=capture,
            text=True,
            check=False,
            timeout=timeout,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise CommandNotFound(f"Cannot launch {pretty}: {exc}") from exc
