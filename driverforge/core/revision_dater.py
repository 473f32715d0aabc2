"""Revision dating: commit date (UTC) and short hash of a revision.

The build identifier embeds the *UTC* calendar date of a commit.  Commit
timestamps carry the committer's local offset, so the date component must
be taken only after converting to UTC: a commit made at 23:30 in New York
on March 1st is dated ``20240302``.

All interaction with the ``git`` binary goes through
:func:`driverforge.core.process.run_command` with a timeout, and every
failure surfaces as :class:`RevisionNotFound`.
"""

from __future__ import annotations

import logging
import re
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from driverforge.core.errors import (
    CommandNotFound,
    DateNormalizationError,
    RevisionNotFound,
)
from driverforge.core.process import format_command, run_command
from driverforge.models.revisions import HostRevisionInfo, RevisionRecord

logger = logging.getLogger(__name__)

SHORT_HASH_LENGTH = 12

# Hex SHAs and safe ref names (HEAD, HEAD~2, origin/main, v1.2.3, ...).
_GIT_SHA_RE = re.compile(r"^[0-9a-fA-F]{4,40}$")
_GIT_REF_RE = re.compile(r"^[a-zA-Z0-9_./@~^{}\-]+$")


def _validate_git_ref(ref: str) -> None:
    """Reject refs that could be read by git as options or shell syntax."""
    if not ref:
        raise RevisionNotFound("Revision reference cannot be empty")
    if ref.startswith("-"):
        raise RevisionNotFound(f"Invalid revision reference: {ref!r}")
    if not (_GIT_SHA_RE.match(ref) or _GIT_REF_RE.match(ref)):
        raise RevisionNotFound(f"Invalid revision reference: {ref!r}")


def utc_date_stamp(iso_timestamp: str) -> str:
    """Convert a strict ISO-8601 timestamp to its UTC date as ``YYYYMMDD``.

    Raises
    ------
    DateNormalizationError
        If the timestamp does not parse or has no UTC offset.  A naive
        timestamp has no defined UTC date, and the local date is never
        an acceptable substitute.
    """
    text = iso_timestamp.strip()
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise DateNormalizationError(f"Unparseable commit timestamp: {iso_timestamp!r}") from exc
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise DateNormalizationError(
            f"Commit timestamp has no UTC offset: {iso_timestamp!r}"
        )
    return moment.astimezone(timezone.utc).strftime("%Y%m%d")


# ---------------------------------------------------------------------------
# Revision sources
# ---------------------------------------------------------------------------


@runtime_checkable
class RevisionSource(Protocol):
    """Anything that can report a revision's hash and commit timestamp."""

    def query(self, ref: str) -> RevisionRecord:
        """Return hash and ISO-8601 commit timestamp for *ref*.

        Raises :class:`RevisionNotFound` if *ref* cannot be resolved.
        """
        ...


class GitRevisionSource:
    """Query commit metadata from a local git checkout.

    Parameters
    ----------
    repo_path:
        Any directory inside the working tree.
    timeout:
        Seconds before a git invocation is abandoned.
    """

    def __init__(self, repo_path: Path, timeout: float = 30.0) -> None:
        self.repo_path = Path(repo_path)
        self.timeout = timeout

    def query(self, ref: str) -> RevisionRecord:
        _validate_git_ref(ref)
        cmd = [
            "git",
            "show",
            "--no-patch",
            "--pretty=format:%H%n%cd",
            "--date=iso-strict",
            # Peel annotated tags so only the commit is printed.
            f"{ref}^{{commit}}",
        ]
        try:
            result = run_command(cmd, cwd=self.repo_path, capture=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            raise RevisionNotFound(
                f"git timed out after {self.timeout}s: {format_command(cmd)}"
            ) from exc
        except CommandNotFound as exc:
            raise RevisionNotFound(
                "git executable not found. Ensure git is installed and on PATH."
            ) from exc

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise RevisionNotFound(
                f"Cannot resolve revision {ref!r}: {format_command(cmd)}\n"
                f"Exit code {result.returncode}: {stderr}"
            )

        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if len(lines) < 2:
            raise RevisionNotFound(f"Unexpected git output for {ref!r}: {result.stdout!r}")
        return RevisionRecord(revision_hash=lines[0], iso_timestamp=lines[1])


# ---------------------------------------------------------------------------
# Dater
# ---------------------------------------------------------------------------


class RevisionDater:
    """Resolve revisions to a UTC date stamp and a fixed-length short hash."""

    def __init__(self, source: RevisionSource) -> None:
        self._source = source

    def resolve_revision_date(self, ref: str = "HEAD") -> str:
        """``YYYYMMDD`` UTC date of the commit at *ref*."""
        return utc_date_stamp(self._source.query(ref).iso_timestamp)

    def resolve_short_hash(self, ref: str = "HEAD") -> str:
        """First :data:`SHORT_HASH_LENGTH` characters of the commit hash."""
        return self._shorten(self._source.query(ref).revision_hash, ref)

    def host_revision(self, ref: str = "HEAD") -> HostRevisionInfo:
        """Date and short hash of *ref* from a single query."""
        record = self._source.query(ref)
        info = HostRevisionInfo(
            revision_hash=self._shorten(record.revision_hash, ref),
            revision_date=utc_date_stamp(record.iso_timestamp),
        )
        logger.info(
            "Host revision %s: %s (committed %s)",
            ref,
            info.revision_hash,
            record.iso_timestamp,
        )
        return info

    @staticmethod
    def _shorten(revision_hash: str, ref: str) -> str:
        if len(revision_hash) < SHORT_HASH_LENGTH:
            raise RevisionNotFound(
                f"Revision hash for {ref!r} is shorter than {SHORT_HASH_LENGTH} characters"
            )
        return revision_hash[:SHORT_HASH_LENGTH]
