"""Shared test fixtures for driverforge."""

from __future__ import annotations

import io
import json
import os
import subprocess
import tarfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from driverforge.config import BuildConfig
from driverforge.core.errors import FetchError, RevisionNotFound
from driverforge.models.build import EnvOverlay
from driverforge.models.revisions import RevisionRecord

HOST_HASH = "0123456789abcdef0123456789abcdef01234567"
DRIVER_HASH = "fedcba987654"


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeTransport:
    """Transport returning a canned body (or error) and recording URLs."""

    def __init__(self, body: bytes = b"", error: Exception | None = None) -> None:
        self.body = body
        self.error = error
        self.urls: list[str] = []

    def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.body


class FakeRevisionSource:
    """Revision source backed by a dict of ref -> RevisionRecord."""

    def __init__(self, records: dict[str, RevisionRecord]) -> None:
        self.records = records
        self.queries: list[str] = []

    def query(self, ref: str) -> RevisionRecord:
        self.queries.append(ref)
        try:
            return self.records[ref]
        except KeyError:
            raise RevisionNotFound(f"Cannot resolve revision {ref!r}") from None


class FakeBackend:
    """Build backend recording each invocation and returning a fixed code."""

    program = "make"

    def __init__(self, exit_code: int = 0) -> None:
        self.exit_code = exit_code
        self.calls: list[tuple[Path, list[str], dict[str, str]]] = []

    def invoke(self, working_dir: Path, flags: Sequence[str], env: EnvOverlay) -> int:
        self.calls.append((working_dir, list(flags), dict(env)))
        return self.exit_code


class RecordingRunner:
    """Stand-in for ``run_command`` that records calls instead of spawning."""

    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.calls: list[dict[str, Any]] = []

    def __call__(self, cmd: Sequence[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append({"cmd": list(cmd), **kwargs})
        return subprocess.CompletedProcess(list(cmd), self.returncode, "", "")


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------


def _make_tgz(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def driver_payload() -> bytes:
    """A payload covering every byte value, with an ELF-like header."""
    return b"\x7fELF\x02\x01\x01\x00" + bytes(range(256)) + b"\x00\n\"\\?"


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    """Factory fixture: build a driver .tgz in memory."""

    def _factory(
        platform: str = "linux",
        payload: bytes | None = b"\x7fELF-driver",
        metadata: dict[str, Any] | bytes | None = None,
        extra: dict[str, bytes] | None = None,
    ) -> bytes:
        members: dict[str, bytes] = {}
        if payload is not None:
            members[f"{platform}-recordreplay.so"] = payload
        if metadata is None:
            metadata = {"revision": DRIVER_HASH, "date": "20240115"}
        if isinstance(metadata, dict):
            members[f"{platform}-recordreplay.json"] = json.dumps(metadata).encode()
        elif metadata:
            members[f"{platform}-recordreplay.json"] = metadata
        members.update(extra or {})
        return _make_tgz(members)

    return _factory


# ---------------------------------------------------------------------------
# Fake factories
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_transport() -> Callable[..., FakeTransport]:
    def _factory(body: bytes = b"", error: Exception | None = None) -> FakeTransport:
        return FakeTransport(body, error)

    return _factory


@pytest.fixture
def failing_transport() -> FakeTransport:
    return FakeTransport(error=FetchError("Download failed: HTTP 404"))


@pytest.fixture
def fake_revision_source() -> Callable[..., FakeRevisionSource]:
    def _factory(
        iso_timestamp: str = "2024-01-01T12:00:00+00:00",
        revision_hash: str = HOST_HASH,
        ref: str = "HEAD",
    ) -> FakeRevisionSource:
        return FakeRevisionSource(
            {ref: RevisionRecord(revision_hash=revision_hash, iso_timestamp=iso_timestamp)}
        )

    return _factory


@pytest.fixture
def fake_backend() -> Callable[..., FakeBackend]:
    def _factory(exit_code: int = 0) -> FakeBackend:
        return FakeBackend(exit_code)

    return _factory


@pytest.fixture
def recording_runner() -> Callable[..., RecordingRunner]:
    def _factory(returncode: int = 0) -> RecordingRunner:
        return RecordingRunner(returncode)

    return _factory


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_driverforge_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of BuildConfig."""
    for var in ("DRIVER_REVISION", "CONFIGURE_NODE"):
        monkeypatch.delenv(var, raising=False)
    for var in list(os.environ):
        if var.startswith("DRIVERFORGE_"):
            monkeypatch.delenv(var, raising=False)


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    """A throwaway node source tree."""
    root = tmp_path / "node"
    (root / "src").mkdir(parents=True)
    return root


@pytest.fixture
def build_config(source_root: Path, tmp_path: Path) -> BuildConfig:
    """BuildConfig rooted in a temp source tree, with a separate work dir."""
    return BuildConfig(
        source_root=source_root,
        work_dir=tmp_path / "work",
        jobs=4,
        download_base_url="https://downloads.example/",
    )
