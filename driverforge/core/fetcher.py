"""Driver fetch-and-stage.

Downloads the platform's driver archive, unpacks it into the work
directory, and reads two members:

    {platform}-recordreplay.{so|dll}   the driver payload
    {platform}-recordreplay.json       {"revision": ..., "date": "YYYYMMDD"}

The archive, payload file and descriptor are deleted whatever the outcome;
only the in-memory payload and parsed metadata survive.  Failures are
fatal and never retried.
"""

from __future__ import annotations

import json
import logging
import tarfile
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from driverforge.core.errors import ArchiveError, FetchError, UnsupportedPlatform
from driverforge.core.platform_resolver import payload_extension
from driverforge.models.build import FetchedArtifact
from driverforge.models.platform import PlatformTag
from driverforge.models.revisions import ArtifactMetadata

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


@runtime_checkable
class Transport(Protocol):
    """Anything that can turn a URL into bytes."""

    def fetch(self, url: str) -> bytes:
        """Return the body at *url*; raise :class:`FetchError` on failure."""
        ...


class HttpTransport:
    """HTTP(S) transport backed by ``httpx``.

    Parameters
    ----------
    timeout:
        Seconds allowed for the whole download.
    client:
        Optional pre-built client (tests pass one with a mock transport).
    """

    def __init__(self, timeout: float = 300.0, client: httpx.Client | None = None) -> None:
        self.timeout = timeout
        self._client = client

    def fetch(self, url: str) -> bytes:
        logger.info("GET %s", url)
        try:
            if self._client is not None:
                return self._get(self._client, url)
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                return self._get(client, url)
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Download failed: HTTP {exc.response.status_code} for {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Download failed for {url}: {exc}") from exc

    @staticmethod
    def _get(client: httpx.Client, url: str) -> bytes:
        response = client.get(url)
        response.raise_for_status()
        return response.content


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class ArtifactNaming:
    """File names of the driver archive and its members for one platform."""

    def __init__(self, platform: PlatformTag, stem: str = "recordreplay") -> None:
        self.platform = PlatformTag(platform)
        self.stem = stem

    @property
    def base(self) -> str:
        return f"{self.platform.value}-{self.stem}"

    @property
    def archive_name(self) -> str:
        """Local name the archive is saved under."""
        return f"{self.base}.tgz"

    def download_name(self, revision_override: str | None = None) -> str:
        """Remote name to request; pins a driver build when overridden."""
        if revision_override:
            return f"{self.base}-{revision_override}.tgz"
        return self.archive_name

    @property
    def payload_name(self) -> str:
        return f"{self.base}.{payload_extension(self.platform)}"

    @property
    def metadata_name(self) -> str:
        return f"{self.base}.json"


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_archive(archive_path: Path, dest: Path) -> None:
    """Unpack a (gzip) tar archive into *dest*.

    Raises
    ------
    ArchiveError
        If the archive is corrupt, not a tar file, or a member is unsafe.
    """
    logger.info("Extracting %s into %s", archive_path.name, dest)
    try:
        with tarfile.open(archive_path, "r:*") as tar:
            tar.extractall(dest, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise ArchiveError(f"Cannot extract {archive_path.name}: {exc}") from exc


def parse_metadata(raw: bytes, source_name: str) -> ArtifactMetadata:
    """Parse a driver descriptor into :class:`ArtifactMetadata`."""
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ArchiveError(f"Malformed metadata descriptor {source_name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ArchiveError(f"Metadata descriptor {source_name} is not a JSON object")
    try:
        return ArtifactMetadata.model_validate(data)
    except ValidationError as exc:
        raise ArchiveError(f"Invalid metadata descriptor {source_name}: {exc}") from exc


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class ArtifactFetcher:
    """Fetch, unpack and read the driver for one platform.

    Parameters
    ----------
    transport:
        URL-to-bytes collaborator.
    work_dir:
        Directory receiving the archive and its members.  It is exclusive
        to one run; concurrent runs in the same directory are unsupported.
    base_url:
        Prefix the download name is appended to.
    stem:
        Artifact stem used in every file name.
    """

    def __init__(
        self,
        transport: Transport,
        work_dir: Path,
        base_url: str = "https://static.replay.io/downloads/",
        *,
        stem: str = "recordreplay",
    ) -> None:
        self._transport = transport
        self.work_dir = Path(work_dir)
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.stem = stem

    def fetch_artifact(
        self,
        platform: PlatformTag,
        revision_override: str | None = None,
    ) -> FetchedArtifact:
        """Download and stage the driver, returning payload and metadata.

        The returned metadata always comes from the fetched descriptor,
        never from *revision_override*.

        Raises
        ------
        UnsupportedPlatform
            For Windows, which has no end-to-end driver support.
        FetchError
            If the download fails.
        ArchiveError
            If extraction fails or an expected member is missing.
        """
        if platform == PlatformTag.WINDOWS:
            raise UnsupportedPlatform("Driver fetch is not supported on windows")

        naming = ArtifactNaming(platform, self.stem)
        download_name = naming.download_name(revision_override)
        url = f"{self.base_url}{download_name}"

        archive_path = self.work_dir / naming.archive_name
        payload_path = self.work_dir / naming.payload_name
        metadata_path = self.work_dir / naming.metadata_name

        body = self._transport.fetch(url)
        logger.info("Downloaded %s (%d bytes)", download_name, len(body))

        self.work_dir.mkdir(parents=True, exist_ok=True)
        # Only files unpacked from this archive may be read back.
        for path in (payload_path, metadata_path):
            path.unlink(missing_ok=True)
        try:
            archive_path.write_bytes(body)
            extract_archive(archive_path, self.work_dir)
            archive_path.unlink(missing_ok=True)

            if not payload_path.is_file():
                raise ArchiveError(f"{naming.payload_name} missing from {download_name}")
            if not metadata_path.is_file():
                raise ArchiveError(f"{naming.metadata_name} missing from {download_name}")

            payload = payload_path.read_bytes()
            metadata = parse_metadata(metadata_path.read_bytes(), naming.metadata_name)
        finally:
            for path in (archive_path, payload_path, metadata_path):
                path.unlink(missing_ok=True)

        logger.info(
            "Driver revision %s dated %s (%d payload bytes)",
            metadata.revision_hash,
            metadata.revision_date,
            len(payload),
        )
        return FetchedArtifact(payload=payload, metadata=metadata, download_name=download_name)
