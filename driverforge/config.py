"""Run configuration: env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
DRIVERFORGE_* environment variables.  The two knobs inherited from the
node build script keep their historical names:

    DRIVER_REVISION   fetch a specific driver build instead of the latest
    CONFIGURE_NODE    run ./configure before building
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildConfig(BaseSettings):
    """Configuration for one pipeline run.

    Examples
    --------
    Override via environment::

        export DRIVER_REVISION=3f1c2a9d
        export CONFIGURE_NODE=1
        export DRIVERFORGE_JOBS=4
        export DRIVERFORGE_LOG_LEVEL=DEBUG

    Or via .env file::

        DRIVERFORGE_SOURCE_ROOT=/src/node
        DRIVERFORGE_DOWNLOAD_BASE_URL=https://mirror.example/downloads/
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DRIVERFORGE_",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # Layout
    source_root: Path = Path(".")
    work_dir: Path | None = None  # defaults to source_root
    output_path: Path = Path("src/node_record_replay_driver.cc")

    # Driver artifact
    download_base_url: str = "https://static.replay.io/downloads/"
    artifact_stem: str = "recordreplay"
    driver_revision: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DRIVERFORGE_DRIVER_REVISION", "DRIVER_REVISION"),
    )
    fetch_timeout_seconds: float = 300.0

    # Host revision
    host_revision_ref: str = "HEAD"
    git_timeout_seconds: float = 30.0

    # Native build
    configure_node: bool = Field(
        default=False,
        validation_alias=AliasChoices("DRIVERFORGE_CONFIGURE_NODE", "CONFIGURE_NODE"),
    )
    build_out_dir: str = "out"
    build_type: str = "Release"
    jobs: int | None = Field(default=None, gt=0)
    dont_record_var: str = "RECORD_REPLAY_DONT_RECORD"

    # Observability
    log_level: str = "INFO"

    @field_validator("driver_revision", mode="before")
    @classmethod
    def _blank_revision_is_unset(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("configure_node", mode="before")
    @classmethod
    def _any_value_enables_configure(cls, v: Any) -> Any:
        # Like the node build script: any non-empty value turns configure on.
        if isinstance(v, str):
            return bool(v.strip())
        return v

    @property
    def resolved_work_dir(self) -> Path:
        """Directory that receives the archive and its extracted files."""
        return self.work_dir if self.work_dir is not None else self.source_root

    @property
    def resolved_output_path(self) -> Path:
        """Absolute-or-relative path of the generated source file."""
        if self.output_path.is_absolute():
            return self.output_path
        return self.source_root / self.output_path
