"""Revision models for the driver artifact and the host checkout."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Calendar date in UTC with no separators, e.g. "20240302".
DATE_STAMP_PATTERN = r"^\d{8}$"

# Revision names end up inside the build id, which is embedded as a C string.
REVISION_TOKEN_PATTERN = r"^[A-Za-z0-9._-]+$"


class RevisionRecord(BaseModel):
    """Raw commit metadata as reported by version control."""

    model_config = ConfigDict(frozen=True)

    revision_hash: str = Field(min_length=1)
    iso_timestamp: str = Field(min_length=1)


class ArtifactMetadata(BaseModel):
    """Revision of a fetched driver build, read from its descriptor JSON.

    The descriptor uses the keys ``revision`` and ``date``; both aliases
    and field names are accepted.  Unknown descriptor keys are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    revision_hash: str = Field(alias="revision", pattern=REVISION_TOKEN_PATTERN)
    revision_date: str = Field(alias="date", pattern=DATE_STAMP_PATTERN)

    @field_validator("revision_date", mode="before")
    @classmethod
    def _date_as_text(cls, v: Any) -> Any:
        # Some descriptors write the date as a bare JSON number.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class HostRevisionInfo(BaseModel):
    """Revision of the enclosing source checkout at invocation time."""

    model_config = ConfigDict(frozen=True)

    revision_hash: str = Field(min_length=1)
    revision_date: str = Field(pattern=DATE_STAMP_PATTERN)
