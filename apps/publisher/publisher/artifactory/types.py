"""Types for the Artifactory publisher.

`ArtifactoryResponse` and `ErrorResponse` mirror the JSON bodies the
deploy endpoint returns. Every field is optional: different Artifactory
versions omit different keys.

`UploadOutcome` is the per (target, instance) result the scheduler folds
into a `PublishReport` instead of letting upload errors unwind.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from publisher.buildtarget.types import BuildTarget
from publisher.core.errors import ArtifactoryError


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: object) -> object:
        # Explicit nulls are treated like absent keys.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ArtifactoryChecksums(_ApiModel):
    sha1: str = ""
    md5: str = ""
    sha256: str = ""


class ArtifactoryResponse(_ApiModel):
    """Body of a successful deploy (HTTP 2xx)."""

    repo: str = ""
    path: str = ""
    created: str = ""
    created_by: str = Field(default="", alias="createdBy")
    download_uri: str = Field(default="", alias="downloadUri")
    mime_type: str = Field(default="", alias="mimeType")
    size: Optional[str | int] = None
    checksums: ArtifactoryChecksums = Field(default_factory=ArtifactoryChecksums)
    original_checksums: ArtifactoryChecksums = Field(
        default_factory=ArtifactoryChecksums, alias="originalChecksums"
    )
    uri: str = ""


class ApiErrorDetail(_ApiModel):
    status: int = 0
    message: str = ""


class ErrorResponse(_ApiModel):
    """Body of a failed request (HTTP outside 2xx), when it has one."""

    errors: list[ApiErrorDetail] = Field(default_factory=list)


@dataclass
class UploadOutcome:
    """Result of uploading one binary to one instance."""

    target: BuildTarget
    instance_index: int
    url: str = ""
    succeeded: bool = False
    download_uri: str = ""
    checksums: Optional[ArtifactoryChecksums] = None
    status_code: Optional[int] = None
    error: Optional[ArtifactoryError] = None

    def to_dict(self) -> dict:
        return {
            "target": self.target.pretty,
            "instance": self.instance_index,
            "url": self.url,
            "succeeded": self.succeeded,
            "download_uri": self.download_uri,
            "checksums": self.checksums.model_dump() if self.checksums else None,
            "status_code": self.status_code,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class PlannedUpload:
    """A resolved destination, computed without any network access."""

    target: BuildTarget
    instance_index: int
    url: str = ""
    error: Optional[ArtifactoryError] = None


@dataclass
class PublishReport:
    """Everything one publish step did.

    `skipped` holds the preflight reason when nothing was attempted.
    """

    skipped: Optional[str] = None
    outcomes: list[UploadOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded)
