"""Artifactory publishing: path templates, deploy client, scheduler.

Public API:
    ArtifactoryPipe(transport, timeout).run(ctx) -> PublishReport
    ArtifactoryPipe.plan(ctx) -> list[PlannedUpload]
    check_preflight(ctx) -> Optional[str]
    resolve_upload_path(template, target, binary_name, metadata, replacements) -> str
    upload_binary(ctx, client, url, username, secret, source) -> ArtifactoryResponse
"""

from publisher.artifactory.client import upload_binary
from publisher.artifactory.paths import resolve_upload_path
from publisher.artifactory.pipe import ArtifactoryPipe
from publisher.artifactory.preflight import check_preflight
from publisher.artifactory.types import (
    ArtifactoryResponse,
    PlannedUpload,
    PublishReport,
    UploadOutcome,
)

__all__ = [
    "ArtifactoryPipe",
    "ArtifactoryResponse",
    "PlannedUpload",
    "PublishReport",
    "UploadOutcome",
    "check_preflight",
    "resolve_upload_path",
    "upload_binary",
]
