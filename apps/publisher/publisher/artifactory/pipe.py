"""Artifactory publish step.

Flow:
1. Preflight gate - skip cleanly when instances are incomplete or
   publishing is disabled.
2. For each build (sequentially), expand its targets and start one unit
   of work per target. At most `ctx.parallelism` units run at a time.
3. A unit resolves the target's binary, opens it once, and uploads it to
   every instance in configuration order.
4. Per-instance failures (bad template, directory instead of a file,
   transport, API, decode, cancellation) become failed UploadOutcome
   entries and the unit moves on. Only a missing/ambiguous binary or an
   unreadable file is fatal: sibling units still run to completion, then
   the first fatal error is raised. Unexpected exceptions are handled the
   same way.

The run therefore succeeds even when every single upload failed; those
failures are visible in the logs and in the returned PublishReport.
"""

import asyncio
import logging
import os
import stat
from typing import BinaryIO, Optional

import httpx

from publisher.artifactory.client import upload_binary
from publisher.artifactory.paths import resolve_upload_path
from publisher.artifactory.preflight import check_preflight
from publisher.artifactory.types import PlannedUpload, PublishReport, UploadOutcome
from publisher.buildtarget import BuildTarget, enumerate_targets
from publisher.core.config import BuildConfig
from publisher.core.context import PublishContext
from publisher.core.errors import (
    FATAL_ERRORS,
    InvalidSourceError,
    ResourceError,
    TemplateError,
    UploadError,
)
from publisher.core.types import Binary, RepositoryInstance

logger = logging.getLogger(__name__)

# Per-request timeout when the caller does not pass one
DEFAULT_UPLOAD_TIMEOUT = 300.0


class ArtifactoryPipe:
    """Publishes every built binary to every configured instance."""

    description = "Releasing to Artifactory"

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_UPLOAD_TIMEOUT,
    ):
        self._transport = transport
        self._timeout = timeout

    async def run(self, ctx: PublishContext) -> PublishReport:
        """Run the publish step. Raises only ConfigurationDefect / ResourceError."""
        reason = check_preflight(ctx)
        if reason is not None:
            logger.info("Skipping Artifactory: %s", reason)
            return PublishReport(skipped=reason)

        report = PublishReport()
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self._timeout,
        ) as client:
            for build in ctx.builds:
                report.outcomes.extend(await self._run_build(ctx, client, build))

        logger.info(
            "Artifactory: %d/%d uploads succeeded",
            report.succeeded, len(report.outcomes),
        )
        return report

    def plan(self, ctx: PublishContext) -> list[PlannedUpload]:
        """Resolve every destination without opening files or the network."""
        planned: list[PlannedUpload] = []
        for build in ctx.builds:
            for target in enumerate_targets(build):
                binary = ctx.binaries.lookup(target, build.binary or None)
                for instance in ctx.instances:
                    try:
                        url = resolve_upload_path(
                            instance.target, target, binary.name,
                            ctx.metadata, ctx.replacements,
                        )
                    except TemplateError as exc:
                        planned.append(PlannedUpload(target, instance.index, error=exc))
                        continue
                    planned.append(PlannedUpload(target, instance.index, url=url))
        return planned

    async def _run_build(
        self,
        ctx: PublishContext,
        client: httpx.AsyncClient,
        build: BuildConfig,
    ) -> list[UploadOutcome]:
        semaphore = asyncio.Semaphore(ctx.parallelism)
        fatal: list[Exception] = []

        async def unit(target: BuildTarget) -> list[UploadOutcome]:
            async with semaphore:
                try:
                    return await self._publish_target(ctx, client, build, target)
                except FATAL_ERRORS as exc:
                    # Recorded in completion order; siblings keep running.
                    fatal.append(exc)
                    return []
                except Exception as exc:
                    logger.exception(
                        "Artifactory: unexpected error while publishing %s", target.pretty,
                    )
                    fatal.append(exc)
                    return []

        targets = enumerate_targets(build)
        results = await asyncio.gather(*(unit(target) for target in targets))

        if fatal:
            raise fatal[0]
        return [outcome for outcomes in results for outcome in outcomes]

    async def _publish_target(
        self,
        ctx: PublishContext,
        client: httpx.AsyncClient,
        build: BuildConfig,
        target: BuildTarget,
    ) -> list[UploadOutcome]:
        binary = ctx.binaries.lookup(target, build.binary or None)

        try:
            info = os.stat(binary.path)
        except OSError as exc:
            raise ResourceError(binary.path, exc) from exc
        if stat.S_ISDIR(info.st_mode):
            return [
                self._reject_source(target, binary, instance)
                for instance in ctx.instances
            ]

        try:
            handle = open(binary.path, "rb")
        except OSError as exc:
            raise ResourceError(binary.path, exc) from exc

        outcomes: list[UploadOutcome] = []
        with handle:
            for instance in ctx.instances:
                outcomes.append(
                    await self._publish_to_instance(ctx, client, target, binary, handle, instance)
                )
        return outcomes

    def _reject_source(
        self,
        target: BuildTarget,
        binary: Binary,
        instance: RepositoryInstance,
    ) -> UploadOutcome:
        """Record a failed upload for a binary path that is a directory."""
        outcome = UploadOutcome(target=target, instance_index=instance.index)
        outcome.error = InvalidSourceError(
            f"the asset to upload can't be a directory: {binary.path}"
        )
        logger.error(
            "Artifactory: upload to artifactory %d failed: %s",
            instance.index, outcome.error,
            extra={"target": target.pretty},
        )
        return outcome

    async def _publish_to_instance(
        self,
        ctx: PublishContext,
        client: httpx.AsyncClient,
        target: BuildTarget,
        binary: Binary,
        handle: BinaryIO,
        instance: RepositoryInstance,
    ) -> UploadOutcome:
        outcome = UploadOutcome(target=target, instance_index=instance.index)

        try:
            outcome.url = resolve_upload_path(
                instance.target, target, binary.name, ctx.metadata, ctx.replacements,
            )
        except TemplateError as exc:
            # The next instance's template may still be fine.
            logger.error(
                "Artifactory: error while building the target name for artifactory %d: %s",
                instance.index, exc,
            )
            outcome.error = exc
            return outcome

        try:
            response = await upload_binary(
                ctx, client, outcome.url, instance.username, instance.secret, handle,
            )
        except UploadError as exc:
            outcome.error = exc
            outcome.status_code = exc.status_code
            if exc.status_code is not None:
                logger.error(
                    "Artifactory: upload to target %s failed (HTTP status: %d): %s",
                    outcome.url, exc.status_code, exc,
                    extra={"target": target.pretty, "status": exc.status_code},
                )
            else:
                logger.error(
                    "Artifactory: upload to target %s failed: %s",
                    outcome.url, exc,
                    extra={"target": target.pretty},
                )
            return outcome

        outcome.succeeded = True
        outcome.download_uri = response.download_uri
        outcome.checksums = response.checksums
        logger.info(
            "Artifactory: uploaded %s (%s)",
            response.download_uri, target.pretty,
            extra={"uri": response.download_uri, "target": target.pretty},
        )
        return outcome
