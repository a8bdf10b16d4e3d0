"""Command-line entry point for the Artifactory publish step.

    publisher --config .release.yml --binaries dist/binaries.yml \\
        --version 1.4.0 --tag v1.4.0 --parallelism 4

Exit codes:
  0    published, or skipped by the preflight gate
  1    fatal publish error (missing/ambiguous binary, unreadable file)
  2    configuration error
  130  cancelled (deadline or interrupt)

Individual upload failures do not change the exit code; they are logged.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from publisher.artifactory import ArtifactoryPipe, PublishReport
from publisher.binaries import load_manifest
from publisher.core.config import Settings, load_project_config, resolve_instances
from publisher.core.context import PublishContext
from publisher.core.errors import FATAL_ERRORS, ConfigError
from publisher.core.logging import configure_structlog
from publisher.core.types import ReleaseMetadata

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="publisher",
        description="Publish built binaries to Artifactory",
    )
    ap.add_argument("--config", required=True, help="release configuration file (YAML)")
    ap.add_argument("--binaries", required=True, help="binaries manifest from the build step")
    ap.add_argument("--version", required=True, dest="release_version")
    ap.add_argument("--tag", default="")
    ap.add_argument("--parallelism", type=int)
    ap.add_argument("--deadline", type=float, help="cancel the run after N seconds")
    ap.add_argument("--skip-publish", action="store_true")
    ap.add_argument("--dry-run", action="store_true", help="print destinations, upload nothing")
    ap.add_argument("--debug", action="store_true")
    return ap


def build_context(args: argparse.Namespace, settings: Settings) -> PublishContext:
    """Materialize every input the publish step needs. Raises ConfigError."""
    config = load_project_config(args.config)
    registry = load_manifest(args.binaries)

    parallelism = args.parallelism if args.parallelism is not None else settings.parallelism
    if parallelism < 1:
        raise ConfigError(f"--parallelism must be >= 1, got {parallelism}")

    version = args.release_version
    if version.startswith("v"):
        version = version[1:]

    return PublishContext(
        metadata=ReleaseMetadata(
            version=version,
            tag=args.tag or args.release_version,
            project_name=config.project_name,
        ),
        builds=config.builds,
        instances=resolve_instances(
            config.artifactories,
            secret_env_template=settings.secret_env_template,
        ),
        replacements=config.archive.replacements,
        binaries=registry,
        parallelism=parallelism,
        publish=not (args.skip_publish or settings.skip_publish),
    )


async def _publish(pipe: ArtifactoryPipe, ctx: PublishContext, deadline: float) -> PublishReport:
    ctx.start_deadline(deadline)
    try:
        return await pipe.run(ctx)
    finally:
        ctx.stop_deadline()


def _print_plan(pipe: ArtifactoryPipe, ctx: PublishContext) -> int:
    for planned in pipe.plan(ctx):
        if planned.error is not None:
            print(f"{planned.target.pretty}\t[{planned.instance_index}]\tERROR: {planned.error}")
        else:
            print(f"{planned.target.pretty}\t[{planned.instance_index}]\t{planned.url}")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        configure_structlog(debug=args.debug)
        logger.error("Invalid PUBLISHER_* settings: %s", exc)
        return EXIT_CONFIG

    configure_structlog(debug=args.debug or settings.debug)

    try:
        ctx = build_context(args, settings)
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG

    pipe = ArtifactoryPipe(timeout=settings.upload_timeout_seconds)
    deadline = args.deadline if args.deadline is not None else settings.deadline_seconds

    try:
        if args.dry_run:
            return _print_plan(pipe, ctx)
        report = asyncio.run(_publish(pipe, ctx, deadline))
    except FATAL_ERRORS as exc:
        logger.error("%s failed: %s", pipe.description, exc)
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.error("%s interrupted", pipe.description)
        return EXIT_CANCELLED

    if ctx.cancelled:
        logger.error("%s cancelled: %s", pipe.description, ctx.cancel_reason)
        return EXIT_CANCELLED

    if report.skipped is None and report.failed:
        logger.warning(
            "%s finished with %d failed upload(s)", pipe.description, report.failed,
        )
    return EXIT_OK
