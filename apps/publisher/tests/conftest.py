"""Shared fixtures for the publisher test suite.

Binaries are real files under tmp_path. The Artifactory backend is an
`httpx.MockTransport`; no test touches the network.
"""

import json
import logging

import httpx
import pytest

from publisher.binaries import BinaryRegistry
from publisher.buildtarget import BuildTarget, enumerate_targets
from publisher.core.config import BuildConfig
from publisher.core.context import PublishContext
from publisher.core.types import Binary, ReleaseMetadata, RepositoryInstance

TEST_METADATA = ReleaseMetadata(version="1.4.0", tag="v1.4.0", project_name="tool")


def success_response(request: httpx.Request) -> httpx.Response:
    """A 201 the way Artifactory answers a deploy."""
    path = request.url.path
    return httpx.Response(
        201,
        json={
            "repo": "tools",
            "path": path,
            "created": "2026-10-17T10:00:00.000Z",
            "createdBy": "deployer",
            "downloadUri": str(request.url),
            "mimeType": "application/octet-stream",
            "size": str(len(request.content)),
            "checksums": {"sha1": "a" * 40, "md5": "b" * 32, "sha256": "c" * 64},
            "originalChecksums": {"sha256": "c" * 64},
            "uri": str(request.url),
        },
    )


def conflict_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        409,
        content=json.dumps({"errors": [{"status": 409, "message": "conflict"}]}).encode(),
        headers={"Content-Type": "application/json"},
    )


@pytest.fixture
def metadata() -> ReleaseMetadata:
    return TEST_METADATA


@pytest.fixture
def make_instance():
    def _make(index: int = 0, target: str = "https://art.example.com/tools/{{ .Os }}/{{ .Arch }}{{ .Arm }}/",
              username: str = "deployer", secret: str = "s3cret") -> RepositoryInstance:
        return RepositoryInstance(index=index, target=target, username=username, secret=secret)
    return _make


@pytest.fixture
def build_with_binaries(tmp_path):
    """Write one binary file per target of `build` and register it."""

    def _build(build: BuildConfig, content: bytes = b"\x7fELF-binary") -> BinaryRegistry:
        registry = BinaryRegistry()
        name = build.binary or "tool"
        for target in enumerate_targets(build):
            folder = tmp_path / "dist" / target.key
            folder.mkdir(parents=True, exist_ok=True)
            path = folder / name
            path.write_bytes(content)
            registry.add(target, Binary(name=name, path=str(path)))
        return registry

    return _build


@pytest.fixture
def make_context(build_with_binaries):
    def _make(
        build: BuildConfig,
        instances: list[RepositoryInstance],
        parallelism: int = 4,
        publish: bool = True,
        replacements: dict | None = None,
        registry: BinaryRegistry | None = None,
    ) -> PublishContext:
        return PublishContext(
            metadata=TEST_METADATA,
            builds=[build],
            instances=instances,
            replacements=replacements or {},
            binaries=registry if registry is not None else build_with_binaries(build),
            parallelism=parallelism,
            publish=publish,
        )
    return _make


@pytest.fixture
def restore_root_logger():
    """Undo handler/level changes made by configure_structlog()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def linux_target() -> BuildTarget:
    return BuildTarget(os="linux", arch="amd64")


@pytest.fixture
def ok_response():
    """Handler building a successful deploy response for a request."""
    return success_response


@pytest.fixture
def conflict():
    """Handler answering 409 with a structured error body."""
    return conflict_response
