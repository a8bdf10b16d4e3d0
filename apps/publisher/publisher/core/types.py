"""Shared value types handed to the publisher by its callers."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RepositoryInstance:
    """One configured Artifactory instance with its resolved secret.

    `target` is the destination template, e.g.
    ``https://art.example.com/artifactory/tools/{{ .Os }}/{{ .Arch }}/``.
    """

    index: int
    target: str
    username: str
    secret: str = field(default="", repr=False)


@dataclass(frozen=True)
class Binary:
    """A built artifact on local disk. The publisher only reads it."""

    name: str
    path: str


@dataclass(frozen=True)
class ReleaseMetadata:
    """Run-wide values available to destination templates."""

    version: str = ""
    tag: str = ""
    project_name: str = ""
