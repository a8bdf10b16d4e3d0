"""Configuration for the publisher.

Two layers:
  - `Settings` - run-wide knobs loaded from environment variables
    (prefix ``PUBLISHER_``) or a ``.env`` file via pydantic-settings.
  - `ProjectConfig` - the release configuration file (YAML), validated
    with pydantic. It describes the build matrix, the display
    replacements, and the Artifactory instances to publish to.

Secrets are never part of the YAML file. `resolve_instances()` reads one
environment variable per instance (``ARTIFACTORY_<i>_SECRET`` by default)
and stores the value on the resulting `RepositoryInstance`, so nothing
downstream touches the environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from publisher.core.errors import ConfigError
from publisher.core.types import RepositoryInstance

DEFAULT_SECRET_ENV_TEMPLATE = "ARTIFACTORY_{index}_SECRET"


class Settings(BaseSettings):
    """Run-wide settings loaded from environment variables.

    Every field can be overridden from the command line; the CLI only
    falls back to these values when a flag is not given.
    """

    model_config = SettingsConfigDict(
        env_prefix="PUBLISHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Maximum number of build targets uploading at the same time.
    parallelism: int = Field(default=4, ge=1)

    # Per-request HTTP timeout. Large binaries on slow links need headroom.
    upload_timeout_seconds: float = 300.0

    # Run-wide deadline; 0 disables it.
    deadline_seconds: float = 0.0

    # Name of the env var holding the secret for instance {index}.
    secret_env_template: str = DEFAULT_SECRET_ENV_TEMPLATE

    skip_publish: bool = False

    # Console renderer when true, JSON lines otherwise.
    debug: bool = False

    @field_validator("secret_env_template")
    @classmethod
    def require_index_placeholder(cls, v: str) -> str:
        if "{index}" not in v:
            raise ValueError("secret_env_template must contain '{index}'")
        return v


def get_settings() -> Settings:
    return Settings()


# ---------------------------------------------------------------------------
# Release configuration file
# ---------------------------------------------------------------------------

class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class IgnoreRule(_ConfigModel):
    """A build matrix entry to leave out. Empty fields match anything."""

    goos: str = ""
    goarch: str = ""
    goarm: str = ""

    @field_validator("goarm", mode="before")
    @classmethod
    def stringify_goarm(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v


class BuildConfig(_ConfigModel):
    """One build specification: binary name plus its platform matrix."""

    binary: str = ""
    goos: list[str] = Field(default_factory=lambda: ["linux", "darwin"])
    goarch: list[str] = Field(default_factory=lambda: ["amd64", "386"])
    goarm: list[str] = Field(default_factory=lambda: ["6"])
    ignore: list[IgnoreRule] = Field(default_factory=list)

    @field_validator("goarm", mode="before")
    @classmethod
    def stringify_goarm(cls, v: object) -> object:
        # YAML reads `goarm: [6, 7]` as integers.
        if isinstance(v, list):
            return [str(item) if isinstance(item, int) else item for item in v]
        return v


class ArchiveConfig(_ConfigModel):
    replacements: dict[str, str] = Field(default_factory=dict)


class ArtifactoryConfig(_ConfigModel):
    """One configured Artifactory instance, as written in the file."""

    target: str = ""
    username: str = ""


class ProjectConfig(_ConfigModel):
    project_name: str = ""
    builds: list[BuildConfig] = Field(default_factory=list)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    artifactories: list[ArtifactoryConfig] = Field(default_factory=list)


def load_project_config(path: Path) -> ProjectConfig:
    """Read and validate a release configuration file.

    Raises ConfigError when the file is missing, is not valid YAML, or
    does not match the expected shape. An empty file yields the defaults.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping, got {type(data).__name__}")

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid config {path}: {exc}") from exc


def resolve_instances(
    artifactories: list[ArtifactoryConfig],
    environ: Optional[Mapping[str, str]] = None,
    secret_env_template: str = DEFAULT_SECRET_ENV_TEMPLATE,
) -> list[RepositoryInstance]:
    """Turn configured instances into RepositoryInstance values.

    The secret for instance ``i`` is looked up once here. Missing secrets
    become empty strings; the preflight gate decides what that means.
    """
    if environ is None:
        environ = os.environ

    instances: list[RepositoryInstance] = []
    for index, artifactory in enumerate(artifactories):
        env_name = secret_env_template.format(index=index)
        instances.append(
            RepositoryInstance(
                index=index,
                target=artifactory.target,
                username=artifactory.username,
                secret=environ.get(env_name, ""),
            )
        )
    return instances
