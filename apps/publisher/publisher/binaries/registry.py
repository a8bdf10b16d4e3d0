"""Binaries produced by the build step, indexed by build target.

The build step records one entry per (target, binary). The publisher
looks entries up by `BuildTarget.key` and, when the build declares a
binary name, by that name too. Exactly one entry must match: none means
the build and publish steps are out of sync, more than one means the
publisher cannot tell which file to ship.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from publisher.buildtarget.types import BuildTarget
from publisher.core.errors import AmbiguousBinaryError, ConfigError, MissingBinaryError
from publisher.core.types import Binary

logger = logging.getLogger(__name__)


class BinaryRegistry:
    def __init__(self) -> None:
        self._by_target: dict[str, list[Binary]] = {}

    def add(self, target: BuildTarget, binary: Binary) -> None:
        self._by_target.setdefault(target.key, []).append(binary)

    def lookup(self, target: BuildTarget, name: Optional[str] = None) -> Binary:
        """Return the single binary built for `target`.

        Raises MissingBinaryError when nothing matches and
        AmbiguousBinaryError when several entries do.
        """
        candidates = self._by_target.get(target.key, [])
        if name:
            candidates = [b for b in candidates if b.name == name]

        if not candidates:
            raise MissingBinaryError(target.key, name or "")
        if len(candidates) > 1:
            raise AmbiguousBinaryError(target.key, [b.path for b in candidates])
        return candidates[0]

    def __len__(self) -> int:
        return sum(len(binaries) for binaries in self._by_target.values())


class ManifestEntry(BaseModel):
    """One line of the build step's binaries manifest."""

    model_config = ConfigDict(extra="ignore")

    goos: str
    goarch: str
    goarm: str = ""
    name: str
    path: str

    @field_validator("goarm", mode="before")
    @classmethod
    def stringify_goarm(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v


_MANIFEST_ADAPTER = TypeAdapter(list[ManifestEntry])


def load_manifest(path: Path) -> BinaryRegistry:
    """Build a registry from a YAML (or JSON) manifest file.

    Relative binary paths are resolved against the manifest's directory.
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read binaries manifest {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid binaries manifest {path}: {exc}") from exc

    try:
        entries = _MANIFEST_ADAPTER.validate_python(data or [])
    except ValidationError as exc:
        raise ConfigError(f"invalid binaries manifest {path}: {exc}") from exc

    registry = BinaryRegistry()
    for entry in entries:
        binary_path = Path(entry.path)
        if not binary_path.is_absolute():
            binary_path = path.parent / binary_path
        registry.add(
            BuildTarget(os=entry.goos, arch=entry.goarch, arm=entry.goarm),
            Binary(name=entry.name, path=str(binary_path)),
        )

    logger.info("Loaded %d binaries from %s", len(registry), path)
    return registry
