"""Types for the build target module."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BuildTarget:
    """One point in the build matrix: operating system, arch, arm variant.

    `arm` is empty unless `arch` is ``arm``.
    """

    os: str
    arch: str
    arm: str = ""

    @property
    def key(self) -> str:
        """Lookup key used by the binaries registry, e.g. ``linuxarm6``."""
        return f"{self.os}{self.arch}{self.arm}"

    @property
    def pretty(self) -> str:
        """Human-readable form for logs, e.g. ``linux/arm6``."""
        return f"{self.os}/{self.arch}{self.arm}"

    def __str__(self) -> str:
        return self.key
