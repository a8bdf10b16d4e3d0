"""Build target module: the platform matrix a build was produced for.

Public API:
    BuildTarget(os, arch, arm)
    enumerate_targets(build) -> list[BuildTarget]
"""

from publisher.buildtarget.targets import enumerate_targets
from publisher.buildtarget.types import BuildTarget

__all__ = ["BuildTarget", "enumerate_targets"]
