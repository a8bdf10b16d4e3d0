"""Binaries module: hand-off from the build step.

Public API:
    BinaryRegistry - add(target, binary), lookup(target, name)
    load_manifest(path) -> BinaryRegistry
"""

from publisher.binaries.registry import BinaryRegistry, ManifestEntry, load_manifest

__all__ = ["BinaryRegistry", "ManifestEntry", "load_manifest"]
