"""Build matrix expansion.

Expands one build configuration into the ordered list of targets that
the build step actually produced binaries for:

1. Cross every goos with every goarch. ``arm`` fans out once per goarm
   value; every other arch yields a single target with an empty arm.
2. Drop combinations the Go toolchain cannot build (`VALID_TARGETS`).
3. Drop combinations matched by one of the build's ignore rules.

Order follows the configuration lists, so logs are reproducible.
"""

import logging

from publisher.buildtarget.types import BuildTarget
from publisher.core.config import BuildConfig, IgnoreRule

logger = logging.getLogger(__name__)

# os+arch pairs from `go tool dist list` supported by the build step
VALID_TARGETS = frozenset({
    "androidarm",
    "darwin386",
    "darwinamd64",
    "darwinarm",
    "darwinarm64",
    "dragonflyamd64",
    "freebsd386",
    "freebsdamd64",
    "freebsdarm",
    "linux386",
    "linuxamd64",
    "linuxarm",
    "linuxarm64",
    "linuxppc64",
    "linuxppc64le",
    "linuxmips",
    "linuxmipsle",
    "linuxmips64",
    "linuxmips64le",
    "netbsd386",
    "netbsdamd64",
    "netbsdarm",
    "openbsd386",
    "openbsdamd64",
    "openbsdarm",
    "plan9386",
    "plan9amd64",
    "solarisamd64",
    "windows386",
    "windowsamd64",
})


def enumerate_targets(build: BuildConfig) -> list[BuildTarget]:
    """Return every target built for `build`, in configuration order."""
    targets: list[BuildTarget] = []
    for target in _matrix(build):
        if not is_valid(target):
            logger.warning("Skipped invalid build target %s", target.pretty)
            continue
        if is_ignored(build.ignore, target):
            logger.info("Skipped ignored build target %s", target.pretty)
            continue
        targets.append(target)
    return targets


def is_valid(target: BuildTarget) -> bool:
    return f"{target.os}{target.arch}" in VALID_TARGETS


def is_ignored(rules: list[IgnoreRule], target: BuildTarget) -> bool:
    """True if any rule matches. A rule field left empty matches anything."""
    for rule in rules:
        if rule.goos and rule.goos != target.os:
            continue
        if rule.goarch and rule.goarch != target.arch:
            continue
        if rule.goarm and rule.goarm != target.arm:
            continue
        return True
    return False


def _matrix(build: BuildConfig) -> list[BuildTarget]:
    targets: list[BuildTarget] = []
    for goos in build.goos:
        for goarch in build.goarch:
            if goarch == "arm":
                for goarm in build.goarm:
                    targets.append(BuildTarget(os=goos, arch=goarch, arm=goarm))
                continue
            targets.append(BuildTarget(os=goos, arch=goarch))
    return targets
