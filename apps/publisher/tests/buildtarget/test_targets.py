"""Tests for build matrix expansion."""

from publisher.buildtarget import BuildTarget, enumerate_targets
from publisher.buildtarget.targets import is_ignored, is_valid
from publisher.core.config import BuildConfig, IgnoreRule


class TestBuildTarget:
    def test_key_and_pretty(self):
        target = BuildTarget(os="linux", arch="arm", arm="6")
        assert target.key == "linuxarm6"
        assert target.pretty == "linux/arm6"
        assert str(target) == "linuxarm6"

    def test_no_arm_variant(self):
        target = BuildTarget(os="darwin", arch="amd64")
        assert target.key == "darwinamd64"
        assert target.pretty == "darwin/amd64"

    def test_is_hashable(self):
        assert len({BuildTarget("linux", "amd64"), BuildTarget("linux", "amd64")}) == 1


class TestEnumerateTargets:
    def test_crosses_os_and_arch_in_config_order(self):
        build = BuildConfig(goos=["linux", "darwin"], goarch=["amd64", "386"])
        assert enumerate_targets(build) == [
            BuildTarget("linux", "amd64"),
            BuildTarget("linux", "386"),
            BuildTarget("darwin", "amd64"),
            BuildTarget("darwin", "386"),
        ]

    def test_arm_fans_out_per_goarm(self):
        build = BuildConfig(goos=["linux"], goarch=["amd64", "arm"], goarm=["6", "7"])
        assert enumerate_targets(build) == [
            BuildTarget("linux", "amd64"),
            BuildTarget("linux", "arm", "6"),
            BuildTarget("linux", "arm", "7"),
        ]

    def test_goarm_ignored_for_other_arches(self):
        build = BuildConfig(goos=["linux"], goarch=["arm64"], goarm=["6", "7"])
        assert enumerate_targets(build) == [BuildTarget("linux", "arm64")]

    def test_invalid_combinations_are_skipped(self):
        build = BuildConfig(goos=["windows", "darwin"], goarch=["amd64", "ppc64"])
        assert enumerate_targets(build) == [
            BuildTarget("windows", "amd64"),
            BuildTarget("darwin", "amd64"),
        ]

    def test_ignore_rules(self):
        build = BuildConfig(
            goos=["linux", "darwin"],
            goarch=["amd64", "arm"],
            goarm=["6", "7"],
            ignore=[
                IgnoreRule(goos="darwin", goarch="arm"),
                IgnoreRule(goarch="arm", goarm="6"),
            ],
        )
        assert enumerate_targets(build) == [
            BuildTarget("linux", "amd64"),
            BuildTarget("linux", "arm", "7"),
            BuildTarget("darwin", "amd64"),
        ]

    def test_defaults(self):
        assert enumerate_targets(BuildConfig()) == [
            BuildTarget("linux", "amd64"),
            BuildTarget("linux", "386"),
            BuildTarget("darwin", "amd64"),
            BuildTarget("darwin", "386"),
        ]

    def test_deterministic(self):
        build = BuildConfig(goos=["linux", "freebsd"], goarch=["arm", "amd64"], goarm=["7"])
        assert enumerate_targets(build) == enumerate_targets(build)

    def test_empty_matrix(self):
        assert enumerate_targets(BuildConfig(goos=[], goarch=["amd64"])) == []


class TestHelpers:
    def test_is_valid(self):
        assert is_valid(BuildTarget("linux", "mips64le"))
        assert not is_valid(BuildTarget("windows", "arm"))

    def test_empty_rule_matches_everything(self):
        assert is_ignored([IgnoreRule()], BuildTarget("linux", "amd64"))

    def test_rule_must_match_every_set_field(self):
        rules = [IgnoreRule(goos="linux", goarch="386")]
        assert not is_ignored(rules, BuildTarget("linux", "amd64"))
        assert is_ignored(rules, BuildTarget("linux", "386"))
