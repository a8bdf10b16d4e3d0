"""Tests for the preflight gate."""

from publisher.artifactory.preflight import (
    SKIP_NOT_CONFIGURED,
    SKIP_PUBLISH_DISABLED,
    check_preflight,
)
from publisher.core.context import PublishContext
from publisher.core.types import ReleaseMetadata


def _ctx(instances, publish=True) -> PublishContext:
    return PublishContext(metadata=ReleaseMetadata(), instances=instances, publish=publish)


class TestCheckPreflight:
    def test_proceeds_when_complete(self, make_instance):
        assert check_preflight(_ctx([make_instance(0), make_instance(1)])) is None

    def test_no_instances(self):
        assert check_preflight(_ctx([])) == SKIP_NOT_CONFIGURED

    def test_no_instances_wins_over_publish_flag(self):
        assert check_preflight(_ctx([], publish=False)) == SKIP_NOT_CONFIGURED

    def test_missing_target(self, make_instance):
        reason = check_preflight(_ctx([make_instance(0), make_instance(1, target="")]))
        assert reason == (
            "artifactory section is not configured properly "
            "(missing target in artifactory 1)"
        )

    def test_missing_username(self, make_instance):
        reason = check_preflight(_ctx([make_instance(0, username="")]))
        assert reason == (
            "artifactory section is not configured properly "
            "(missing username in artifactory 0)"
        )

    def test_missing_secret_cites_target(self, make_instance):
        reason = check_preflight(
            _ctx([make_instance(0, target="https://art/{{ .Os }}/", secret="")])
        )
        assert reason == "missing secret for artifactory 0: https://art/{{ .Os }}/"

    def test_first_incomplete_instance_wins(self, make_instance):
        reason = check_preflight(
            _ctx([make_instance(0, secret=""), make_instance(1, target="")])
        )
        assert "artifactory 0" in reason

    def test_checks_within_instance_in_order(self, make_instance):
        reason = check_preflight(_ctx([make_instance(0, username="", secret="")]))
        assert "missing username" in reason

    def test_publish_disabled(self, make_instance):
        assert check_preflight(_ctx([make_instance(0)], publish=False)) == SKIP_PUBLISH_DISABLED

    def test_incomplete_instance_wins_over_publish_flag(self, make_instance):
        reason = check_preflight(_ctx([make_instance(0, secret="")], publish=False))
        assert reason.startswith("missing secret")
