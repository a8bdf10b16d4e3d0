"""Preflight gate for the Artifactory publish step.

Checks run in order and the first failing one wins:
  1. at least one instance is configured
  2. each instance has a destination target
  3. each instance has a username
  4. each instance has a secret
  5. publishing was not disabled by the operator

A failed check is a skip, not an error: the step is abandoned without
opening any file or touching the network.
"""

from typing import Optional

from publisher.core.context import PublishContext

SKIP_NOT_CONFIGURED = "artifactory section is not configured"
SKIP_PUBLISH_DISABLED = "--skip-publish is set"


def check_preflight(ctx: PublishContext) -> Optional[str]:
    """Return the skip reason, or None when the step should proceed."""
    if not ctx.instances:
        return SKIP_NOT_CONFIGURED

    for i, instance in enumerate(ctx.instances):
        if not instance.target:
            return (
                "artifactory section is not configured properly "
                f"(missing target in artifactory {i})"
            )
        if not instance.username:
            return (
                "artifactory section is not configured properly "
                f"(missing username in artifactory {i})"
            )
        if not instance.secret:
            return f"missing secret for artifactory {i}: {instance.target}"

    if not ctx.publish:
        return SKIP_PUBLISH_DISABLED

    return None
