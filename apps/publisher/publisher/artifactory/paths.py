"""Destination path resolution.

Turns an instance's destination template into the URL a binary is
PUT to. Pure: no network, no file access, so every combination can be
resolved (and tested) before any upload starts.

Template fields:
  Os, Arch, Arm  - the build target, after display replacements
  Version        - release version (no leading "v")
  Tag            - VCS tag being released
  ProjectName    - project name from the config

The rendered directory always gets exactly one trailing "/" before the
binary name is appended.
"""

from collections.abc import Mapping

from publisher.artifactory.template import Template
from publisher.buildtarget.types import BuildTarget
from publisher.core.types import ReleaseMetadata


def replace(replacements: Mapping[str, str], original: str) -> str:
    """Display label for `original`, or `original` itself when unmapped."""
    return replacements.get(original) or original


def template_data(
    target: BuildTarget,
    metadata: ReleaseMetadata,
    replacements: Mapping[str, str],
) -> dict[str, str]:
    return {
        "Os": replace(replacements, target.os),
        "Arch": replace(replacements, target.arch),
        "Arm": replace(replacements, target.arm),
        "Version": metadata.version,
        "Tag": metadata.tag,
        "ProjectName": metadata.project_name,
    }


def resolve_target_dir(
    destination_template: str,
    target: BuildTarget,
    metadata: ReleaseMetadata,
    replacements: Mapping[str, str],
) -> str:
    """Render the destination template. Raises TemplateError."""
    template = Template(metadata.project_name or "target", destination_template)
    return template.render(template_data(target, metadata, replacements))


def resolve_upload_path(
    destination_template: str,
    target: BuildTarget,
    binary_name: str,
    metadata: ReleaseMetadata,
    replacements: Mapping[str, str],
) -> str:
    """Full upload URL for `binary_name` built for `target`."""
    directory = resolve_target_dir(destination_template, target, metadata, replacements)
    if not directory.endswith("/"):
        directory += "/"
    return directory + binary_name
