"""Minimal text templates with Go-style field actions.

Destination templates are written in the syntax release configs already
use elsewhere:

    https://art.example.com/artifactory/tools/{{ .ProjectName }}/{{ .Version }}/{{ .Os }}/

Only field actions (``{{ .Name }}``, whitespace optional) are supported.
``{{-`` / ``-}}`` trim the whitespace before / after the action. Anything
else inside ``{{ }}`` is rejected at parse time, and a field missing from
the data is rejected at render time. Both raise TemplateError.
"""

import re
from collections.abc import Mapping

from publisher.core.errors import TemplateError

_OPEN = "{{"
_CLOSE = "}}"

_FIELD_RE = re.compile(r"\.([A-Za-z_][A-Za-z0-9_]*)")


class Template:
    """A parsed template. Parse once, render against many data records."""

    def __init__(self, name: str, source: str):
        self.name = name
        self.source = source
        self._parts = _parse(name, source)

    @property
    def fields(self) -> list[str]:
        """Field names referenced by the template, in order of appearance."""
        return [value for kind, value in self._parts if kind == "field"]

    def render(self, data: Mapping[str, str]) -> str:
        out: list[str] = []
        for kind, value in self._parts:
            if kind == "text":
                out.append(value)
                continue
            if value not in data:
                raise TemplateError(
                    f"template: {self.name}: can't evaluate field {value}"
                )
            out.append(str(data[value]))
        return "".join(out)


def _parse(name: str, source: str) -> list[tuple[str, str]]:
    parts: list[tuple[str, str]] = []
    pos = 0
    trim_next = False

    while True:
        start = source.find(_OPEN, pos)
        if start == -1:
            text = source[pos:]
            parts.append(("text", text.lstrip() if trim_next else text))
            return parts

        end = source.find(_CLOSE, start + len(_OPEN))
        if end == -1:
            raise TemplateError(f"template: {name}: unclosed action at offset {start}")

        text = source[pos:start]
        if trim_next:
            text = text.lstrip()

        action = source[start + len(_OPEN):end]
        if action.startswith("- "):
            text = text.rstrip()
            action = action[2:]
        trim_next = action.endswith(" -")
        if trim_next:
            action = action[:-2]

        match = _FIELD_RE.fullmatch(action.strip())
        if match is None:
            raise TemplateError(
                f"template: {name}: unsupported action {_OPEN}{action.strip()}{_CLOSE}"
            )

        parts.append(("text", text))
        parts.append(("field", match.group(1)))
        pos = end + len(_CLOSE)
