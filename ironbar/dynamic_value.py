"""Templates mixing static text, ``{{script}}`` segments and ``#variable`` references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

_NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-"
)


@dataclass(frozen=True)
class StaticSegment:
    """Literal text."""

    text: str


@dataclass(frozen=True)
class ScriptSegment:
    """A script whose output fills this part of the string."""

    cmd: str


@dataclass(frozen=True)
class VariableSegment:
    """A variable whose value fills this part of the string."""

    name: str


Segment = Union[StaticSegment, ScriptSegment, VariableSegment]


def _parse_script(rest: str) -> tuple[ScriptSegment, int]:
    end = rest.find("}}", 2)
    cmd = rest[2:end] if end != -1 else rest[2 : len(rest) - 1]
    return ScriptSegment(cmd), len(cmd) + 4


def _parse_variable(rest: str) -> tuple[VariableSegment, int]:
    length = 1
    while length < len(rest) and rest[length] in _NAME_CHARS:
        length += 1
    return VariableSegment(rest[1:length]), length


def _parse_static(rest: str) -> tuple[StaticSegment, int]:
    length = 0
    while length + 1 < len(rest) and rest[length : length + 2] != "{{" and rest[length] != "#":
        length += 1
    # a trailing lone character is not covered by the pairwise scan above
    if len(rest) == length + 1:
        length += 1
    return StaticSegment(rest[:length]), length


def parse_input(text: str) -> tuple[list[Segment], bool]:
    """Split a template into segments.

    Returns the segments and whether the template is entirely static.
    ``##`` is an escaped ``#``.
    """
    if "{{" not in text and "#" not in text:
        return [StaticSegment(text)], True

    segments: list[Segment] = []
    rest = text
    while rest:
        pair = rest[:2] if len(rest) > 1 else ""
        if pair == "{{":
            segment, skip = _parse_script(rest)
        elif pair == "##":
            segment, skip = StaticSegment("#"), 2
        elif pair.startswith("#"):
            segment, skip = _parse_variable(rest)
        else:
            segment, skip = _parse_static(rest)

        if skip == 0:
            raise RuntimeError(f"template parser made no progress on {rest!r}")

        segments.append(segment)
        rest = rest[skip:]

    return segments, False


def parse_dynamic_bool(text: str) -> Union[ScriptSegment, VariableSegment]:
    """Interpret a boolean source: ``#name`` is a variable, anything else a script."""
    if text.startswith("#"):
        return VariableSegment(text[1:])
    return ScriptSegment(text)


def is_truthy(value: Optional[str]) -> bool:
    """Whether a variable value counts as true: not missing, empty, "0" or "false"."""
    return value is not None and value not in ("", "0", "false")


class DynamicString:
    """A template whose dynamic parts are filled in as values arrive."""

    def __init__(self, template: str) -> None:
        self.template = template
        self.segments, self.is_static = parse_input(template)
        self.parts = [
            segment.text if isinstance(segment, StaticSegment) else ""
            for segment in self.segments
        ]

    def update(self, index: int, value: str) -> str:
        """Replace the text of the segment at ``index`` and return the new string."""
        if not 0 <= index < len(self.parts):
            raise IndexError(f"segment index {index} out of range")
        self.parts[index] = value
        return self.render()

    def render(self) -> str:
        """Return the string as currently filled in."""
        return "".join(self.parts)