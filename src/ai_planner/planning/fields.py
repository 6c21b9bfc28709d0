"""Line-by-line field extraction for a single module block.

A block body is read with an explicit cursor that remembers which labelled field
the previous lines belonged to. `step` is the whole transition function: given the
current cursor, one stripped line, and the fields gathered so far, it updates the
fields and returns the next cursor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Tuple

PROVISIONAL_OBJECTIVES_MIN_CHARS = 10

_FIELD_HEADER_RE = re.compile(
    r"^[\s*_\-•]*(?P<label>objectives?|estimated\s+time|time|prerequisites?)[\s*_]*:(?P<rest>.*)$",
    re.IGNORECASE,
)
_HOURS_RE = re.compile(r"(?<![\d.\-–—])(\d+)(?!\.\d)\s*(?:hour|h\b)", re.IGNORECASE)
_LONG_HOURS_RE = re.compile(r"(?<![\d.\-–—])(\d+)(?!\.\d)\s*hour", re.IGNORECASE)
_RANGE_RE = re.compile(
    r"\d\s*(?:-|–|—|to)\s*\d+(?:\.\d+)?\s*(?:hour|h\b)", re.IGNORECASE
)


class FieldCursor(str, Enum):
    NONE = "none"
    OBJECTIVES = "objectives"
    TIME = "time"
    PREREQUISITES = "prerequisites"


@dataclass
class BlockFields:
    """Raw values gathered from one block before normalization."""

    objectives: str = ""
    objectives_labelled: bool = False
    hours: Optional[int] = None
    prerequisites: str = ""


def _strip_markup(text: str) -> str:
    return text.strip().strip("*_").strip()


def is_none_marker(text: str) -> bool:
    """True for the literal 'none' in any case, ignoring emphasis and a trailing period."""
    return _strip_markup(text).rstrip(".").strip().lower() == "none"


def extract_hours(text: str, *, allow_short_unit: bool = True) -> Optional[int]:
    """Return the first whole number of hours stated in `text`.

    Ranges ("2-3 hours", "2 to 3 hours") and decimals ("2.5 hours") are not whole
    numbers and yield None rather than a guess.
    """
    if _RANGE_RE.search(text):
        return None
    pattern = _HOURS_RE if allow_short_unit else _LONG_HOURS_RE
    match = pattern.search(text)
    return int(match.group(1)) if match else None


def read_field_header(line: str) -> Optional[Tuple[FieldCursor, str]]:
    """Classify `line` as a field label, returning the field and its same-line text."""
    match = _FIELD_HEADER_RE.match(line)
    if not match:
        return None
    label = re.sub(r"\s+", " ", match.group("label").lower())
    if label.startswith("objective"):
        cursor = FieldCursor.OBJECTIVES
    elif label.startswith("prerequisite"):
        cursor = FieldCursor.PREREQUISITES
    else:
        cursor = FieldCursor.TIME
    return cursor, _strip_markup(match.group("rest"))


def _append(current: str, addition: str) -> str:
    return f"{current} {addition}" if current else addition


def _open_field(cursor: FieldCursor, rest: str, fields: BlockFields) -> None:
    if cursor is FieldCursor.OBJECTIVES:
        # A label always displaces a provisional (unlabelled) value.
        if rest or not fields.objectives_labelled:
            fields.objectives = rest
        fields.objectives_labelled = True
    elif cursor is FieldCursor.TIME:
        hours = extract_hours(rest)
        if hours is not None:
            fields.hours = hours
    elif cursor is FieldCursor.PREREQUISITES:
        if rest and not is_none_marker(rest):
            fields.prerequisites = rest


def _continue_none(line: str, fields: BlockFields) -> None:
    if not fields.objectives and len(line) > PROVISIONAL_OBJECTIVES_MIN_CHARS:
        fields.objectives = _strip_markup(line)


def _continue_objectives(line: str, fields: BlockFields) -> None:
    fields.objectives = _append(fields.objectives, _strip_markup(line))


def _continue_time(line: str, fields: BlockFields) -> None:
    hours = extract_hours(line, allow_short_unit=False)
    if hours is not None:
        fields.hours = hours


def _continue_prerequisites(line: str, fields: BlockFields) -> None:
    if not is_none_marker(line):
        fields.prerequisites = _append(fields.prerequisites, _strip_markup(line))


_CONTINUATIONS: Dict[FieldCursor, Callable[[str, BlockFields], None]] = {
    FieldCursor.NONE: _continue_none,
    FieldCursor.OBJECTIVES: _continue_objectives,
    FieldCursor.TIME: _continue_time,
    FieldCursor.PREREQUISITES: _continue_prerequisites,
}


def step(cursor: FieldCursor, line: str, fields: BlockFields) -> FieldCursor:
    """Consume one non-empty, stripped body line and return the next cursor."""
    header = read_field_header(line)
    if header is not None:
        next_cursor, rest = header
        _open_field(next_cursor, rest, fields)
        return next_cursor
    _CONTINUATIONS[cursor](line, fields)
    return cursor


def extract_fields(lines: Iterable[str]) -> BlockFields:
    """Run `step` over the body lines of one block, skipping blank lines."""
    fields = BlockFields()
    cursor = FieldCursor.NONE
    for raw in lines:
        line = raw.strip()
        if line:
            cursor = step(cursor, line, fields)
    return fields
