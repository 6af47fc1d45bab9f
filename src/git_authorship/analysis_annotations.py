"""
`@@author` annotations in the current file content.

    // @@author alice      <- opens a range credited to alice
    ...
    // @@author            <- closes the open range

Marker lines belong to their range. Only one range is open at a time: a
start marker seen while a range is open closes that range on the line before
it, so the last marker encountered wins. A range that is still open at the
end of the file is discarded and its lines keep the attribution derived from
history.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Callable

from .models import Author, FileInfo

logger = logging.getLogger(__name__)

_MARKER_RE = re.compile(
    r"""^\s*
    (?://+|/\*+|\#+|<!--|%+|\{\{!--|--|;+|')   # comment opener
    \s*@@author
    (?:\s+(?P<name>.+?))?
    \s*(?:\*+/|-->|--\}\})?                       # optional closer
    \s*$""",
    re.VERBOSE,
)


@dataclasses.dataclass(frozen=True)
class AnnotationRange:
    name: str
    start: int  # 1-based, inclusive
    end: int  # 1-based, inclusive


def parse_marker(line: str) -> tuple[bool, str]:
    """Return (is_marker, author name); an empty name is a closing marker."""
    m = _MARKER_RE.match(line)
    if m is None:
        return False, ""
    return True, (m.group("name") or "").strip()


def scan_annotations(lines: list[str]) -> list[AnnotationRange]:
    ranges: list[AnnotationRange] = []
    current: tuple[str, int] | None = None
    for line_number, text in enumerate(lines, start=1):
        is_marker, name = parse_marker(text)
        if not is_marker:
            continue
        if current is not None:
            opened_name, opened_at = current
            end = line_number if not name else line_number - 1
            ranges.append(AnnotationRange(name=opened_name, start=opened_at, end=end))
            current = None
        elif not name:
            logger.debug("closing @@author marker without an open range at line %d", line_number)
        if name:
            current = (name, line_number)

    if current is not None:
        logger.debug("unterminated @@author %s marker at line %d; keeping history attribution", *current)
    return ranges


def apply_annotations(file_info: FileInfo, resolve: Callable[[str, str], Author]) -> FileInfo:
    ranges = scan_annotations([ln.content for ln in file_info.lines])
    for r in ranges:
        author = resolve(r.name, "")
        for line in file_info.lines[r.start - 1 : r.end]:
            line.author = author
            line.tracked = True
    return file_info
