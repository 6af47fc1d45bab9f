"""
Decoding of per-line blame output.

The engine consumes blame text condensed to fixed 5-line records, one record
per source line, in line order:

    <40-hex commit> <orig-line> <final-line> [<group-size>]
    author <name>
    author-mail <<email>>
    author-time <epoch seconds>
    author-tz <+hhmm>

Fields are read at fixed offsets rather than tokenized; `git blame
--line-porcelain` is stable and positional, and large files produce a lot of
output.
"""

from __future__ import annotations

import dataclasses

from .models import FULL_COMMIT_HASH_LENGTH, is_full_commit_hash, split_git_lines

RECORD_SIZE = 5

AUTHOR_PREFIX = "author "
AUTHOR_MAIL_PREFIX = "author-mail "
AUTHOR_TIME_PREFIX = "author-time "
AUTHOR_TZ_PREFIX = "author-tz "

_KEPT_HEADERS = (AUTHOR_PREFIX, AUTHOR_MAIL_PREFIX, AUTHOR_TIME_PREFIX, AUTHOR_TZ_PREFIX)


class BlameParseError(ValueError):
    pass


@dataclasses.dataclass(frozen=True)
class BlameRecord:
    commit_hash: str
    author_name: str
    author_email: str
    author_timestamp: int
    author_tz: str

    @property
    def is_synthetic(self) -> bool:
        """Lines not committed yet blame to the all-zero hash."""
        return set(self.commit_hash) == {"0"}


def _field(lines: list[str], index: int, prefix: str) -> str:
    line = lines[index]
    if not line.startswith(prefix):
        raise BlameParseError(f"line {index + 1}: expected {prefix.strip()!r} field, got {line[:40]!r}")
    return line[len(prefix) :]


def parse_blame_records(text: str) -> list[BlameRecord]:
    lines = split_git_lines(text)
    if len(lines) % RECORD_SIZE != 0:
        raise BlameParseError(f"truncated blame output: {len(lines)} lines is not a multiple of {RECORD_SIZE}")

    records: list[BlameRecord] = []
    for i in range(0, len(lines), RECORD_SIZE):
        commit_hash = lines[i][:FULL_COMMIT_HASH_LENGTH]
        if not is_full_commit_hash(commit_hash):
            raise BlameParseError(f"line {i + 1}: expected a full commit hash, got {lines[i][:50]!r}")
        name = _field(lines, i + 1, AUTHOR_PREFIX)
        email = _field(lines, i + 2, AUTHOR_MAIL_PREFIX).replace("<", "").replace(">", "")
        time_s = _field(lines, i + 3, AUTHOR_TIME_PREFIX)
        tz = _field(lines, i + 4, AUTHOR_TZ_PREFIX)
        try:
            ts = int(time_s.strip())
        except ValueError as e:
            raise BlameParseError(f"line {i + 4}: invalid author-time {time_s!r}") from e
        records.append(
            BlameRecord(
                commit_hash=commit_hash.lower(),
                author_name=name,
                author_email=email,
                author_timestamp=ts,
                author_tz=tz.strip(),
            )
        )
    return records


def condense_line_porcelain(raw: str) -> str:
    """
    Reduce `git blame --line-porcelain` output to the 5-line record format.

    Each porcelain record starts with a commit header line and ends with the
    source line itself prefixed by a tab; only the header and the four author
    fields are kept.
    """
    out: list[str] = []
    expect_header = True
    # Source lines may hold CR or form feeds, so split on LF only.
    for line in split_git_lines(raw):
        if expect_header:
            if line:
                out.append(line)
                expect_header = False
            continue
        if line.startswith("\t"):
            expect_header = True
            continue
        if line.startswith(_KEPT_HEADERS):
            out.append(line)
    return "\n".join(out) + ("\n" if out else "")
