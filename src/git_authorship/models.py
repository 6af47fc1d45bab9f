from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Union

from .analysis_paths import matches_any_glob

FULL_COMMIT_HASH_LENGTH = 40


@dataclasses.dataclass(frozen=True)
class Author:
    name: str
    display_name: str = dataclasses.field(default="", compare=False)
    ignore_globs: tuple[str, ...] = dataclasses.field(default=(), compare=False)

    @property
    def label(self) -> str:
        return self.display_name or self.name

    def is_ignoring_file(self, path: str) -> bool:
        return matches_any_glob(path, self.ignore_globs)


UNKNOWN_AUTHOR = Author(name="-", display_name="Unknown")


def split_git_lines(text: str) -> list[str]:
    """
    Split text into lines the way git counts them: only LF ends a line and a
    trailing LF does not start another one. Bare CR, form feed and the other
    breaks `str.splitlines` knows stay inside the line.
    """
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return parts


def normalize_commit_hash(value: str) -> str:
    return (value or "").strip().lower()


def is_full_commit_hash(value: str) -> bool:
    if len(value) != FULL_COMMIT_HASH_LENGTH:
        return False
    return all(ch in "0123456789abcdef" for ch in value.lower())


def is_inside_commit_list(commit_hash: str, ignore_list: list[str] | tuple[str, ...]) -> bool:
    """
    True if `commit_hash` equals an entry of `ignore_list` or starts with one.
    Entries may be abbreviated hashes, as git prints them in `--oneline` output.
    """
    h = normalize_commit_hash(commit_hash)
    if not h:
        return False
    for entry in ignore_list:
        e = normalize_commit_hash(entry)
        if e and h.startswith(e):
            return True
    return False


@dataclasses.dataclass
class LineInfo:
    line_number: int  # 1-based
    content: str
    author: Author = UNKNOWN_AUTHOR
    last_modified: dt.datetime | None = None
    tracked: bool = True


@dataclasses.dataclass
class FileInfo:
    path: str
    lines: list[LineInfo] = dataclasses.field(default_factory=list)
    file_type: str = ""
    is_binary: bool = False
    exceeds_file_limit: bool = False

    @classmethod
    def from_content(cls, path: str, content: str, *, line_limit: int = 0) -> FileInfo:
        raw_lines = split_git_lines(content)
        exceeds = line_limit > 0 and len(raw_lines) > line_limit
        if exceeds:
            raw_lines = raw_lines[:line_limit]
        lines = [LineInfo(line_number=i, content=text) for i, text in enumerate(raw_lines, start=1)]
        return cls(path=path, lines=lines, exceeds_file_limit=exceeds)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def is_line_tracked(self, index: int) -> bool:
        return self.lines[index].tracked

    def set_line_author(self, index: int, author: Author) -> None:
        self.lines[index].author = author

    def set_line_last_modified(self, index: int, when: dt.datetime) -> None:
        self.lines[index].last_modified = when


@dataclasses.dataclass(frozen=True)
class LineSnapshot:
    line_number: int
    content: str
    author: Author
    last_modified: dt.datetime | None


def _contributions_dict(contributions: dict[Author, int]) -> dict[str, int]:
    return {a.name: int(contributions[a]) for a in sorted(contributions, key=lambda a: a.name)}


@dataclasses.dataclass(frozen=True)
class TextFileResult:
    path: str
    file_type: str
    lines: tuple[LineSnapshot, ...]
    author_contributions: dict[Author, int]
    exceeds_file_limit: bool = False
    kind: str = dataclasses.field(default="text", init=False)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "kind": self.kind,
            "file_type": self.file_type,
            "line_count": self.line_count,
            "exceeds_file_limit": self.exceeds_file_limit,
            "author_contributions": _contributions_dict(self.author_contributions),
            "lines": [
                {
                    "line_number": ln.line_number,
                    "author": ln.author.name,
                    "last_modified": ln.last_modified.isoformat() if ln.last_modified else None,
                }
                for ln in self.lines
            ],
        }


@dataclasses.dataclass(frozen=True)
class BinaryFileResult:
    path: str
    file_type: str
    author_contributions: dict[Author, int]
    kind: str = dataclasses.field(default="binary", init=False)

    @property
    def line_count(self) -> int:
        return 0

    @property
    def exceeds_file_limit(self) -> bool:
        return False

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "kind": self.kind,
            "file_type": self.file_type,
            "line_count": 0,
            "exceeds_file_limit": False,
            "author_contributions": _contributions_dict(self.author_contributions),
        }


FileResult = Union[TextFileResult, BinaryFileResult]


def make_text_file_result(file_info: FileInfo, author_contributions: dict[Author, int]) -> TextFileResult:
    snapshot = tuple(
        LineSnapshot(
            line_number=ln.line_number,
            content=ln.content,
            author=ln.author,
            last_modified=ln.last_modified,
        )
        for ln in file_info.lines
    )
    return TextFileResult(
        path=file_info.path,
        file_type=file_info.file_type,
        lines=snapshot,
        author_contributions=dict(author_contributions),
        exceeds_file_limit=file_info.exceeds_file_limit,
    )


def make_binary_file_result(file_info: FileInfo, authors: set[Author]) -> BinaryFileResult:
    return BinaryFileResult(
        path=file_info.path,
        file_type=file_info.file_type,
        author_contributions={a: 0 for a in authors},
    )


@dataclasses.dataclass
class RepoAuthorship:
    name: str
    path: str
    since_iso: str
    until_iso: str
    file_results: list[FileResult]
    files_total: int = 0
    files_absent: int = 0
    files_failed: int = 0
    cancelled: bool = False
    warnings: list[str] = dataclasses.field(default_factory=list)
    errors: list[str] = dataclasses.field(default_factory=list)
