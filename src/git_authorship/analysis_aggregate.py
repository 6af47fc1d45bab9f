from __future__ import annotations

import dataclasses
from collections import defaultdict

from .models import Author, FileResult, RepoAuthorship


@dataclasses.dataclass
class AuthorTotals:
    name: str = ""
    display_name: str = ""
    lines: int = 0
    files: int = 0
    binary_files: int = 0
    lines_by_file_type: dict[str, int] = dataclasses.field(default_factory=dict)


def add_file_result(totals: dict[str, AuthorTotals], fr: FileResult) -> None:
    for author, count in fr.author_contributions.items():
        t = totals.get(author.name)
        if t is None:
            t = AuthorTotals(name=author.name, display_name=author.label)
            totals[author.name] = t
        if fr.kind == "binary":
            t.binary_files += 1
            continue
        t.files += 1
        t.lines += int(count)
        t.lines_by_file_type[fr.file_type] = t.lines_by_file_type.get(fr.file_type, 0) + int(count)


def aggregate_authors(repos: list[RepoAuthorship]) -> list[AuthorTotals]:
    totals: dict[str, AuthorTotals] = {}
    for r in repos:
        for fr in r.file_results:
            add_file_result(totals, fr)
    return sorted(totals.values(), key=lambda t: (-t.lines, t.name))


def aggregate_file_types(repos: list[RepoAuthorship]) -> dict[str, dict[str, int]]:
    agg: dict[str, dict[str, int]] = defaultdict(lambda: {"files": 0, "lines": 0, "attributed_lines": 0})
    for r in repos:
        for fr in r.file_results:
            st = agg[fr.file_type]
            st["files"] += 1
            st["lines"] += fr.line_count
            st["attributed_lines"] += sum(int(v) for v in fr.author_contributions.values())
    return {k: agg[k] for k in sorted(agg, key=lambda k: (-agg[k]["lines"], k))}


def unattributed_lines(fr: FileResult) -> int:
    """Lines credited to nobody reported: unknown or outside the author list."""
    return fr.line_count - sum(int(v) for v in fr.author_contributions.values())


def authors_of(fr: FileResult) -> list[Author]:
    return sorted(fr.author_contributions, key=lambda a: (-fr.author_contributions[a], a.name))
