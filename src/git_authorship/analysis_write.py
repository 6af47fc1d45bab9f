from __future__ import annotations

import csv
import json
from pathlib import Path

from .analysis_aggregate import AuthorTotals, authors_of, unattributed_lines
from .models import RepoAuthorship


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: object) -> None:
    path.write_text(json.dumps(data, indent=2, sort_keys=False), encoding="utf-8")


def repo_to_dict(r: RepoAuthorship) -> dict[str, object]:
    return {
        "name": r.name,
        "path": r.path,
        "since": r.since_iso,
        "until": r.until_iso,
        "files_total": r.files_total,
        "files_reported": len(r.file_results),
        "files_dropped": r.files_absent,
        "files_failed": r.files_failed,
        "cancelled": r.cancelled,
        "warnings": list(r.warnings),
        "errors": list(r.errors),
        "files": [fr.to_dict() for fr in r.file_results],
    }


def write_authors_csv(path: Path, authors: list[AuthorTotals]) -> None:
    file_types = sorted({ft for a in authors for ft in a.lines_by_file_type})
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["author", "display_name", "lines", "files", "binary_files", *[f"lines_{ft}" for ft in file_types]])
        for a in authors:
            writer.writerow(
                [
                    a.name,
                    a.display_name,
                    a.lines,
                    a.files,
                    a.binary_files,
                    *[a.lines_by_file_type.get(ft, 0) for ft in file_types],
                ]
            )


def write_files_csv(path: Path, repos: list[RepoAuthorship]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["repo", "path", "kind", "file_type", "line_count", "unattributed_lines", "exceeds_file_limit", "authors"])
        for r in repos:
            for fr in r.file_results:
                writer.writerow(
                    [
                        r.name,
                        fr.path,
                        fr.kind,
                        fr.file_type,
                        fr.line_count,
                        unattributed_lines(fr),
                        str(fr.exceeds_file_limit),
                        ";".join(f"{a.name}={fr.author_contributions[a]}" for a in authors_of(fr)),
                    ]
                )
