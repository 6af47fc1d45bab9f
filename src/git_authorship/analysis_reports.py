from __future__ import annotations

import dataclasses
import datetime as dt
from pathlib import Path

from .analysis_aggregate import aggregate_authors, aggregate_file_types
from .analysis_periods import DateWindow, slugify
from .analysis_write import ensure_dir, repo_to_dict, write_authors_csv, write_files_csv, write_json
from .models import RepoAuthorship


def write_reports(
    *,
    report_dir: Path,
    window: DateWindow,
    results: list[RepoAuthorship],
    find_previous_authors: bool,
    include_last_modified_date: bool,
) -> None:
    generated_at = dt.datetime.now(tz=dt.timezone.utc).isoformat()

    csv_dir = report_dir / "csv"
    json_dir = report_dir / "json"
    ensure_dir(csv_dir)
    ensure_dir(json_dir)

    authors = aggregate_authors(results)
    used_names: set[str] = set()
    repo_files: list[str] = []
    for r in results:
        base = slugify(r.name)
        name = base
        n = 2
        while name in used_names:
            name = f"{base}-{n}"
            n += 1
        used_names.add(name)
        write_json(json_dir / f"{name}.json", repo_to_dict(r))
        repo_files.append(f"json/{name}.json")

    write_json(
        json_dir / "summary.json",
        {
            "generated_at": generated_at,
            "since": window.since_iso,
            "until": window.until_iso,
            "find_previous_authors": find_previous_authors,
            "include_last_modified_date": include_last_modified_date,
            "repos": repo_files,
            "authors": [dataclasses.asdict(a) for a in authors],
            "file_types": aggregate_file_types(results),
            "errors": sum(len(r.errors) for r in results),
        },
    )
    write_authors_csv(csv_dir / "authors.csv", authors)
    write_files_csv(csv_dir / "files.csv", results)
