from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
import threading
from pathlib import Path

from .analysis_periods import DateWindow, run_type_for_window, slugify
from .analysis_reports import write_reports
from .analysis_repo import analyze_repo
from .analysis_write import ensure_dir
from .config import RepoConfiguration, build_repo_configuration, load_config
from .git import get_repo_toplevel, is_shallow_repo
from .models import RepoAuthorship

logger = logging.getLogger(__name__)


def format_startup_header(
    *,
    repos: list[Path],
    window: DateWindow,
    config_path: Path | None,
    jobs: int,
    find_previous_authors: bool,
    include_last_modified_date: bool,
    output_root: Path,
) -> str:
    lines = [
        "┌──────────────────────────────────────────────────────────────┐",
        "│                        git-authorship                        │",
        "└──────────────────────────────────────────────────────────────┘",
        "",
        "What to expect:",
        f"- Repos: {', '.join(str(r) for r in repos)}",
        f"- Window: {window.since_iso} .. {window.until_iso} (inclusive)",
        f"- Config: {config_path if config_path is not None else '(none)'}",
        f"- Jobs: {jobs}  Previous authors: {'on' if find_previous_authors else 'off'}"
        f"  Last modified dates: {'on' if include_last_modified_date else 'off'}",
        f"- Output: {output_root}/<run-type>/<timestamp>/ (csv/, json/)",
        "- Repositories are read-only: only git blame/log/ls-files are run.",
        "",
    ]
    return "\n".join(lines)


def _configure_repo(args: argparse.Namespace, config: dict, repo: Path) -> RepoConfiguration:
    cfg = build_repo_configuration(
        config,
        repo,
        since=args.since,
        until=args.until,
        timezone=args.timezone,
        find_previous_authors=True if args.find_previous_authors else None,
        include_last_modified_date=True if args.last_modified_date else None,
    )
    if not cfg.shallow_clone and is_shallow_repo(repo):
        cfg.shallow_clone = True
    return cfg


def analyze_repos(configs: list[RepoConfiguration], *, jobs: int, stop: threading.Event) -> list[RepoAuthorship]:
    results: list[RepoAuthorship] = []
    for cfg in configs:
        if stop.is_set():
            break
        print(f"Analyzing {cfg.repo_name} ({cfg.repo_root})...")

        def progress(done: int, total: int) -> None:
            if done % 50 == 0 or done == total:
                print(f"Analyzed {done}/{total} files...")

        r = analyze_repo(cfg, jobs=jobs, stop=stop, on_progress=progress)
        if r.errors:
            print(f"Note: {len(r.errors)} file(s) in {cfg.repo_name} could not be analyzed; see json/ for details.")
        results.append(r)
    results.sort(key=lambda r: r.path)
    return results


def run_analysis(*, args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"Invalid config {args.config}: {e}", file=sys.stderr)
        return 2

    repos: list[Path] = []
    for candidate in args.repo:
        top = get_repo_toplevel(candidate.resolve())
        if top is None:
            print(f"Not a git repository: {candidate}", file=sys.stderr)
            return 2
        if top not in repos:
            repos.append(top)

    try:
        configs = [_configure_repo(args, config, repo) for repo in repos]
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    window = configs[0].window
    output_root = args.output.resolve()
    print(
        format_startup_header(
            repos=repos,
            window=window,
            config_path=args.config if args.config.exists() else None,
            jobs=int(args.jobs),
            find_previous_authors=configs[0].find_previous_authors,
            include_last_modified_date=configs[0].include_last_modified_date,
            output_root=output_root,
        )
    )

    stop = threading.Event()
    try:
        results = analyze_repos(configs, jobs=int(args.jobs), stop=stop)
    except KeyboardInterrupt:
        stop.set()
        print("Interrupted; no report written.", file=sys.stderr)
        return 130

    run_type = slugify(run_type_for_window(window))
    timestamp = dt.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    report_dir = output_root / run_type / timestamp
    ensure_dir(report_dir)
    try:
        (output_root / "latest.txt").write_text(str(report_dir.relative_to(output_root)) + "\n", encoding="utf-8")
    except OSError as e:
        logger.warning("could not update latest.txt: %s", e)

    write_reports(
        report_dir=report_dir,
        window=window,
        results=results,
        find_previous_authors=configs[0].find_previous_authors,
        include_last_modified_date=configs[0].include_last_modified_date,
    )

    reported = sum(len(r.file_results) for r in results)
    failed = sum(r.files_failed for r in results)
    print(f"Reported {reported} files ({failed} failed).")
    print(f"Done. Reports in: {report_dir}")
    return 0
