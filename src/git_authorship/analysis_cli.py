from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from .analysis_run import run_analysis


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Attribute every line of a git repository to its author.")
    parser.add_argument("--repo", type=Path, nargs="+", default=[Path(".")], help="Repositories to analyze.")
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")
    parser.add_argument("--since", type=str, default=None, help="Window start date (YYYY-MM-DD or DD/MM/YYYY), inclusive.")
    parser.add_argument("--until", type=str, default=None, help="Window end date (YYYY-MM-DD or DD/MM/YYYY), inclusive.")
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help="Time zone for the window and dates (UTC, UTC+08, +05:30, or an IANA name).",
    )
    parser.add_argument("--jobs", type=int, default=max(1, min(8, (os.cpu_count() or 4))), help="Parallel git jobs.")
    parser.add_argument(
        "--find-previous-authors",
        action="store_true",
        help="Credit lines of ignored commits to the author before them (follows renames/copies).",
    )
    parser.add_argument("--last-modified-date", action="store_true", help="Record the last modified date of every line.")
    parser.add_argument("--output", type=Path, default=Path("reports"), help="Directory for reports.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser


def main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run_analysis(args=args)
