from __future__ import annotations

import logging
from pathlib import Path

from .analysis_annotations import apply_annotations
from .analysis_attribution import attribute_lines
from .analysis_blame import BlameParseError, parse_blame_records
from .config import RepoConfiguration
from .git import blame_file, blame_file_with_previous_authors, log_file_authors
from .models import (
    UNKNOWN_AUTHOR,
    Author,
    BinaryFileResult,
    FileInfo,
    FileResult,
    TextFileResult,
    is_inside_commit_list,
    make_binary_file_result,
    make_text_file_result,
)
from .outcome import Outcome

logger = logging.getLogger(__name__)

MESSAGE_FILE_MISSING = 'Unable to analyze the file located at "{path}" as the file is missing from your system. Skipping this file.'


def _file_exists(config: RepoConfiguration, path: str) -> bool:
    p = Path(config.repo_root) / path
    return p.is_symlink() or p.is_file()


def _is_empty_file(config: RepoConfiguration, path: str) -> bool:
    # lstat: a tracked symlink is analyzed as its link text, not its target.
    return (Path(config.repo_root) / path).lstat().st_size == 0


def get_blame_text(config: RepoConfiguration, file_info: FileInfo) -> str:
    # git rejects -L ranges past the end of the file, so only limit truncated files.
    limit = file_info.line_count if file_info.exceeds_file_limit else 0
    if config.find_previous_authors:
        return blame_file_with_previous_authors(config.repo_root, file_info.path, config.ignore_commits, line_limit=limit)
    return blame_file(config.repo_root, file_info.path, line_limit=limit)


def aggregate_blame_info(config: RepoConfiguration, file_info: FileInfo) -> FileInfo:
    records = parse_blame_records(get_blame_text(config, file_info))
    return attribute_lines(config, file_info, records)


def count_contributions(config: RepoConfiguration, file_info: FileInfo) -> dict[Author, int]:
    counts: dict[Author, int] = {}
    for line in file_info.lines:
        if not config.authors.is_allowed(line.author):
            continue
        counts[line.author] = counts.get(line.author, 0) + 1
    return counts


def generate_text_file_result(config: RepoConfiguration, file_info: FileInfo) -> TextFileResult:
    return make_text_file_result(file_info, count_contributions(config, file_info))


def has_relevant_author(config: RepoConfiguration, file_info: FileInfo) -> bool:
    return any(config.authors.is_allowed(line.author) for line in file_info.lines)


def _log_malformed(path: str, error: Exception) -> None:
    if isinstance(error, BlameParseError):
        logger.warning("Skipping %s: unexpected blame output (%s)", path, error)


def analyze_text_file(config: RepoConfiguration, file_info: FileInfo) -> Outcome[TextFileResult]:
    """
    Attribute every line of a text file and summarise it.

    Absent when the file is missing (logged), empty, or no allowed author
    contributed to it. Failed when git or the blame decoding fails.
    """
    path = file_info.path

    def attribute(fi: FileInfo) -> FileInfo:
        fi.file_type = config.file_type_for(fi.path)
        aggregate_blame_info(config, fi)
        return apply_annotations(fi, config.resolve_author)

    return (
        Outcome.present(file_info)
        .filter(lambda fi: _file_exists(config, fi.path))
        .if_absent(lambda: logger.error(MESSAGE_FILE_MISSING.format(path=path)))
        .filter(lambda fi: not _is_empty_file(config, fi.path) and fi.line_count > 0)
        .map(attribute)
        .if_failed(lambda e: _log_malformed(path, e))
        .filter(lambda fi: has_relevant_author(config, fi))
        .map(lambda fi: generate_text_file_result(config, fi))
    )


def collect_binary_authors(config: RepoConfiguration, path: str) -> set[Author]:
    rows = log_file_authors(
        config.repo_root,
        path,
        since_iso=config.window.since_iso,
        until_iso=config.window.until_iso,
    )
    authors: set[Author] = set()
    for commit_hash, name, email in rows:
        if is_inside_commit_list(commit_hash, config.ignore_commits):
            continue
        author = config.resolve_author(name, email)
        if author == UNKNOWN_AUTHOR or author.is_ignoring_file(path):
            continue
        if config.authors.is_allowed(author):
            authors.add(author)
    return authors


def generate_binary_file_result(config: RepoConfiguration, file_info: FileInfo) -> Outcome[BinaryFileResult]:
    return (
        Outcome.attempt(collect_binary_authors, config, file_info.path)
        .filter(lambda authors: len(authors) > 0)
        .map(lambda authors: make_binary_file_result(file_info, authors))
    )


def analyze_binary_file(config: RepoConfiguration, file_info: FileInfo) -> Outcome[BinaryFileResult]:
    """
    Binary files have no lines to blame; every author who committed to the
    file inside the window is recorded with a zero contribution.
    """
    path = file_info.path

    def classify(fi: FileInfo) -> None:
        fi.file_type = config.file_type_for(fi.path)

    return (
        Outcome.present(file_info)
        .filter(lambda fi: _file_exists(config, fi.path))
        .if_absent(lambda: logger.error(MESSAGE_FILE_MISSING.format(path=path)))
        .if_present(classify)
        .flat_map(lambda fi: generate_binary_file_result(config, fi))
    )


def analyze_file(config: RepoConfiguration, file_info: FileInfo) -> Outcome[FileResult]:
    if file_info.is_binary:
        return analyze_binary_file(config, file_info)
    return analyze_text_file(config, file_info)
