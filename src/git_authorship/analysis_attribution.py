from __future__ import annotations

import logging

from .analysis_blame import BlameParseError, BlameRecord
from .config import RepoConfiguration
from .models import UNKNOWN_AUTHOR, Author, FileInfo, is_inside_commit_list

logger = logging.getLogger(__name__)

MESSAGE_SHALLOW_CLONE_LAST_MODIFIED = (
    'Repo {repo} was cloned using shallow cloning. As such, the "last modified date" values may be incorrect.'
)


def is_line_excluded(config: RepoConfiguration, file_info: FileInfo, index: int, record: BlameRecord, author: Author) -> bool:
    if not file_info.is_line_tracked(index):
        return True
    if author.is_ignoring_file(file_info.path):
        return True
    if is_inside_commit_list(record.commit_hash, config.ignore_commits):
        return True
    return not config.window.contains(config.window.local_time(record.author_timestamp))


def attribute_lines(config: RepoConfiguration, file_info: FileInfo, records: list[BlameRecord]) -> FileInfo:
    """
    Set author (and optionally last-modified date) on every line of `file_info`
    from its blame records. Records past the analyzed prefix are ignored;
    fewer records than lines means the blame output does not describe this file.
    """
    if len(records) < file_info.line_count:
        raise BlameParseError(
            f"blame returned {len(records)} records for {file_info.line_count} lines of {file_info.path}"
        )

    stamp_dates = config.include_last_modified_date
    if stamp_dates and config.shallow_clone:
        logger.warning(MESSAGE_SHALLOW_CLONE_LAST_MODIFIED.format(repo=config.repo_name))

    for index in range(file_info.line_count):
        record = records[index]
        if record.is_synthetic:
            file_info.lines[index].tracked = False
        author = config.resolve_author(record.author_name, record.author_email)
        if is_line_excluded(config, file_info, index, record, author):
            author = UNKNOWN_AUTHOR
        if stamp_dates:
            file_info.set_line_last_modified(index, config.window.local_time(record.author_timestamp))
        file_info.set_line_author(index, author)
    return file_info
