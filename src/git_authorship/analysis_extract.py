from __future__ import annotations

import os
from pathlib import Path

from .analysis_paths import file_format_included, matches_any_glob, normalize_repo_path
from .config import RepoConfiguration
from .git import list_binary_files, list_tracked_files
from .models import FileInfo


def read_file_text(path: Path) -> str:
    """
    File content as git sees it. A symlink is its target path, which is what
    git stores and blames; bytes are decoded without newline translation.
    """
    if path.is_symlink():
        return os.readlink(path)
    if not path.is_file():
        return ""
    return path.read_bytes().decode("utf-8", errors="replace")


def load_file_info(config: RepoConfiguration, relative_path: str, is_binary: bool = False) -> FileInfo:
    """Build the FileInfo for one path; a missing file yields a FileInfo without lines."""
    path = normalize_repo_path(relative_path)
    if is_binary:
        return FileInfo(path=path, is_binary=True)
    content = read_file_text(Path(config.repo_root) / path)
    return FileInfo.from_content(path, content, line_limit=config.file_line_limit)


def select_paths(config: RepoConfiguration, paths: list[str]) -> list[str]:
    out: list[str] = []
    for raw in paths:
        p = normalize_repo_path(raw)
        if not p:
            continue
        if matches_any_glob(p, config.ignore_globs):
            continue
        if not file_format_included(p, config.file_formats):
            continue
        out.append(p)
    return sorted(set(out))


def discover_files(config: RepoConfiguration) -> list[tuple[str, bool]]:
    """(path, is_binary) for every tracked file selected for analysis, sorted by path."""
    paths = select_paths(config, list_tracked_files(config.repo_root))
    binary = list_binary_files(config.repo_root)
    return [(p, p in binary) for p in paths]
