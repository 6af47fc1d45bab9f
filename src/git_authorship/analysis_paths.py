from __future__ import annotations

import fnmatch
from pathlib import Path

DEFAULT_FILE_TYPE = "other"


def normalize_repo_path(path: str) -> str:
    p = path.replace("\\", "/").strip()
    while p.startswith("./"):
        p = p[2:]
    return p


def matches_any_glob(path: str, globs: list[str] | tuple[str, ...]) -> bool:
    p = normalize_repo_path(path)
    for pat in globs:
        if pat and fnmatch.fnmatch(p, pat):
            return True
    return False


def extension_for_path(path: str) -> str:
    base = normalize_repo_path(path).rsplit("/", 1)[-1]
    if base == "Dockerfile" or base.lower().startswith("dockerfile."):
        return "dockerfile"
    if base in ("Makefile", "makefile"):
        return "makefile"
    ext = Path(base).suffix.lower().lstrip(".")
    return ext or DEFAULT_FILE_TYPE


def file_format_included(path: str, file_formats: list[str] | tuple[str, ...]) -> bool:
    if not file_formats:
        return True
    wanted = {f.strip().lower().lstrip(".") for f in file_formats if f.strip()}
    return extension_for_path(path) in wanted


def file_type_for_path(path: str, groups: dict[str, list[str]] | None = None) -> str:
    """
    Classify a path. Configured groups ({type: [globs]}) are tried in order and
    the first matching group wins; otherwise the file extension is the type.
    """
    for file_type, globs in (groups or {}).items():
        if matches_any_glob(path, globs):
            return file_type
    return extension_for_path(path)
