from __future__ import annotations

import dataclasses
import datetime as dt
import json
from pathlib import Path

from .analysis_paths import file_type_for_path
from .analysis_periods import DateWindow, parse_window
from .identity import AuthorConfig, author_entry_from_dict, matcher_from_values
from .models import Author

DEFAULT_FILE_LINE_LIMIT = 20_000


def load_config(config_path: Path | None) -> dict:
    if config_path is None or not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: expected a JSON object at top level")
    return data


@dataclasses.dataclass
class RepoConfiguration:
    repo_root: Path
    window: DateWindow
    authors: AuthorConfig = dataclasses.field(default_factory=AuthorConfig)
    repo_name: str = ""
    ignore_commits: list[str] = dataclasses.field(default_factory=list)
    ignore_globs: list[str] = dataclasses.field(default_factory=list)
    file_formats: list[str] = dataclasses.field(default_factory=list)
    file_type_groups: dict[str, list[str]] = dataclasses.field(default_factory=dict)
    file_line_limit: int = DEFAULT_FILE_LINE_LIMIT
    shallow_clone: bool = False
    include_last_modified_date: bool = False
    find_previous_authors: bool = False

    def __post_init__(self) -> None:
        if not self.repo_name:
            self.repo_name = self.repo_root.name

    def resolve_author(self, name: str, email: str) -> Author:
        return self.authors.resolve(name, email)

    def file_type_for(self, path: str) -> str:
        return file_type_for_path(path, self.file_type_groups)


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def build_author_config(config: dict) -> AuthorConfig:
    entries = [author_entry_from_dict(raw) for raw in (config.get("authors") or []) if isinstance(raw, dict)]
    ignored = matcher_from_values(_str_list(config.get("ignore_authors")))
    return AuthorConfig(entries, ignored=ignored)


def build_repo_configuration(
    config: dict,
    repo_root: Path,
    *,
    since: str | None = None,
    until: str | None = None,
    timezone: str | None = None,
    find_previous_authors: bool | None = None,
    include_last_modified_date: bool | None = None,
    shallow_clone: bool | None = None,
    today: dt.date | None = None,
) -> RepoConfiguration:
    """Explicit keyword values (CLI flags) win over config file values."""
    window = parse_window(
        since if since is not None else config.get("since"),
        until if until is not None else config.get("until"),
        timezone if timezone is not None else config.get("timezone"),
        today=today,
    )
    groups_raw = config.get("file_type_groups") or {}
    groups = {str(k): _str_list(v) for k, v in groups_raw.items()} if isinstance(groups_raw, dict) else {}

    def flag(explicit: bool | None, key: str) -> bool:
        return bool(explicit) if explicit is not None else bool(config.get(key, False))

    return RepoConfiguration(
        repo_root=repo_root,
        window=window,
        authors=build_author_config(config),
        ignore_commits=_str_list(config.get("ignore_commits")),
        ignore_globs=_str_list(config.get("ignore_globs")),
        file_formats=_str_list(config.get("file_formats")),
        file_type_groups=groups,
        file_line_limit=int(config.get("file_line_limit", DEFAULT_FILE_LINE_LIMIT) or 0),
        shallow_clone=flag(shallow_clone, "shallow_clone"),
        include_last_modified_date=flag(include_last_modified_date, "include_last_modified_date"),
        find_previous_authors=flag(find_previous_authors, "find_previous_authors"),
    )
