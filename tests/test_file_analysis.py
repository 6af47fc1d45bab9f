from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from conftest import FakeGit, porcelain
from git_authorship.analysis_file import analyze_binary_file, analyze_file, analyze_text_file
from git_authorship.analysis_periods import parse_window
from git_authorship.config import RepoConfiguration
from git_authorship.git import GitCommandError
from git_authorship.identity import AuthorConfig, author_entry_from_dict
from git_authorship.models import UNKNOWN_AUTHOR, Author, FileInfo

SINCE_TS = 1735689600  # 2025-01-01T00:00:00Z
MID_TS = 1736899200  # 2025-01-15T00:00:00Z

SHA_X = "1" * 40
SHA_Y = "2" * 40

X = ("X", "x@example.com")
Y = ("Y", "y@example.com")


def _repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    return repo


def _config(repo: Path, **kwargs) -> RepoConfiguration:
    return RepoConfiguration(repo_root=repo, window=parse_window("2025-01-01", "2025-01-31", "UTC"), **kwargs)


def _text_file(repo: Path, contents: list[str], path: str = "src/app.py") -> FileInfo:
    target = repo / path
    target.parent.mkdir(parents=True, exist_ok=True)
    text = "\n".join(contents) + "\n"
    target.write_text(text, encoding="utf-8")
    return FileInfo.from_content(path, text)


def _blame(fake_git: FakeGit, rows: list[tuple[str, tuple[str, str], int]], contents: list[str]) -> None:
    fake_git.set_output("blame", porcelain([(sha, who[0], who[1], ts) for sha, who, ts in rows], contents))


def _line_contents(n: int) -> list[str]:
    return [f"line {i}" for i in range(1, n + 1)]


def test_scenario_all_lines_by_one_author(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = _line_contents(10)
    fi = _text_file(repo, contents)
    _blame(fake_git, [(SHA_X, X, MID_TS)] * 10, contents)

    out = analyze_text_file(_config(repo), fi)

    assert out.is_present
    result = out.value
    assert result.kind == "text"
    assert result.author_contributions == {Author("X"): 10}
    assert result.line_count == 10
    assert result.file_type == "py"


def test_scenario_lines_before_window_are_unknown(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = _line_contents(10)
    fi = _text_file(repo, contents)
    _blame(fake_git, [(SHA_X, X, SINCE_TS - 100)] * 4 + [(SHA_Y, X, MID_TS)] * 6, contents)

    result = analyze_text_file(_config(repo), fi).value

    assert result.author_contributions == {Author("X"): 6}
    assert sum(1 for ln in result.lines if ln.author == UNKNOWN_AUTHOR) == 4
    assert UNKNOWN_AUTHOR not in result.author_contributions


def test_scenario_binary_file_authors_have_zero_weight(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    (repo / "logo.png").write_bytes(b"\x89PNG\x00\x01")
    fake_git.set_output(
        "log",
        f"{SHA_X}\tX\tx@example.com\n{SHA_Y}\tY\ty@example.com\n{'3' * 40}\tX\tx@example.com\n",
    )

    out = analyze_binary_file(_config(repo), FileInfo(path="logo.png", is_binary=True))

    assert out.is_present
    assert out.value.kind == "binary"
    assert out.value.author_contributions == {Author("X"): 0, Author("Y"): 0}
    assert out.value.file_type == "png"
    assert any(c.startswith("log ") and c.endswith("-- logo.png") for c in fake_git.calls())


def test_binary_file_skips_ignored_commits(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    (repo / "logo.png").write_bytes(b"\x00")
    fake_git.set_output("log", f"{SHA_X}\tX\tx@example.com\n{SHA_Y}\tY\ty@example.com\n")

    out = analyze_binary_file(_config(repo, ignore_commits=["2222"]), FileInfo(path="logo.png", is_binary=True))

    assert out.value.author_contributions == {Author("X"): 0}


def test_binary_file_without_history_in_window_is_dropped(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    (repo / "logo.png").write_bytes(b"\x00")
    fake_git.set_output("log", "")

    assert analyze_binary_file(_config(repo), FileInfo(path="logo.png", is_binary=True)).is_absent


def test_scenario_file_by_author_outside_allow_list_is_dropped(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = _line_contents(10)
    fi = _text_file(repo, contents)
    _blame(fake_git, [(SHA_Y, Y, MID_TS)] * 10, contents)
    authors = AuthorConfig([author_entry_from_dict({"name": "X", "emails": ["x@example.com"]})])

    out = analyze_text_file(_config(repo, authors=authors), fi)

    assert out.is_absent


def test_scenario_annotation_reassigns_range(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = _line_contents(10)
    contents[2] = "# @@author Z"
    contents[4] = "# @@author"
    fi = _text_file(repo, contents)
    _blame(fake_git, [(SHA_X, X, MID_TS)] * 10, contents)

    result = analyze_text_file(_config(repo), fi).value

    assert result.author_contributions == {Author("X"): 7, Author("Z"): 3}
    assert [ln.author.name for ln in result.lines[2:5]] == ["Z", "Z", "Z"]


def test_annotation_beats_ignored_commit(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = ["// @@author X", "a", "// @@author", "b"]
    fi = _text_file(repo, contents, path="src/app.js")
    _blame(fake_git, [(SHA_Y, Y, MID_TS)] * 4, contents)

    result = analyze_text_file(_config(repo, ignore_commits=[SHA_Y]), fi).value

    assert result.author_contributions == {Author("X"): 3}


def test_contribution_sum_matches_allowed_lines(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = _line_contents(6)
    fi = _text_file(repo, contents)
    rows = [(SHA_X, X, MID_TS), (SHA_Y, Y, MID_TS), (SHA_X, X, SINCE_TS - 1), (SHA_Y, Y, MID_TS), (SHA_X, X, MID_TS), (SHA_Y, Y, MID_TS)]
    _blame(fake_git, rows, contents)
    authors = AuthorConfig([author_entry_from_dict({"name": "Y", "emails": ["y@example.com"]})])

    result = analyze_text_file(_config(repo, authors=authors), fi).value

    allowed = [ln for ln in result.lines if ln.author == Author("Y")]
    assert sum(result.author_contributions.values()) == len(allowed) == 3


def test_analysis_is_idempotent(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = _line_contents(4)
    _text_file(repo, contents)
    _blame(fake_git, [(SHA_X, X, MID_TS), (SHA_Y, Y, MID_TS)] * 2, contents)
    cfg = _config(repo, include_last_modified_date=True)

    first = analyze_text_file(cfg, FileInfo.from_content("src/app.py", "\n".join(contents))).value
    second = analyze_text_file(cfg, FileInfo.from_content("src/app.py", "\n".join(contents))).value

    assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())


def test_missing_file_is_dropped_and_logged(tmp_path: Path, fake_git: FakeGit, caplog: pytest.LogCaptureFixture) -> None:
    repo = _repo(tmp_path)
    with caplog.at_level(logging.ERROR):
        out = analyze_text_file(_config(repo), FileInfo(path="gone.py"))
    assert out.is_absent
    assert any("gone.py" in r.getMessage() and r.levelno == logging.ERROR for r in caplog.records)
    assert fake_git.calls() == []


def test_empty_file_is_dropped_silently(tmp_path: Path, fake_git: FakeGit, caplog: pytest.LogCaptureFixture) -> None:
    repo = _repo(tmp_path)
    (repo / "empty.py").write_text("", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        out = analyze_text_file(_config(repo), FileInfo.from_content("empty.py", ""))
    assert out.is_absent
    assert caplog.records == []


def test_malformed_blame_fails_the_file(tmp_path: Path, fake_git: FakeGit, caplog: pytest.LogCaptureFixture) -> None:
    repo = _repo(tmp_path)
    fi = _text_file(repo, ["a", "b"])
    fake_git.set_output("blame", f"{SHA_X} 1 1 1\nauthor X\n\ta\n")

    with caplog.at_level(logging.WARNING):
        out = analyze_text_file(_config(repo), fi)

    assert out.is_failed
    assert any("unexpected blame output" in r.getMessage() for r in caplog.records)


def test_git_failure_fails_the_file(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    fi = _text_file(repo, ["a"])
    fake_git.set_output("blame", "", code=128, stderr="fatal: no such path\n")

    out = analyze_text_file(_config(repo), fi)

    assert out.is_failed
    assert isinstance(out.error, GitCommandError)
    assert "128" in str(out.error)


def test_previous_authors_mode_uses_ignore_revs(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = ["a"]
    fi = _text_file(repo, contents)
    _blame(fake_git, [(SHA_X, X, MID_TS)], contents)
    fake_git.set_output("rev-parse", SHA_Y + "\n")

    out = analyze_file(_config(repo, find_previous_authors=True, ignore_commits=["2222"]), fi)

    assert out.value.author_contributions == {Author("X"): 1}
    blame_calls = [c for c in fake_git.calls() if c.startswith("blame")]
    assert len(blame_calls) == 1
    assert "--ignore-revs-file" in blame_calls[0]
    assert "-M" in blame_calls[0].split()


def test_truncated_file_limits_blame_range(tmp_path: Path, fake_git: FakeGit) -> None:
    repo = _repo(tmp_path)
    contents = _line_contents(5)
    _text_file(repo, contents)
    _blame(fake_git, [(SHA_X, X, MID_TS)] * 3, contents[:3])
    fi = FileInfo.from_content("src/app.py", "\n".join(contents), line_limit=3)

    result = analyze_text_file(_config(repo, file_line_limit=3), fi).value

    assert result.exceeds_file_limit
    assert result.author_contributions == {Author("X"): 3}
    assert any("-L 1,3" in c for c in fake_git.calls())
