from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path

from .analysis_blame import condense_line_porcelain
from .models import split_git_lines

# `git hash-object -t tree /dev/null`
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


class GitCommandError(RuntimeError):
    def __init__(self, args: list[str], code: int, stderr: str) -> None:
        self.git_args = list(args)
        self.code = code
        self.stderr = stderr
        super().__init__(f"git {args[0] if args else ''} exited {code}: {stderr.strip()[:500]}")


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    # Bytes in, decoded here: text mode would turn a bare CR inside a blamed line into a newline.
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        timeout=timeout_s,
    )
    return (
        proc.returncode,
        proc.stdout.decode("utf-8", errors="replace"),
        proc.stderr.decode("utf-8", errors="replace"),
    )


def run_git_checked(args: list[str], cwd: Path, timeout_s: int = 300) -> str:
    code, out, err = run_git(args, cwd=cwd, timeout_s=timeout_s)
    if code != 0:
        raise GitCommandError(args, code, err)
    return out


def get_repo_toplevel(candidate: Path) -> Path | None:
    code, out, _ = run_git(["rev-parse", "--show-toplevel"], cwd=candidate)
    if code != 0 or not out.strip():
        return None
    return Path(out.strip()).resolve()


def is_shallow_repo(repo: Path) -> bool:
    code, out, _ = run_git(["rev-parse", "--is-shallow-repository"], cwd=repo)
    return code == 0 and out.strip() == "true"


def list_tracked_files(repo: Path) -> list[str]:
    out = run_git_checked(["ls-files", "-z"], cwd=repo)
    return [p for p in out.split("\0") if p]


def list_binary_files(repo: Path) -> set[str]:
    """Paths git treats as binary at HEAD (numstat prints `-` counts for them)."""
    # -z keeps paths unquoted so they compare equal to `ls-files -z` output.
    code, out, _ = run_git(["diff", "--numstat", "-z", EMPTY_TREE_SHA, "HEAD"], cwd=repo)
    if code != 0:
        return set()
    binary: set[str] = set()
    for record in out.split("\0"):
        parts = record.split("\t", 2)
        if len(parts) < 3:
            continue
        if parts[0] == "-" and parts[1] == "-":
            binary.add(parts[2])
    return binary


def resolve_commits(repo: Path, revs: list[str]) -> list[str]:
    """Expand (possibly abbreviated) hashes to full ones; unknown entries are dropped."""
    out: list[str] = []
    for rev in revs:
        r = rev.strip()
        if not r:
            continue
        code, stdout, _ = run_git(["rev-parse", "--verify", "--quiet", f"{r}^{{commit}}"], cwd=repo)
        if code == 0 and stdout.strip():
            out.append(stdout.strip())
    return out


def _blame_args(path: str, line_limit: int) -> list[str]:
    args = ["blame", "-w", "--line-porcelain"]
    if line_limit > 0:
        args += ["-L", f"1,{line_limit}"]
    return args


def blame_file(repo: Path, path: str, *, line_limit: int = 0) -> str:
    raw = run_git_checked([*_blame_args(path, line_limit), "--", path], cwd=repo)
    return condense_line_porcelain(raw)


def blame_file_with_previous_authors(
    repo: Path,
    path: str,
    ignore_commits: list[str],
    *,
    line_limit: int = 0,
) -> str:
    """
    Blame that looks through renames/copies (-M -C) and skips ignored commits,
    so their lines are credited to the commit that introduced them before.
    """
    args = [*_blame_args(path, line_limit), "-M", "-C"]
    revs = resolve_commits(repo, ignore_commits)
    if not revs:
        return condense_line_porcelain(run_git_checked([*args, "--", path], cwd=repo))

    fd, revs_path = tempfile.mkstemp(prefix="git-authorship-ignore-revs-", suffix=".txt")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("\n".join(revs) + "\n")
        raw = run_git_checked([*args, "--ignore-revs-file", revs_path, "--", path], cwd=repo)
    finally:
        os.unlink(revs_path)
    return condense_line_porcelain(raw)


def log_file_authors(repo: Path, path: str, *, since_iso: str, until_iso: str) -> list[tuple[str, str, str]]:
    """(commit hash, author name, author email) per commit touching `path` in the window."""
    out = run_git_checked(
        [
            "log",
            "--no-merges",
            f"--since={since_iso}",
            f"--until={until_iso}",
            "--format=%H%x09%an%x09%ae",
            "--",
            path,
        ],
        cwd=repo,
    )
    rows: list[tuple[str, str, str]] = []
    for line in split_git_lines(out):
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        rows.append((parts[0].strip(), parts[1], parts[2]))
    return rows
