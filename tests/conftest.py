from __future__ import annotations

import os
from pathlib import Path

import pytest

FAKE_GIT = "\n".join(
    [
        "#!/usr/bin/env python3",
        "import os",
        "import sys",
        "from pathlib import Path",
        "",
        "def main() -> int:",
        "    d = Path(os.environ['FAKE_GIT_DIR'])",
        "    cmd = sys.argv[1] if len(sys.argv) > 1 else ''",
        "    (d / 'calls.txt').open('a', encoding='utf-8').write(' '.join(sys.argv[1:]) + '\\n')",
        "    out = d / f'{cmd}.out'",
        "    if out.exists():",
        "        sys.stdout.buffer.write(out.read_bytes())",
        "    err = d / f'{cmd}.err'",
        "    if err.exists():",
        "        sys.stderr.buffer.write(err.read_bytes())",
        "    code = d / f'{cmd}.code'",
        "    return int(code.read_text().strip()) if code.exists() else 0",
        "",
        "if __name__ == '__main__':",
        "    raise SystemExit(main())",
    ]
)


class FakeGit:
    """Serves canned stdout/stderr/exit codes per git subcommand."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def set_output(self, command: str, stdout: str, *, code: int = 0, stderr: str = "") -> None:
        (self.root / f"{command}.out").write_bytes(stdout.encode("utf-8"))
        (self.root / f"{command}.code").write_text(str(code), encoding="utf-8")
        (self.root / f"{command}.err").write_text(stderr, encoding="utf-8")

    def calls(self) -> list[str]:
        p = self.root / "calls.txt"
        if not p.exists():
            return []
        return p.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def fake_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeGit:
    fake_git_dir = tmp_path / "bin"
    fake_git_dir.mkdir()
    fake_git = fake_git_dir / "git"
    fake_git.write_text(FAKE_GIT + "\n", encoding="utf-8")
    fake_git.chmod(0o755)
    monkeypatch.setenv("FAKE_GIT_DIR", str(fake_git_dir))
    monkeypatch.setenv("PATH", str(fake_git_dir) + os.pathsep + os.environ.get("PATH", ""))
    return FakeGit(fake_git_dir)


def porcelain(rows: list[tuple[str, str, str, int]], contents: list[str] | None = None) -> str:
    """`git blame --line-porcelain` text for (sha, name, email, author_time) rows."""
    out: list[str] = []
    for i, (sha, name, email, ts) in enumerate(rows, start=1):
        content = contents[i - 1] if contents else f"line {i}"
        out += [
            f"{sha} {i} {i} 1",
            f"author {name}",
            f"author-mail <{email}>",
            f"author-time {ts}",
            "author-tz +0000",
            f"committer {name}",
            f"committer-mail <{email}>",
            f"committer-time {ts}",
            "committer-tz +0000",
            "summary change",
            "filename file.txt",
            f"\t{content}",
        ]
    return "\n".join(out) + "\n"
