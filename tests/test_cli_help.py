from __future__ import annotations

import pytest

from git_authorship.cli import main


def test_help_mentions_options(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0
    out = capsys.readouterr().out
    assert "Attribute every line of a git repository to its author." in out
    assert "--find-previous-authors" in out
    assert "--last-modified-date" in out
    assert "--timezone" in out
