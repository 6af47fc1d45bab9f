from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from .analysis_extract import discover_files, load_file_info
from .analysis_file import analyze_file
from .config import RepoConfiguration
from .git import GitCommandError
from .models import FileResult, RepoAuthorship
from .outcome import Outcome

logger = logging.getLogger(__name__)


def analyze_path(
    config: RepoConfiguration,
    path: str,
    is_binary: bool,
    stop: threading.Event | None = None,
) -> Outcome[FileResult]:
    """One worker task. Never raises: every problem becomes a failed outcome."""
    if stop is not None and stop.is_set():
        return Outcome.absent()
    return Outcome.attempt(load_file_info, config, path, is_binary).flat_map(lambda fi: analyze_file(config, fi))


def _describe_failure(error: Exception | None) -> str:
    if error is None:
        return "unknown error"
    if isinstance(error, GitCommandError):
        return str(error)
    return f"{type(error).__name__}: {error}"


def analyze_repo(
    config: RepoConfiguration,
    *,
    jobs: int = 1,
    stop: threading.Event | None = None,
    on_progress: Callable[[int, int], None] | None = None,
) -> RepoAuthorship:
    """
    Analyze every selected file of a repository on a thread pool.

    Each file yields present, absent or failed; failures are recorded in
    `errors` and never stop the other files. Results are sorted by path once
    all files are done.
    """
    result = RepoAuthorship(
        name=config.repo_name,
        path=str(config.repo_root),
        since_iso=config.window.since_iso,
        until_iso=config.window.until_iso,
        file_results=[],
    )

    discovered = Outcome.attempt(discover_files, config)
    if discovered.is_failed:
        result.errors.append(f"failed to list files: {_describe_failure(discovered.error)}")
        return result
    files: list[tuple[str, bool]] = discovered.get_or([])
    result.files_total = len(files)

    if config.include_last_modified_date and config.shallow_clone:
        result.warnings.append("shallow clone: last modified dates may be incorrect")

    if stop is None:
        stop = threading.Event()
    with ThreadPoolExecutor(max_workers=max(1, jobs)) as ex:
        futs = {ex.submit(analyze_path, config, path, is_binary, stop): path for path, is_binary in files}
        try:
            for i, fut in enumerate(as_completed(futs), start=1):
                path = futs[fut]
                outcome: Outcome[FileResult] = fut.result()
                if outcome.is_present:
                    result.file_results.append(outcome.value)
                elif outcome.is_failed:
                    result.files_failed += 1
                    result.errors.append(f"{path}: {_describe_failure(outcome.error)}")
                else:
                    result.files_absent += 1
                if on_progress is not None:
                    on_progress(i, len(futs))
        except KeyboardInterrupt:
            # Queued tasks see the event and return without running git.
            stop.set()
            raise

    if stop.is_set():
        result.cancelled = True
    result.file_results.sort(key=lambda r: r.path)
    result.errors.sort()
    logger.debug(
        "%s: %d files, %d results, %d dropped, %d failed",
        config.repo_name,
        result.files_total,
        len(result.file_results),
        result.files_absent,
        result.files_failed,
    )
    return result
