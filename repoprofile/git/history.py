"""Commit history mining via ``git log --numstat``."""

from __future__ import annotations

import re
import subprocess
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import AuthorActivity, CommitFrequency, GitHistory

_LOGGER = get_logger("git.history")

LOG_FORMAT = "%h|%an|%ae|%at|%s"
MAX_OUTPUT_BYTES = 10 * 1024 * 1024
OWNERS_PER_FILE = 2

_STAT_LINE = re.compile(r"^(\d+|-)\t(\d+|-)\t(.+)$")

Runner = Callable[..., str]


class GitHistoryError(RuntimeError):
    """Raised when the history command cannot produce usable output."""


@dataclass(frozen=True)
class FileChange:
    path: str
    added: int
    removed: int


@dataclass(frozen=True)
class Commit:
    """One parsed commit header with its per-file numeric stats."""

    hash: str
    author_name: str
    author_email: str
    timestamp: int
    subject: str
    changes: Tuple[FileChange, ...] = ()

    @property
    def lines_changed(self) -> int:
        return sum(change.added + change.removed for change in self.changes)


def default_runner(
    args: Iterable[str],
    *,
    cwd: Path,
    capture_output: bool = False,
    timeout: Optional[float] = None,
) -> str:
    """Run a git command and return its stdout, mapping failures to ``GitHistoryError``."""
    try:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise GitHistoryError("git executable not found") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip()
        raise GitHistoryError(f"git exited with status {exc.returncode}: {detail}") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitHistoryError(f"git timed out after {exc.timeout}s") from exc
    return completed.stdout if capture_output else ""


def read_log(
    repo: Path,
    runner: Optional[Runner] = None,
    *,
    timeout: Optional[float] = None,
    max_output_bytes: int = MAX_OUTPUT_BYTES,
) -> str:
    """Return raw ``git log`` output for ``repo``."""
    run = runner or default_runner
    args = ["git", "log", f"--pretty=format:{LOG_FORMAT}", "--numstat"]
    output = run(args, cwd=repo, capture_output=True, timeout=timeout)
    if len(output.encode("utf-8", errors="replace")) > max_output_bytes:
        raise GitHistoryError(f"git log output exceeded {max_output_bytes} bytes")
    return output


def parse_log(output: str) -> List[Commit]:
    """Parse interleaved commit headers and numstat lines, newest first.

    Binary files report ``-`` instead of line counts and are skipped.
    """
    commits: List[Commit] = []
    header: Optional[Tuple[str, str, str, int, str]] = None
    changes: List[FileChange] = []

    def _flush() -> None:
        if header is not None:
            commits.append(Commit(*header, changes=tuple(changes)))

    for raw_line in output.splitlines():
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue
        stat = _STAT_LINE.match(line)
        if stat is not None and header is not None:
            added, removed, path = stat.groups()
            if added == "-" or removed == "-":
                continue
            changes.append(FileChange(path=path, added=int(added), removed=int(removed)))
            continue
        parts = line.split("|", 4)
        if len(parts) < 5 or not parts[3].isdigit():
            _LOGGER.debug("Ignoring unexpected git log line: %s", line)
            continue
        _flush()
        header = (parts[0], parts[1], parts[2], int(parts[3]), parts[4])
        changes = []
    _flush()
    return commits


def time_of_day(hour: int) -> int:
    """Bucket index into ``TIMES_OF_DAY`` for a local hour."""
    if 6 <= hour < 12:
        return 0
    if 12 <= hour < 18:
        return 1
    if 18 <= hour < 24:
        return 2
    return 3


@dataclass
class _AuthorState:
    name: str
    email: str
    commit_count: int = 0
    files: Dict[str, None] = field(default_factory=dict)
    lines_added: int = 0
    lines_removed: int = 0
    first_commit: float = 0.0
    last_commit: float = 0.0
    weekdays: List[int] = field(default_factory=lambda: [0] * 7)
    times: List[int] = field(default_factory=lambda: [0] * 4)
    subjects: List[str] = field(default_factory=list)

    def freeze(self) -> AuthorActivity:
        return AuthorActivity(
            name=self.name,
            email=self.email,
            commit_count=self.commit_count,
            files_touched=frozenset(self.files),
            lines_added=self.lines_added,
            lines_removed=self.lines_removed,
            first_commit=self.first_commit,
            last_commit=self.last_commit,
            commits_by_weekday=tuple(self.weekdays),
            commits_by_time_of_day=tuple(self.times),
            subjects=tuple(self.subjects),
            touched_order=tuple(self.files),
        )


def build_history(commits: Sequence[Commit], tz: Optional[tzinfo] = None) -> GitHistory:
    """Replay ``commits`` (log order) into per-author and per-file statistics.

    Timestamps are bucketed in ``tz``; ``None`` means the local timezone.
    """
    if not commits:
        return GitHistory()

    authors: Dict[str, _AuthorState] = {}
    churn: Dict[str, int] = {}
    touches: Dict[str, Counter] = {}

    for commit in commits:
        state = authors.get(commit.author_email)
        if state is None:
            state = _AuthorState(
                name=commit.author_name,
                email=commit.author_email,
                first_commit=commit.timestamp,
                last_commit=commit.timestamp,
            )
            authors[commit.author_email] = state
        state.commit_count += 1
        state.first_commit = min(state.first_commit, commit.timestamp)
        state.last_commit = max(state.last_commit, commit.timestamp)
        state.subjects.append(commit.subject)

        moment = datetime.fromtimestamp(commit.timestamp, tz=tz)
        state.weekdays[moment.weekday()] += 1
        state.times[time_of_day(moment.hour)] += 1

        for change in commit.changes:
            state.files.setdefault(change.path, None)
            state.lines_added += change.added
            state.lines_removed += change.removed
            churn[change.path] = churn.get(change.path, 0) + change.added + change.removed
            touches.setdefault(change.path, Counter())[commit.author_email] += 1

    ownership = {
        path: tuple(authors[email].name for email, _ in counter.most_common(OWNERS_PER_FILE))
        for path, counter in touches.items()
    }

    timestamps = [commit.timestamp for commit in commits]
    start, end = min(timestamps), max(timestamps)
    chronological = sorted(commits, key=lambda commit: commit.timestamp)

    return GitHistory(
        total_commits=len(commits),
        authors=tuple(state.freeze() for state in authors.values()),
        file_churn=churn,
        code_ownership=ownership,
        time_span=(float(start), float(end)),
        commit_frequency=commit_frequency(len(commits), start, end),
        churn_series=tuple(commit.lines_changed for commit in chronological),
    )


def commit_frequency(total: int, start: float, end: float) -> CommitFrequency:
    """Average commit rates over the active span."""
    duration_days = (end - start) / 86_400
    if duration_days <= 0:
        return CommitFrequency()
    daily = total / duration_days
    return CommitFrequency(
        daily=daily,
        weekly=daily * 7,
        monthly=daily * 30,
        quarterly=daily * 90,
    )


__all__ = [
    "Commit",
    "FileChange",
    "GitHistoryError",
    "LOG_FORMAT",
    "MAX_OUTPUT_BYTES",
    "build_history",
    "commit_frequency",
    "default_runner",
    "parse_log",
    "read_log",
    "time_of_day",
]
