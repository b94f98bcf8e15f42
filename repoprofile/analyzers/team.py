"""Team analytics: git history mining plus coding-convention sampling."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import replace
from datetime import tzinfo
from itertools import combinations
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import DEFAULT_TEAM_TIMEOUT_MS, ProfilingOptions
from ..deadline import Deadline
from ..git.history import (
    GitHistoryError,
    Runner,
    build_history,
    default_runner,
    parse_log,
    read_log,
)
from ..logging import get_logger
from ..models import (
    TIMES_OF_DAY,
    AuthorActivity,
    CommitPattern,
    GitHistory,
    QualityTrend,
    TeamPreferences,
)
from ..stats import gini_coefficient, linear_regression_slope, trend_direction
from ..stores.bounded_cache import BoundedCache
from ..walker import DEFAULT_SKIP_NAMES, resolve_repository
from .base import Analyzer, MetricsRecorder
from .conventions import preferences_from_stats, scan_conventions

_LOGGER = get_logger("analyzers.team")

PREFERRED_TIME_SHARE = 25.0
COMMIT_PATTERN_FILES = 10
SPECIALIZATION_MIN_FILES = 5
SPECIALIZATION_TOP = 3

_CONVENTIONAL = re.compile(r"^(feat|fix|docs|style|refactor|perf|test|build|ci|chore|revert)(\(.+\))?:")
_ISSUE_REFERENCE = re.compile(r"#\d+")
_IMPERATIVE = re.compile(
    r"^(Add|Fix|Update|Remove|Implement|Refactor|Improve|Change|Merge|Revert)\b", re.IGNORECASE
)

_ROLE_HINTS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Testing", ("test", "spec")),
    ("DevOps", ("docker", "k8s", "kubernetes")),
    ("Frontend", ("ui", "component", "view")),
    ("Backend", ("api", "controller", "service")),
)


class TeamAnalytics(Analyzer):
    """Derives team habits from commit history and source formatting.

    The git invocation goes through ``runner`` so tests can substitute canned
    ``git log`` output; ``tz`` controls how commit timestamps are bucketed
    into weekdays and times of day (``None`` uses the local timezone).
    """

    operation_name = "team-analytics"

    def __init__(
        self,
        *,
        runner: Optional[Runner] = None,
        tz: Optional[tzinfo] = None,
        result_cache_size: int = 20,
        history_cache_size: int = 20,
        skip_names: Iterable[str] = DEFAULT_SKIP_NAMES,
    ) -> None:
        super().__init__()
        self._runner = runner or default_runner
        self._tz = tz
        self._skip_names = frozenset(skip_names)
        self._result_cache: BoundedCache[str, TeamPreferences] = BoundedCache(result_cache_size)
        self._history_cache: BoundedCache[str, GitHistory] = BoundedCache(history_cache_size)

    def analyze(self, path: str, options: Optional[ProfilingOptions] = None) -> TeamPreferences:
        options = (options or ProfilingOptions()).normalised()
        recorder = MetricsRecorder(self.operation_name)
        root = resolve_repository(path)
        cache_key = str(root)

        if options.cache_results:
            cached = self._result_cache.get(cache_key)
            if cached is not None:
                recorder.hit()
                self._record(recorder)
                return cached
        recorder.miss()

        deadline = Deadline.after_ms(options.resolved_timeout_ms(DEFAULT_TEAM_TIMEOUT_MS))
        history = self.analyze_git_history(
            root, deadline=deadline, use_cache=options.cache_results
        )
        preferences = self.detect_coding_preferences(root, options, deadline=deadline)
        result = replace(
            preferences,
            commit_patterns=commit_patterns(history.authors),
            quality_trends=quality_trends(history),
        )

        if options.cache_results:
            self._result_cache.store(cache_key, result)
        self._record(recorder)
        return result

    def analyze_git_history(
        self,
        path: str | Path,
        *,
        deadline: Optional[Deadline] = None,
        use_cache: bool = True,
    ) -> GitHistory:
        """Mine commit history; an empty history is returned on any git failure."""
        root = Path(path).resolve()
        cache_key = str(root)
        if use_cache:
            cached = self._history_cache.get(cache_key)
            if cached is not None:
                return cached

        if not (root / ".git").exists():
            _LOGGER.debug("%s is not a git repository; skipping history", root)
            return GitHistory()

        timeout = deadline.remaining() if deadline is not None else None
        try:
            output = read_log(root, self._runner, timeout=timeout)
        except GitHistoryError as exc:
            _LOGGER.warning("Git history unavailable for %s: %s", root, exc)
            return GitHistory()

        history = build_history(parse_log(output), tz=self._tz)
        if use_cache:
            self._history_cache.store(cache_key, history)
        _LOGGER.debug(
            "Parsed %d commit(s) from %d author(s) in %s",
            history.total_commits,
            len(history.authors),
            root,
        )
        return history

    def detect_coding_preferences(
        self,
        path: str | Path,
        options: Optional[ProfilingOptions] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> TeamPreferences:
        options = (options or ProfilingOptions()).normalised()
        stats = scan_conventions(
            Path(path),
            max_depth=options.max_depth,
            max_files=options.max_files,
            deadline=deadline,
            skip_names=self._skip_names,
        )
        return preferences_from_stats(stats)

    def map_code_ownership(self, path: str | Path) -> Dict[str, Tuple[str, ...]]:
        return dict(self.analyze_git_history(path).code_ownership)

    def identify_specializations(self, path: str | Path) -> Dict[str, List[str]]:
        history = self.analyze_git_history(path)
        return {author.name: specializations_for(author) for author in history.authors}

    def capabilities(self) -> List[str]:
        return [
            "git-history-analysis",
            "coding-style-detection",
            "team-preference-analysis",
            "code-ownership-mapping",
            "developer-specialization",
        ]

    def is_available(self) -> bool:
        try:
            self._runner(["git", "--version"], cwd=Path.cwd(), capture_output=True)
        except GitHistoryError:
            return False
        return True


def preferred_times(author: AuthorActivity) -> Tuple[str, ...]:
    """Times of day holding at least a quarter of the author's commits."""
    total = sum(author.commits_by_time_of_day)
    if total == 0:
        return ()
    shares = [
        (label, count / total * 100)
        for label, count in zip(TIMES_OF_DAY, author.commits_by_time_of_day)
    ]
    shares.sort(key=lambda item: item[1], reverse=True)
    return tuple(label for label, share in shares if share >= PREFERRED_TIME_SHARE)


def commit_message_style(subjects: Sequence[str]) -> str:
    if not subjects:
        return "unknown"
    total = len(subjects)
    checks = (
        ("conventional", _CONVENTIONAL),
        ("issue-reference", _ISSUE_REFERENCE),
        ("imperative", _IMPERATIVE),
    )
    for style, pattern in checks:
        matched = sum(1 for subject in subjects if pattern.search(subject))
        if matched / total * 100 >= 50:
            return style
    return "mixed"


def commit_patterns(authors: Iterable[AuthorActivity]) -> Tuple[CommitPattern, ...]:
    return tuple(
        CommitPattern(
            author=author.name,
            frequency=float(author.commit_count),
            preferred_times=preferred_times(author),
            file_types=author.touched_order[:COMMIT_PATTERN_FILES],
            lines_changed=author.lines_added + author.lines_removed,
            message_style=commit_message_style(author.subjects),
        )
        for author in authors
    )


def quality_trends(history: GitHistory) -> Tuple[QualityTrend, ...]:
    """Churn trend over the commit series; rising churn counts as declining."""
    if len(history.churn_series) < 2:
        return ()
    values = tuple(float(value) for value in history.churn_series)
    return (
        QualityTrend(
            metric="churn",
            direction=trend_direction(values),
            values=values,
            slope=linear_regression_slope(values),
        ),
    )


def specializations_for(author: AuthorActivity) -> List[str]:
    extensions: Counter = Counter()
    directories: Counter = Counter()
    for file_path in author.touched_order:
        posix = PurePosixPath(file_path)
        if posix.suffix:
            extensions[posix.suffix.lower()] += 1
        if len(posix.parts) > 1:
            directories[posix.parts[0]] += 1

    result: List[str] = []
    for extension, count in extensions.most_common(SPECIALIZATION_TOP):
        if count >= SPECIALIZATION_MIN_FILES:
            result.append(f"{extension} files")
    for directory, count in directories.most_common(SPECIALIZATION_TOP):
        if count >= SPECIALIZATION_MIN_FILES:
            result.append(f"{directory} directory")

    for role, hints in _ROLE_HINTS:
        if any(hint in file_path for file_path in author.touched_order for hint in hints):
            result.append(role)
    return result


def activity_score(author: AuthorActivity) -> float:
    """Score out of 40 mixing commits, lines, active days and files touched."""
    active_days = (author.last_commit - author.first_commit) / 86_400
    return (
        min(author.commit_count / 10, 10)
        + min((author.lines_added + author.lines_removed) / 1000, 10)
        + min(active_days / 30, 10)
        + min(len(author.files_touched) / 20, 10)
    )


def identify_primary_contributors(authors: Sequence[AuthorActivity]) -> List[str]:
    if not authors:
        return []
    scored = sorted(
        ((author.name, activity_score(author)) for author in authors),
        key=lambda item: item[1],
        reverse=True,
    )
    threshold = max(20.0, scored[int(len(scored) * 0.2)][1])
    return [name for name, score in scored if score >= threshold]


def analyze_collaboration(
    authors: Sequence[AuthorActivity], ownership: Mapping[str, Sequence[str]]
) -> Dict[str, List[str]]:
    """Authors who co-own at least one file with each other."""
    graph: Dict[str, List[str]] = {}
    if len(authors) < 2 or not ownership:
        return graph
    for owners in ownership.values():
        for first, second in combinations(owners, 2):
            peers = graph.setdefault(first, [])
            if second not in peers:
                peers.append(second)
            peers = graph.setdefault(second, [])
            if first not in peers:
                peers.append(first)
    return graph


def detect_workflow_patterns(authors: Sequence[AuthorActivity]) -> List[str]:
    if not authors:
        return []
    patterns: List[str] = []

    gini = gini_coefficient(author.commit_count for author in authors)
    if gini > 0.8:
        patterns.append("Highly centralized development (few core contributors)")
    elif gini > 0.5:
        patterns.append("Moderately distributed development")
    else:
        patterns.append("Evenly distributed development")

    weekdays = [sum(day) for day in zip(*(author.commits_by_weekday for author in authors))]
    total_days = sum(weekdays)
    if total_days:
        weekend_share = (weekdays[5] + weekdays[6]) / total_days * 100
        if weekend_share > 25:
            patterns.append("Significant weekend development activity")
        else:
            patterns.append("Primarily weekday development activity")

    times = [sum(bucket) for bucket in zip(*(author.commits_by_time_of_day for author in authors))]
    total_times = sum(times)
    if total_times:
        after_hours_share = (times[2] + times[3]) / total_times * 100
        if after_hours_share > 50:
            patterns.append("Significant after-hours development activity")
        else:
            patterns.append("Primarily business hours development activity")

    return patterns


__all__ = [
    "TeamAnalytics",
    "activity_score",
    "analyze_collaboration",
    "commit_message_style",
    "commit_patterns",
    "detect_workflow_patterns",
    "identify_primary_contributors",
    "preferred_times",
    "quality_trends",
    "specializations_for",
]
