"""Core data models shared across repoprofile components.

Signals and profiles are frozen: aggregation always builds new composite
objects from immutable inputs, so a cached profile can be handed to several
concurrent callers without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple

USAGE_PRIMARY = "primary"
USAGE_SECONDARY = "secondary"
USAGE_MINIMAL = "minimal"
USAGE_ARCHITECTURE = "architecture"

ARCHITECTURE_PREFIX = "architecture:"

WEEKDAYS: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
TIMES_OF_DAY: Tuple[str, ...] = ("morning", "afternoon", "evening", "night")


@dataclass(frozen=True)
class LanguageSignal:
    """One detected language with its share of the repository."""

    language: str
    confidence: float
    dialect: Optional[str] = None
    version: Optional[str] = None
    file_count: int = 0
    line_count: int = 0
    percentage_of_repo: float = 0.0


@dataclass(frozen=True)
class FrameworkSignal:
    """Confidence-scored framework (or folded architecture pattern) hit."""

    name: str
    confidence: float
    usage_tier: str
    matched_files: FrozenSet[str] = frozenset()
    dependency_names: FrozenSet[str] = frozenset()
    version: Optional[str] = None

    @property
    def is_architecture(self) -> bool:
        return self.usage_tier == USAGE_ARCHITECTURE


@dataclass(frozen=True)
class ArchitecturePatternSignal:
    pattern_name: str
    confidence: float
    matched_locations: FrozenSet[str]
    description: str


@dataclass(frozen=True)
class AuthorActivity:
    """Per-author statistics replayed from commit history."""

    name: str
    email: str
    commit_count: int
    files_touched: FrozenSet[str]
    lines_added: int
    lines_removed: int
    first_commit: float
    last_commit: float
    commits_by_weekday: Tuple[int, ...] = (0,) * 7
    commits_by_time_of_day: Tuple[int, ...] = (0,) * 4
    subjects: Tuple[str, ...] = ()
    # Paths in first-seen order, used for the commit pattern sample.
    touched_order: Tuple[str, ...] = ()

    @property
    def active_span(self) -> Tuple[float, float]:
        return (self.first_commit, self.last_commit)


@dataclass(frozen=True)
class CommitFrequency:
    daily: float = 0.0
    weekly: float = 0.0
    monthly: float = 0.0
    quarterly: float = 0.0


@dataclass(frozen=True)
class GitHistory:
    """Result of mining one repository's history.

    An empty history (no commits) is a valid result and is what callers get
    back when git is unavailable or the log call fails.
    """

    total_commits: int = 0
    authors: Tuple[AuthorActivity, ...] = ()
    file_churn: Dict[str, int] = field(default_factory=dict)
    code_ownership: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    time_span: Optional[Tuple[float, float]] = None
    commit_frequency: CommitFrequency = field(default_factory=CommitFrequency)
    # Lines changed per commit, oldest first.
    churn_series: Tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.total_commits == 0


@dataclass(frozen=True)
class CommitPattern:
    """Summary of one author's commit habits."""

    author: str
    frequency: float
    preferred_times: Tuple[str, ...]
    file_types: Tuple[str, ...]
    lines_changed: int
    message_style: str


@dataclass(frozen=True)
class QualityTrend:
    metric: str
    direction: str
    values: Tuple[float, ...] = ()
    slope: float = 0.0


@dataclass(frozen=True)
class TeamPreferences:
    """Coding conventions sampled from source files plus commit habits."""

    indentation_style: str = "unknown"
    indent_size: int = 0
    line_ending_style: str = "unknown"
    naming_conventions: Dict[str, str] = field(default_factory=dict)
    brace_style: str = "unknown"
    trailing_commas: bool = False
    semicolons: bool = False
    patterns: Tuple[str, ...] = ()
    commit_patterns: Tuple[CommitPattern, ...] = ()
    quality_trends: Tuple[QualityTrend, ...] = ()


@dataclass(frozen=True)
class RepositoryProfile:
    """Aggregate profile for one repository.

    ``error`` is set when one or more analysis stages failed and the profile
    was degraded rather than dropped.
    """

    path: str
    name: str
    languages: Tuple[LanguageSignal, ...] = ()
    frameworks: Tuple[FrameworkSignal, ...] = ()
    team: TeamPreferences = field(default_factory=TeamPreferences)
    quality_trends: Tuple[QualityTrend, ...] = ()
    error: Optional[str] = None


@dataclass(frozen=True)
class CrossRepositoryPatterns:
    shared_technologies: FrozenSet[str]
    consistency_score: float
    outlier_repositories: FrozenSet[str]
    best_practice_adoption: Dict[str, float]
    technology_distribution: Dict[str, float]
    organization_standards: Dict[str, Any] = field(default_factory=dict)
    recommendations: Tuple[str, ...] = ()
    maturity_score: float = 0.0
    repository_count: int = 0


@dataclass(frozen=True)
class ComplianceMetrics:
    """Per-repository standards adoption plus the organization mean."""

    overall_compliance: float
    standards_adoption: Dict[str, float]
    security_compliance: float
    accessibility_compliance: float
    performance_compliance: float
    repository_compliance: Dict[str, float]
    violations: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


def to_jsonable(value: Any) -> Any:
    """Convert models into JSON-friendly primitives with stable ordering."""
    if is_dataclass(value) and not isinstance(value, type):
        result: Dict[str, Any] = {}
        for item in fields(value):
            result[item.name] = to_jsonable(getattr(value, item.name))
        return result
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    return value


__all__ = [
    "ARCHITECTURE_PREFIX",
    "ArchitecturePatternSignal",
    "AuthorActivity",
    "CommitFrequency",
    "CommitPattern",
    "ComplianceMetrics",
    "CrossRepositoryPatterns",
    "FrameworkSignal",
    "GitHistory",
    "LanguageSignal",
    "QualityTrend",
    "RepositoryProfile",
    "TIMES_OF_DAY",
    "TeamPreferences",
    "USAGE_ARCHITECTURE",
    "USAGE_MINIMAL",
    "USAGE_PRIMARY",
    "USAGE_SECONDARY",
    "WEEKDAYS",
    "to_jsonable",
]
