"""Organization-level profiling across many repositories."""

from __future__ import annotations

import math
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from .analyzers.base import Analyzer, MetricsRecorder
from .analyzers.frameworks import FrameworkAnalyzer
from .analyzers.language import LanguageDetector
from .analyzers.team import TeamAnalytics
from .compliance import BEST_PRACTICES, STANDARDS, assess_repository, check_best_practices
from .config import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_ORGANIZATION_TIMEOUT_MS,
    ProfileConfig,
    ProfilingOptions,
)
from .deadline import Deadline
from .logging import get_logger, log_exception
from .models import (
    ComplianceMetrics,
    CrossRepositoryPatterns,
    FrameworkSignal,
    LanguageSignal,
    QualityTrend,
    RepositoryProfile,
    TeamPreferences,
)
from .stats import (
    average_pairwise_jaccard,
    discrete_consistency,
    dominant_trend,
    jaccard_similarity,
    most_common,
)
from .stores.bounded_cache import BoundedCache
from .walker import DEFAULT_SKIP_NAMES, resolve_repository

_LOGGER = get_logger("organization")

SHARED_TECHNOLOGY_SHARE = 0.5
OUTLIER_SKIP_SCORE = 80.0
OUTLIER_MARGIN = 15.0
SIMILARITY_GROUP_THRESHOLD = 0.7
COMMON_PATTERN_SHARE = 30.0

STRUCTURE_PATTERNS: Tuple[str, ...] = (
    "src/components",
    "src/pages",
    "src/utils",
    "src/services",
    "src/models",
    "src/api",
    "src/hooks",
    "src/context",
    "src/store",
    "src/assets",
    "src/styles",
    "src/tests",
    "src/config",
    "src/constants",
    "src/types",
    "src/interfaces",
    "src/lib",
    "src/helpers",
    "src/middleware",
    "src/controllers",
    "src/routes",
    "src/views",
    "src/templates",
    "src/public",
    "src/static",
    "src/data",
    "src/schemas",
    "src/migrations",
    "src/scripts",
    "src/docs",
)
CONFIG_PATTERNS: Tuple[str, ...] = (
    ".eslintrc.js",
    ".eslintrc.json",
    ".prettierrc",
    "tsconfig.json",
    "jest.config.js",
    "babel.config.js",
    "webpack.config.js",
    "rollup.config.js",
    "vite.config.js",
    ".github/workflows/ci.yml",
    ".github/workflows/cd.yml",
    ".github/workflows/release.yml",
    ".github/dependabot.yml",
    "docker-compose.yml",
    "Dockerfile",
    ".dockerignore",
    ".gitignore",
    ".npmignore",
    "LICENSE",
    "CONTRIBUTING.md",
    "CODE_OF_CONDUCT.md",
)

QualityTrendProvider = Callable[[Path, TeamPreferences], Sequence[QualityTrend]]


class ProfilingError(RuntimeError):
    """Raised when an organization-level operation has nothing to aggregate."""


def _team_quality_trends(root: Path, team: TeamPreferences) -> Sequence[QualityTrend]:
    return team.quality_trends


class OrganizationProfiler(Analyzer):
    """Runs every repository analyzer per repository and compares the results.

    Repositories are profiled concurrently; a failure in any stage of one
    repository degrades that repository's profile instead of aborting the
    batch.
    """

    operation_name = "organization-analysis"

    def __init__(
        self,
        *,
        language_detector: Optional[LanguageDetector] = None,
        framework_analyzer: Optional[FrameworkAnalyzer] = None,
        team_analytics: Optional[Analyzer] = None,
        quality_trend_provider: Optional[QualityTrendProvider] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        result_cache_size: int = 10,
    ) -> None:
        super().__init__()
        self._languages = language_detector or LanguageDetector()
        self._frameworks = framework_analyzer or FrameworkAnalyzer()
        self._team = team_analytics or TeamAnalytics()
        self._quality_trends = quality_trend_provider or _team_quality_trends
        self._max_workers = max(1, max_workers)
        self._result_cache: BoundedCache[Tuple[str, int], CrossRepositoryPatterns] = BoundedCache(
            result_cache_size
        )

    @classmethod
    def from_config(cls, config: ProfileConfig) -> "OrganizationProfiler":
        """Build a profiler honouring thresholds and extra skip names from config."""
        skip_names = DEFAULT_SKIP_NAMES | frozenset(config.exclude_dirs)
        return cls(
            language_detector=LanguageDetector(
                min_confidence=config.thresholds.min_language_confidence,
                skip_names=skip_names,
            ),
            framework_analyzer=FrameworkAnalyzer(
                min_confidence=config.thresholds.min_framework_confidence,
                skip_names=skip_names,
            ),
            team_analytics=TeamAnalytics(skip_names=skip_names),
            max_workers=config.organization.max_workers,
        )

    # ------------------------------------------------------------------
    # Analyzer contract

    def analyze(
        self, path: str, options: Optional[ProfilingOptions] = None
    ) -> CrossRepositoryPatterns:
        """Discover repositories under ``path`` and aggregate their profiles."""
        options = (options or ProfilingOptions()).normalised()
        recorder = MetricsRecorder(self.operation_name)
        root = resolve_repository(path)
        cache_key = (str(root), options.max_depth)

        if options.cache_results:
            cached = self._result_cache.get(cache_key)
            if cached is not None:
                recorder.hit()
                self._record(recorder)
                return cached
        recorder.miss()

        repositories = discover_repositories(root)
        if not repositories:
            raise ProfilingError(f"No repositories found in {root}")
        _LOGGER.info("Profiling %d repositories under %s", len(repositories), root)

        result = self.analyze_multiple_repositories([str(repo) for repo in repositories], options)
        if options.cache_results:
            self._result_cache.store(cache_key, result)
        self._record(recorder)
        return result

    def capabilities(self) -> List[str]:
        return [
            "multi-repository-analysis",
            "cross-repository-patterns",
            "standards-compliance",
            "best-practice-identification",
            "technology-stack-visualization",
        ]

    def is_available(self) -> bool:
        return all(
            analyzer.is_available()
            for analyzer in (self._languages, self._frameworks, self._team)
        )

    # ------------------------------------------------------------------
    # Operations

    def analyze_multiple_repositories(
        self, paths: Sequence[str], options: Optional[ProfilingOptions] = None
    ) -> CrossRepositoryPatterns:
        if not paths:
            raise ProfilingError("No repositories found")
        profiles = self.profile_repositories(paths, options)
        valid = [profile for profile in profiles if profile.languages]
        if not valid:
            raise ProfilingError("No valid repository profiles found")

        score = consistency_score(valid)
        outliers = identify_outliers(valid, score)
        adoption = self.identify_best_practices([profile.path for profile in valid])
        shared = shared_technologies(valid)
        distribution = technology_distribution(valid)

        patterns = CrossRepositoryPatterns(
            shared_technologies=frozenset(shared),
            consistency_score=score,
            outlier_repositories=frozenset(outliers),
            best_practice_adoption=adoption,
            technology_distribution=distribution,
            organization_standards=detect_organization_standards(valid),
            repository_count=len(valid),
        )
        common = identify_common_patterns([profile.path for profile in valid])
        return replace(
            patterns,
            recommendations=tuple(generate_recommendations(patterns, common)),
            maturity_score=maturity_score(patterns),
        )

    def profile_repositories(
        self, paths: Sequence[str], options: Optional[ProfilingOptions] = None
    ) -> List[RepositoryProfile]:
        """Profile ``paths`` concurrently, preserving input order."""
        options = (options or ProfilingOptions()).normalised()
        deadline = Deadline.after_ms(options.resolved_timeout_ms(DEFAULT_ORGANIZATION_TIMEOUT_MS))

        def _run(path: str) -> RepositoryProfile:
            if deadline.expired():
                _LOGGER.warning("Organization deadline reached; skipping %s", path)
                return RepositoryProfile(
                    path=path, name=Path(path).name, error="skipped: deadline reached"
                )
            return self.profile_repository(path, options)

        workers = min(self._max_workers, len(paths)) or 1
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="repoprofile") as pool:
            return list(pool.map(_run, paths))

    def profile_repository(
        self, path: str, options: Optional[ProfilingOptions] = None
    ) -> RepositoryProfile:
        """Run every analyzer on one repository, degrading failed stages."""
        options = (options or ProfilingOptions()).normalised()
        root = Path(path).expanduser().resolve()
        errors: List[str] = []

        languages: Tuple[LanguageSignal, ...] = ()
        try:
            languages = tuple(self._languages.analyze(str(root), options))
        except Exception as exc:
            log_exception(_LOGGER, f"Language detection failed for {root}", exc)
            errors.append(f"languages: {exc}")

        frameworks: Tuple[FrameworkSignal, ...] = ()
        try:
            detected = [signal.language for signal in languages] or None
            frameworks = tuple(self._frameworks.analyze(str(root), options, languages=detected))
        except Exception as exc:
            log_exception(_LOGGER, f"Framework analysis failed for {root}", exc)
            errors.append(f"frameworks: {exc}")

        team = TeamPreferences()
        trends: Tuple[QualityTrend, ...] = ()
        try:
            team = self._team.analyze(str(root), options)
            trends = tuple(self._quality_trends(root, team))
        except Exception as exc:
            log_exception(_LOGGER, f"Team analytics failed for {root}", exc)
            errors.append(f"team: {exc}")

        return RepositoryProfile(
            path=str(root),
            name=root.name,
            languages=languages,
            frameworks=frameworks,
            team=team,
            quality_trends=trends,
            error="; ".join(errors) or None,
        )

    def identify_best_practices(self, paths: Sequence[str]) -> Dict[str, float]:
        """Percentage of repositories adopting each best practice."""
        if not paths:
            return {practice: 0.0 for practice in BEST_PRACTICES}
        counts: Counter = Counter()
        for path in paths:
            for practice, present in check_best_practices(Path(path)).items():
                if present:
                    counts[practice] += 1
        return {practice: counts[practice] / len(paths) * 100 for practice in BEST_PRACTICES}

    def compare_standards_compliance(self, paths: Sequence[str]) -> ComplianceMetrics:
        """Average standards adoption over repositories with any compliance data."""
        assessments = []
        for path in paths:
            assessment = assess_repository(Path(path).expanduser().resolve())
            if assessment.overall == 0:
                _LOGGER.warning("No compliance artifacts found in %s; excluding", path)
                continue
            assessments.append(assessment)
        if not assessments:
            raise ProfilingError("No valid repository compliance metrics found")

        count = len(assessments)
        return ComplianceMetrics(
            overall_compliance=sum(item.overall for item in assessments) / count,
            standards_adoption={
                standard: sum(item.standards_adoption.get(standard, 0.0) for item in assessments)
                / count
                for standard in STANDARDS
            },
            security_compliance=sum(item.security for item in assessments) / count,
            accessibility_compliance=sum(item.accessibility for item in assessments) / count,
            performance_compliance=sum(item.performance for item in assessments) / count,
            repository_compliance={item.name: item.overall for item in assessments},
            violations={item.name: item.missing for item in assessments if item.missing},
        )

    def visualize_technology_stack(
        self, paths: Sequence[str], options: Optional[ProfilingOptions] = None
    ) -> Dict[str, float]:
        profiles = [profile for profile in self.profile_repositories(paths, options) if profile.languages]
        return technology_distribution(profiles)


def discover_repositories(root: Path) -> List[Path]:
    """The root itself when it is a git checkout, plus visible child checkouts."""
    root = Path(root)
    found: List[Path] = []
    if (root / ".git").exists():
        found.append(root)
    try:
        children = sorted(root.iterdir())
    except OSError as exc:
        _LOGGER.warning("Cannot list %s: %s", root, exc)
        return found
    for child in children:
        if child.name.startswith(".") or not child.is_dir():
            continue
        if (child / ".git").exists():
            found.append(child)
    return found


def technology_tags(profile: RepositoryProfile) -> Set[str]:
    tags = {f"language:{signal.language}" for signal in profile.languages}
    tags.update(f"framework:{signal.name}" for signal in profile.frameworks)
    return tags


def shared_technologies(profiles: Sequence[RepositoryProfile]) -> List[str]:
    """Tags used by at least half of the repositories, sorted."""
    if not profiles:
        return []
    counts: Counter = Counter()
    for profile in profiles:
        counts.update(technology_tags(profile))
    threshold = math.ceil(len(profiles) * SHARED_TECHNOLOGY_SHARE)
    return sorted(tag for tag, count in counts.items() if count >= threshold)


def technology_distribution(profiles: Sequence[RepositoryProfile]) -> Dict[str, float]:
    if not profiles:
        return {}
    counts: Counter = Counter()
    for profile in profiles:
        counts.update(technology_tags(profile))
    return {tag: count / len(profiles) * 100 for tag, count in sorted(counts.items())}


def team_consistency(teams: Sequence[TeamPreferences]) -> float:
    sampled = [team for team in teams if team.indentation_style != "unknown"]
    if len(sampled) <= 1:
        return 100.0
    return (
        discrete_consistency([team.indentation_style for team in sampled]) * 0.4
        + discrete_consistency([team.indent_size for team in sampled]) * 0.3
        + discrete_consistency([team.line_ending_style for team in sampled]) * 0.3
    )


def quality_consistency(trend_sets: Sequence[Sequence[QualityTrend]]) -> float:
    populated = [trends for trends in trend_sets if trends]
    if len(populated) <= 1:
        return 100.0
    return discrete_consistency(
        [dominant_trend(trend.direction for trend in trends) for trends in populated]
    )


def consistency_score(profiles: Sequence[RepositoryProfile]) -> float:
    """Weighted 0-100 agreement across repositories; a lone repository scores 100."""
    if len(profiles) <= 1:
        return 100.0
    languages = average_pairwise_jaccard(
        [{signal.language for signal in profile.languages} for profile in profiles]
    )
    frameworks = average_pairwise_jaccard(
        [{signal.name for signal in profile.frameworks} for profile in profiles]
    )
    team = team_consistency([profile.team for profile in profiles])
    quality = quality_consistency([profile.quality_trends for profile in profiles])
    return languages * 0.3 + frameworks * 0.3 + team * 0.2 + quality * 0.2


def identify_outliers(profiles: Sequence[RepositoryProfile], score: float) -> List[str]:
    """Repositories whose removal would raise the score by more than the margin."""
    if score >= OUTLIER_SKIP_SCORE:
        return []
    outliers: List[str] = []
    for index, profile in enumerate(profiles):
        others = [other for position, other in enumerate(profiles) if position != index]
        if consistency_score(others) - score > OUTLIER_MARGIN:
            outliers.append(profile.name)
    return outliers


def compare_repositories(first: RepositoryProfile, second: RepositoryProfile) -> float:
    """Similarity in [0, 1] over technology sets and formatting preferences."""
    scores = [
        jaccard_similarity(
            {signal.language for signal in first.languages},
            {signal.language for signal in second.languages},
        ),
        jaccard_similarity(
            {signal.name for signal in first.frameworks},
            {signal.name for signal in second.frameworks},
        ),
    ]
    if first.team.indentation_style != "unknown" and second.team.indentation_style != "unknown":
        scores.append(float(first.team.indentation_style == second.team.indentation_style))
        scores.append(float(first.team.indent_size == second.team.indent_size))
        scores.append(float(first.team.line_ending_style == second.team.line_ending_style))
    return sum(scores) / len(scores)


def group_by_similarity(
    profiles: Sequence[RepositoryProfile], threshold: float = SIMILARITY_GROUP_THRESHOLD
) -> List[List[RepositoryProfile]]:
    """Greedy grouping: join the first group whose mean similarity meets ``threshold``."""
    if len(profiles) <= 1:
        return [list(profiles)]
    groups: List[List[RepositoryProfile]] = [[profiles[0]]]
    for profile in profiles[1:]:
        for group in groups:
            average = sum(compare_repositories(profile, member) for member in group) / len(group)
            if average >= threshold:
                group.append(profile)
                break
        else:
            groups.append([profile])
    return groups


def identify_common_patterns(paths: Sequence[str]) -> Dict[str, float]:
    """Structure and config paths present in at least 30% of repositories."""
    if not paths:
        return {}
    roots = [Path(path) for path in paths]
    patterns: Dict[str, float] = {}
    for prefix, candidates in (("structure", STRUCTURE_PATTERNS), ("config", CONFIG_PATTERNS)):
        for candidate in candidates:
            present = sum(1 for root in roots if (root / candidate).exists())
            share = present / len(roots) * 100
            if share >= COMMON_PATTERN_SHARE:
                patterns[f"{prefix}:{candidate}"] = share
    return patterns


def detect_organization_standards(profiles: Sequence[RepositoryProfile]) -> Dict[str, Any]:
    teams = [profile.team for profile in profiles if profile.team.indentation_style != "unknown"]
    if not teams:
        return {}

    def _naming(kind: str, fallback: str) -> str:
        values = [
            team.naming_conventions.get(kind)
            for team in teams
            if team.naming_conventions.get(kind) not in (None, "unknown", "mixed")
        ]
        return most_common(values) or fallback

    return {
        "indentation_style": most_common(team.indentation_style for team in teams),
        "indent_size": most_common(team.indent_size for team in teams),
        "line_ending_style": most_common(team.line_ending_style for team in teams),
        "naming_conventions": {
            "variables": _naming("variables", "camelCase"),
            "functions": _naming("functions", "camelCase"),
            "classes": _naming("classes", "PascalCase"),
        },
    }


def generate_recommendations(
    patterns: CrossRepositoryPatterns, common_patterns: Dict[str, float]
) -> List[str]:
    recommendations: List[str] = []
    if patterns.consistency_score < 50:
        recommendations.append("Improve technology consistency across repositories")
    if patterns.outlier_repositories:
        names = ", ".join(sorted(patterns.outlier_repositories))
        recommendations.append(f"Align outlier repositories ({names}) with organization standards")
    for practice, adoption in patterns.best_practice_adoption.items():
        if adoption < 50:
            recommendations.append(
                f"Increase adoption of {practice} (currently at {adoption:.0f}%)"
            )
    if len(patterns.shared_technologies) < 3:
        recommendations.append("Standardize core technologies across repositories")
    if len(common_patterns) < 5:
        recommendations.append("Establish more common patterns and structures across repositories")
    fragmented = [
        tag for tag, share in patterns.technology_distribution.items() if 10 < share < 30
    ]
    if len(fragmented) > 5:
        recommendations.append(
            "Reduce technology fragmentation by standardizing on fewer technologies"
        )
    return recommendations


def maturity_score(patterns: CrossRepositoryPatterns) -> float:
    """0-100 blend of consistency, adoption, outlier share and shared technologies."""
    adoption = list(patterns.best_practice_adoption.values())
    average_adoption = sum(adoption) / max(1, len(adoption))
    repositories = max(1, patterns.repository_count)
    outlier_share = len(patterns.outlier_repositories) / repositories * 100
    score = (
        patterns.consistency_score / 100 * 30
        + average_adoption / 100 * 40
        + (100 - outlier_share) / 100 * 15
        + min(len(patterns.shared_technologies) / 5, 1) * 15
    )
    return float(round(score))


__all__ = [
    "OrganizationProfiler",
    "ProfilingError",
    "compare_repositories",
    "consistency_score",
    "detect_organization_standards",
    "discover_repositories",
    "generate_recommendations",
    "group_by_similarity",
    "identify_common_patterns",
    "identify_outliers",
    "maturity_score",
    "shared_technologies",
    "technology_distribution",
]
