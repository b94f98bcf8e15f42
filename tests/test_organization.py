from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, List

import pytest

from repoprofile.analyzers.base import Analyzer
from repoprofile.analyzers.team import TeamAnalytics
from repoprofile.config import ProfilingOptions
from repoprofile.models import (
    CrossRepositoryPatterns,
    FrameworkSignal,
    LanguageSignal,
    RepositoryProfile,
    TeamPreferences,
)
from repoprofile.organization import (
    OrganizationProfiler,
    ProfilingError,
    consistency_score,
    discover_repositories,
    generate_recommendations,
    group_by_similarity,
    identify_common_patterns,
    identify_outliers,
    maturity_score,
)
from tests._fixtures.repo_builder import RepoBuilder

PACKAGE_JSON = '{"name": "svc", "dependencies": {"express": "^4.18.2"}}'
SPACES_LF = (
    "const express = require('express');\n"
    "const app = express();\n"
    "\n"
    "app.get('/', (req, res) => {\n"
    "  res.send('ok');\n"
    "});\n"
)
TABS_CRLF = SPACES_LF.replace("  ", "\t").replace("\n", "\r\n")


def _empty_log(args, cwd, capture_output=False, **kwargs):
    return ""


def _profiler(**kwargs) -> OrganizationProfiler:
    kwargs.setdefault("team_analytics", TeamAnalytics(runner=_empty_log))
    return OrganizationProfiler(**kwargs)


def _service_repo(make_repo: Callable[[str], RepoBuilder], name: str, source: str) -> RepoBuilder:
    builder = make_repo(name)
    builder.write({"package.json": PACKAGE_JSON})
    builder.write_raw("index.js", source)
    return builder


def _profile(name: str, languages: List[str], frameworks: List[str]) -> RepositoryProfile:
    return RepositoryProfile(
        path=f"/repos/{name}",
        name=name,
        languages=tuple(LanguageSignal(language=lang, confidence=0.9) for lang in languages),
        frameworks=tuple(
            FrameworkSignal(name=fw, confidence=0.9, usage_tier="secondary") for fw in frameworks
        ),
    )


class ExplodingTeam(Analyzer):
    operation_name = "team-analytics"

    def analyze(self, path, options=None):
        raise RuntimeError("boom")

    def capabilities(self):
        return []


class SlowTeam(Analyzer):
    operation_name = "team-analytics"

    def analyze(self, path, options=None):
        time.sleep(0.2)
        return TeamPreferences()

    def capabilities(self):
        return []


def test_formatting_differences_lower_consistency(make_repo) -> None:
    alpha = _service_repo(make_repo, "alpha", SPACES_LF)
    beta = _service_repo(make_repo, "beta", TABS_CRLF)

    patterns = _profiler().analyze_multiple_repositories(
        [str(alpha.path()), str(beta.path())]
    )

    assert 0 < patterns.consistency_score < 100
    assert patterns.consistency_score == pytest.approx(90.0)
    assert patterns.outlier_repositories == frozenset()
    assert {"language:javascript", "framework:express"} <= patterns.shared_technologies
    assert patterns.technology_distribution["framework:express"] == pytest.approx(100.0)
    assert patterns.best_practice_adoption["dependency-management"] == pytest.approx(100.0)
    assert patterns.best_practice_adoption["documentation"] == pytest.approx(0.0)
    assert patterns.organization_standards["indentation_style"] == "spaces"
    assert patterns.organization_standards["indent_size"] == 2
    assert patterns.organization_standards["line_ending_style"] == "LF"
    assert patterns.repository_count == 2
    assert "Increase adoption of documentation (currently at 0%)" in patterns.recommendations
    assert 0 <= patterns.maturity_score <= 100


def test_single_repository_is_fully_consistent(make_repo) -> None:
    alpha = _service_repo(make_repo, "alpha", SPACES_LF)

    patterns = _profiler().analyze_multiple_repositories([str(alpha.path())])

    assert patterns.consistency_score == 100.0
    assert patterns.outlier_repositories == frozenset()


def test_no_paths_or_no_valid_profiles_raise(make_repo) -> None:
    empty = make_repo("empty")
    empty.write({"notes": "plain words only\n"})
    profiler = _profiler()

    with pytest.raises(ProfilingError, match="No repositories found"):
        profiler.analyze_multiple_repositories([])
    with pytest.raises(ProfilingError, match="No valid repository profiles found"):
        profiler.analyze_multiple_repositories([str(empty.path())])


def test_analyze_discovers_child_checkouts_and_caches(tmp_path: Path, make_repo) -> None:
    for name, source in (("alpha", SPACES_LF), ("beta", TABS_CRLF)):
        _service_repo(make_repo, name, source).mark_git()
    make_repo("scratch").write({"notes.txt": "not a checkout\n"})
    profiler = _profiler()

    first = profiler.analyze(str(tmp_path))
    second = profiler.analyze(str(tmp_path))

    assert first.repository_count == 2
    assert second is first
    assert profiler.performance_metrics().cache_hits == 1


def test_analyze_without_repositories_raises(tmp_path: Path) -> None:
    (tmp_path / "plain").mkdir()

    with pytest.raises(ProfilingError, match="No repositories found"):
        _profiler().analyze(str(tmp_path))


def test_discover_repositories_skips_hidden_and_plain_dirs(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    for name in ("one", "two", ".hidden"):
        (tmp_path / name / ".git").mkdir(parents=True)
    (tmp_path / "plain").mkdir()

    found = discover_repositories(tmp_path)

    assert found == [tmp_path, tmp_path / "one", tmp_path / "two"]


def test_failed_stage_degrades_profile(make_repo) -> None:
    alpha = _service_repo(make_repo, "alpha", SPACES_LF)

    profile = _profiler(team_analytics=ExplodingTeam()).profile_repository(str(alpha.path()))

    assert profile.error == "team: boom"
    assert profile.languages
    assert profile.team == TeamPreferences()


def test_deadline_skips_repositories_not_started(make_repo) -> None:
    first = _service_repo(make_repo, "first", SPACES_LF)
    second = _service_repo(make_repo, "second", SPACES_LF)
    profiler = _profiler(team_analytics=SlowTeam(), max_workers=1)

    profiles = profiler.profile_repositories(
        [str(first.path()), str(second.path())], ProfilingOptions(timeout_ms=50)
    )

    assert profiles[0].error is None
    assert profiles[1].error == "skipped: deadline reached"
    assert profiles[1].languages == ()


def test_outliers_are_repositories_dragging_the_score_down() -> None:
    profiles = [
        _profile("a", ["python"], ["django"]),
        _profile("b", ["python"], ["django"]),
        _profile("c", ["go"], ["gin"]),
    ]

    score = consistency_score(profiles)

    assert score == pytest.approx(60.0)
    assert identify_outliers(profiles, score) == ["c"]
    assert identify_outliers(profiles, 85.0) == []


def test_group_by_similarity() -> None:
    profiles = [
        _profile("a", ["python"], ["django"]),
        _profile("b", ["go"], ["gin"]),
        _profile("c", ["python"], ["django"]),
    ]

    groups = group_by_similarity(profiles)

    assert [[profile.name for profile in group] for group in groups] == [["a", "c"], ["b"]]


def test_compliance_excludes_repositories_without_artifacts(make_repo) -> None:
    full = make_repo("full")
    full.write(
        {
            "README.md": "# Full\n",
            ".eslintrc.json": "{}\n",
            ".github/workflows/ci.yml": "on: push\n",
            "tests/test_app.py": "def test_ok():\n    assert True\n",
        }
    )
    docs = make_repo("docs")
    docs.write({"README.md": "# Docs\n"})
    bare = make_repo("bare")
    bare.write({"main.go": "package main\n"})

    metrics = _profiler().compare_standards_compliance(
        [str(full.path()), str(docs.path()), str(bare.path())]
    )

    assert metrics.repository_compliance == {
        "full": pytest.approx(400 / 7),
        "docs": pytest.approx(100 / 7),
    }
    assert metrics.overall_compliance == pytest.approx(250 / 7)
    assert metrics.standards_adoption["documentation"] == pytest.approx(100.0)
    assert metrics.standards_adoption["linting"] == pytest.approx(50.0)
    assert metrics.security_compliance == 0.0
    assert "linting" in metrics.violations["docs"]


def test_compliance_without_artifacts_raises(make_repo) -> None:
    bare = make_repo("bare")
    bare.write({"main.go": "package main\n"})

    with pytest.raises(ProfilingError, match="No valid repository compliance metrics found"):
        _profiler().compare_standards_compliance([str(bare.path())])


def test_best_practice_adoption(make_repo) -> None:
    reviewed = make_repo("reviewed")
    reviewed.write({"CODEOWNERS": "* @team\n", "package.json": '{"version": "1.2.3"}'})
    plain = make_repo("plain")
    plain.write({"main.go": "package main\n"})

    adoption = _profiler().identify_best_practices([str(reviewed.path()), str(plain.path())])

    assert adoption["code-reviews"] == pytest.approx(50.0)
    assert adoption["semantic-versioning"] == pytest.approx(50.0)
    assert adoption["dependency-management"] == pytest.approx(50.0)
    assert adoption["security-scanning"] == 0.0


def test_common_patterns_need_thirty_percent(make_repo) -> None:
    first = make_repo("first")
    first.write({"src/components/Button.jsx": "", "LICENSE": "MIT\n"})
    second = make_repo("second")
    second.write({"LICENSE": "MIT\n"})

    patterns = identify_common_patterns([str(first.path()), str(second.path())])

    assert patterns == {"structure:src/components": 50.0, "config:LICENSE": 100.0}


def test_recommendations_and_maturity() -> None:
    weak = CrossRepositoryPatterns(
        shared_technologies=frozenset({"language:python"}),
        consistency_score=40.0,
        outlier_repositories=frozenset({"legacy"}),
        best_practice_adoption={"documentation": 25.0, "code-reviews": 100.0},
        technology_distribution={},
        repository_count=2,
    )
    strong = CrossRepositoryPatterns(
        shared_technologies=frozenset(f"language:{name}" for name in "abcde"),
        consistency_score=100.0,
        outlier_repositories=frozenset(),
        best_practice_adoption={"documentation": 100.0},
        technology_distribution={},
        repository_count=3,
    )

    recommendations = generate_recommendations(weak, {})

    assert recommendations == [
        "Improve technology consistency across repositories",
        "Align outlier repositories (legacy) with organization standards",
        "Increase adoption of documentation (currently at 25%)",
        "Standardize core technologies across repositories",
        "Establish more common patterns and structures across repositories",
    ]
    assert maturity_score(strong) == 100.0
    # 40/100*30 + 62.5/100*40 + 50/100*15 + 1/5*15 = 12 + 25 + 7.5 + 3
    assert maturity_score(weak) == 48.0


def test_capabilities_and_availability() -> None:
    profiler = _profiler()

    assert "standards-compliance" in profiler.capabilities()
    assert profiler.is_available()


def test_visualize_technology_stack(make_repo) -> None:
    alpha = _service_repo(make_repo, "alpha", SPACES_LF)
    docs = make_repo("docs")
    docs.write({"guide.py": "def build_docs():\n    return 1\n"})

    distribution = _profiler().visualize_technology_stack([str(alpha.path()), str(docs.path())])

    assert distribution["framework:express"] == pytest.approx(50.0)
    assert distribution["language:python"] == pytest.approx(50.0)
