"""Artifact checks behind best-practice adoption and standards compliance."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Sequence, Tuple

from .logging import get_logger

_LOGGER = get_logger("compliance")

LINTER_CONFIGS: Tuple[str, ...] = (
    ".eslintrc.js",
    ".eslintrc.json",
    ".eslintrc.yml",
    ".prettierrc.js",
    ".prettierrc.json",
    ".prettierrc.yml",
    ".mega-linter.yml",
    ".stylelintrc",
    "tslint.json",
    ".flake8",
    ".pylintrc",
    "ruff.toml",
)
SECURITY_ARTIFACTS: Tuple[str, ...] = (
    ".github/dependabot.yml",
    ".github/workflows/codeql-analysis.yml",
    ".snyk",
    "security.md",
    "SECURITY.md",
)
ACCESSIBILITY_ARTIFACTS: Tuple[str, ...] = (
    ".pa11yci",
    "a11y.config.js",
    "accessibility.md",
    "ACCESSIBILITY.md",
)
PERFORMANCE_ARTIFACTS: Tuple[str, ...] = (
    "lighthouse.config.js",
    "performance.md",
    "PERFORMANCE.md",
)
CI_CD_ARTIFACTS: Tuple[str, ...] = (
    ".github/workflows",
    ".gitlab-ci.yml",
    ".travis.yml",
    "azure-pipelines.yml",
    "Jenkinsfile",
    ".circleci/config.yml",
)
TEST_ARTIFACTS: Tuple[str, ...] = ("test", "tests", "spec", "__tests__", "*.test.js", "*.spec.js")
TEST_COVERAGE_ARTIFACTS: Tuple[str, ...] = TEST_ARTIFACTS + (
    "jest.config.js",
    "karma.conf.js",
    "cypress.json",
    "codecov.yml",
)
DOCUMENTATION_ARTIFACTS: Tuple[str, ...] = ("README.md", "CONTRIBUTING.md", "docs", "documentation")
DEPENDENCY_MANAGEMENT_ARTIFACTS: Tuple[str, ...] = (
    "package.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "requirements.txt",
    "Pipfile",
    "Gemfile",
    "go.mod",
    "Cargo.toml",
    "pom.xml",
    "build.gradle",
    ".github/dependabot.yml",
)
SECURITY_SCANNING_ARTIFACTS: Tuple[str, ...] = (
    ".github/workflows/codeql-analysis.yml",
    ".snyk",
    "security.md",
    "SECURITY.md",
)
CODE_REVIEW_ARTIFACTS: Tuple[str, ...] = (
    ".github/CODEOWNERS",
    "CODEOWNERS",
    ".github/pull_request_template.md",
)

BEST_PRACTICES: Tuple[str, ...] = (
    "linter-configuration",
    "ci-cd-integration",
    "test-coverage",
    "documentation",
    "dependency-management",
    "security-scanning",
    "code-reviews",
    "semantic-versioning",
)

STANDARDS: Dict[str, Tuple[str, ...]] = {
    "linting": LINTER_CONFIGS,
    "ci-cd": CI_CD_ARTIFACTS,
    "testing": TEST_ARTIFACTS,
    "documentation": DOCUMENTATION_ARTIFACTS,
    "security": SECURITY_ARTIFACTS,
    "accessibility": ACCESSIBILITY_ARTIFACTS,
    "performance": PERFORMANCE_ARTIFACTS,
}

_SEMVER_TAG = re.compile(r"^v?\d+\.\d+\.\d+")
_PACKAGE_VERSION = re.compile(r"^\d+\.\d+\.\d+")
_CHANGELOG_HEADING = re.compile(r"##\s+\[?\d+\.\d+\.\d+\]?")


@dataclass(frozen=True)
class RepositoryCompliance:
    """Standards adoption for a single repository (each standard 0 or 100)."""

    path: str
    name: str
    standards_adoption: Dict[str, float] = field(default_factory=dict)

    @property
    def overall(self) -> float:
        if not self.standards_adoption:
            return 0.0
        return sum(self.standards_adoption.values()) / len(self.standards_adoption)

    @property
    def security(self) -> float:
        return self.standards_adoption.get("security", 0.0)

    @property
    def accessibility(self) -> float:
        return self.standards_adoption.get("accessibility", 0.0)

    @property
    def performance(self) -> float:
        return self.standards_adoption.get("performance", 0.0)

    @property
    def missing(self) -> Tuple[str, ...]:
        return tuple(name for name, score in self.standards_adoption.items() if score == 0)


def has_artifact(root: Path, patterns: Sequence[str]) -> bool:
    """True when any pattern exists under ``root``.

    Wildcard patterns are matched against top-level entry names only; other
    patterns are treated as relative paths.
    """
    for pattern in patterns:
        if "*" in pattern:
            try:
                names = [entry.name for entry in root.iterdir()]
            except OSError as exc:
                _LOGGER.debug("Cannot list %s: %s", root, exc)
                continue
            if any(fnmatchcase(name, pattern) for name in names):
                return True
        elif (root / pattern).exists():
            return True
    return False


def uses_semantic_versioning(root: Path) -> bool:
    """Detect semver via package.json, git tags, or CHANGELOG headings."""
    manifest = root / "package.json"
    if manifest.is_file():
        try:
            payload = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            _LOGGER.debug("Ignoring unreadable %s: %s", manifest, exc)
        else:
            version = payload.get("version") if isinstance(payload, dict) else None
            if isinstance(version, str) and _PACKAGE_VERSION.match(version):
                return True

    tags = root / ".git" / "refs" / "tags"
    if tags.is_dir():
        try:
            if any(_SEMVER_TAG.match(tag.name) for tag in tags.iterdir()):
                return True
        except OSError as exc:
            _LOGGER.debug("Cannot list tags in %s: %s", tags, exc)

    changelog = root / "CHANGELOG.md"
    if changelog.is_file():
        try:
            if _CHANGELOG_HEADING.search(changelog.read_text(encoding="utf-8", errors="replace")):
                return True
        except OSError as exc:
            _LOGGER.debug("Cannot read %s: %s", changelog, exc)
    return False


def check_best_practices(root: Path) -> Dict[str, bool]:
    root = Path(root)
    return {
        "linter-configuration": has_artifact(root, LINTER_CONFIGS),
        "ci-cd-integration": has_artifact(root, CI_CD_ARTIFACTS),
        "test-coverage": has_artifact(root, TEST_COVERAGE_ARTIFACTS),
        "documentation": has_artifact(root, DOCUMENTATION_ARTIFACTS),
        "dependency-management": has_artifact(root, DEPENDENCY_MANAGEMENT_ARTIFACTS),
        "security-scanning": has_artifact(root, SECURITY_SCANNING_ARTIFACTS),
        "code-reviews": has_artifact(root, CODE_REVIEW_ARTIFACTS),
        "semantic-versioning": uses_semantic_versioning(root),
    }


def assess_repository(root: Path) -> RepositoryCompliance:
    root = Path(root)
    adoption = {
        standard: 100.0 if has_artifact(root, patterns) else 0.0
        for standard, patterns in STANDARDS.items()
    }
    return RepositoryCompliance(path=str(root), name=root.name, standards_adoption=adoption)


__all__ = [
    "BEST_PRACTICES",
    "RepositoryCompliance",
    "STANDARDS",
    "assess_repository",
    "check_best_practices",
    "has_artifact",
    "uses_semantic_versioning",
]
