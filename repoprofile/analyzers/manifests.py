"""Dependency-manifest discovery and parsing shared by framework detection.

Every parser reduces its manifest to ``{section: {dependency: version_spec}}``
with lower-cased dependency names. Sections are ecosystem-qualified
(``npm:dependencies``, ``pypi``, ``maven``, ...) so one framework catalog can
address them uniformly.
"""

from __future__ import annotations

import json
import re
import tomllib
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..logging import get_logger

_LOGGER = get_logger("analyzers.manifests")

MANIFEST_LANGUAGES: Dict[str, str] = {
    "package.json": "javascript",
    "requirements.txt": "python",
    "pyproject.toml": "python",
    "Pipfile": "python",
    "pom.xml": "java",
    "build.gradle": "java",
    "build.gradle.kts": "kotlin",
    "Cargo.toml": "rust",
    "go.mod": "go",
    "composer.json": "php",
    "Gemfile": "ruby",
}

MANIFEST_NAMES = frozenset(MANIFEST_LANGUAGES)

_VERSION_NUMBER = re.compile(r"[\^~>=]*([0-9]+\.[0-9]+\.[0-9]+)")


class ManifestError(ValueError):
    """Raised when a manifest exists but its content cannot be parsed."""


@dataclass(frozen=True)
class Manifest:
    path: Path
    sections: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.path.name

    def dependencies(self, section: str) -> Dict[str, str]:
        return self.sections.get(section, {})


def is_manifest(path: Path) -> bool:
    return path.name in MANIFEST_NAMES


def manifest_languages(paths: Iterable[Path]) -> List[str]:
    """Languages implied by the ecosystems of the given manifests."""
    languages: List[str] = []
    for path in paths:
        language = MANIFEST_LANGUAGES.get(Path(path).name)
        if language and language not in languages:
            languages.append(language)
    return languages


def extract_version(spec: str) -> Optional[str]:
    """Return the first ``major.minor.patch`` found in a version range."""
    match = _VERSION_NUMBER.search(spec)
    return match.group(1) if match else None


def parse_manifest(path: Path) -> Manifest:
    """Parse a manifest file; raises ``ManifestError`` on malformed content."""
    parser = _PARSERS.get(path.name)
    if parser is None:
        raise ManifestError(f"Unsupported manifest: {path.name}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Could not read {path}: {exc}") from exc
    return Manifest(path=path, sections=parser(text))


def load_manifests(paths: Iterable[Path]) -> List[Manifest]:
    """Parse every manifest, skipping the ones that fail."""
    manifests: List[Manifest] = []
    for path in paths:
        try:
            manifests.append(parse_manifest(Path(path)))
        except ManifestError as exc:
            _LOGGER.warning("Skipping manifest %s: %s", path, exc)
    return manifests


# Node.js / PHP helpers


def _load_json_object(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(str(exc)) from exc
    if not isinstance(data, dict):
        raise ManifestError("expected a JSON object at the root")
    return data


def _string_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(key).lower(): str(spec) for key, spec in value.items()}


def _parse_package_json(text: str) -> Dict[str, Dict[str, str]]:
    data = _load_json_object(text)
    return {
        f"npm:{key}": _string_map(data.get(key))
        for key in ("dependencies", "devDependencies", "peerDependencies")
        if isinstance(data.get(key), dict)
    }


def _parse_composer_json(text: str) -> Dict[str, Dict[str, str]]:
    data = _load_json_object(text)
    deps = _string_map(data.get("require"))
    deps.update(_string_map(data.get("require-dev")))
    return {"composer": deps}


# Python helpers

_REQUIREMENT = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)\s*(\[[^\]]*\])?\s*([^;]*)")


def _split_requirement(line: str) -> Optional[tuple[str, str]]:
    match = _REQUIREMENT.match(line.strip())
    if not match:
        return None
    return match.group(1).lower(), match.group(3).strip()


def _parse_requirements(text: str) -> Dict[str, Dict[str, str]]:
    deps: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.split("#", 1)[0].strip()
        if not stripped or stripped.startswith("-"):
            continue
        parsed = _split_requirement(stripped)
        if parsed:
            deps[parsed[0]] = parsed[1]
    return {"pypi": deps}


def _load_toml(text: str) -> Dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(str(exc)) from exc


def _toml_dependency_table(value: Any) -> Dict[str, str]:
    deps: Dict[str, str] = {}
    if not isinstance(value, dict):
        return deps
    for name, spec in value.items():
        if isinstance(spec, dict):
            spec = spec.get("version", "")
        deps[str(name).lower()] = str(spec) if isinstance(spec, (str, int, float)) else ""
    return deps


def _parse_pyproject(text: str) -> Dict[str, Dict[str, str]]:
    data = _load_toml(text)
    deps: Dict[str, str] = {}

    project = data.get("project")
    if isinstance(project, dict):
        requirements = list(project.get("dependencies", []) or [])
        optional = project.get("optional-dependencies", {}) or {}
        if isinstance(optional, dict):
            for values in optional.values():
                requirements.extend(values or [])
        for requirement in requirements:
            if isinstance(requirement, str):
                parsed = _split_requirement(requirement)
                if parsed:
                    deps[parsed[0]] = parsed[1]

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    if isinstance(poetry, dict):
        deps.update(_toml_dependency_table(poetry.get("dependencies")))
        deps.update(_toml_dependency_table(poetry.get("dev-dependencies")))
        groups = poetry.get("group")
        if isinstance(groups, dict):
            for group in groups.values():
                if isinstance(group, dict):
                    deps.update(_toml_dependency_table(group.get("dependencies")))
    deps.pop("python", None)
    return {"pypi": deps}


def _parse_pipfile(text: str) -> Dict[str, Dict[str, str]]:
    data = _load_toml(text)
    deps = _toml_dependency_table(data.get("packages"))
    deps.update(_toml_dependency_table(data.get("dev-packages")))
    return {"pypi": deps}


# Java helpers


def _parse_pom(text: str) -> Dict[str, Dict[str, str]]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ManifestError(str(exc)) from exc

    match = re.match(r"\{(.+)}", root.tag)
    prefix = f"{{{match.group(1)}}}" if match else ""
    deps: Dict[str, str] = {}
    candidates = list(root.iter(f"{prefix}dependency"))
    parent = root.find(f"{prefix}parent")
    if parent is not None:
        candidates.append(parent)
    for element in candidates:
        group = (element.findtext(f"{prefix}groupId") or "").strip()
        artifact = (element.findtext(f"{prefix}artifactId") or "").strip()
        if group and artifact:
            version = (element.findtext(f"{prefix}version") or "").strip()
            deps[f"{group}:{artifact}".lower()] = version
    return {"maven": deps}


_GRADLE_DEPENDENCY = re.compile(
    r"\b(?:implementation|api|compileOnly|runtimeOnly|testImplementation|compile|"
    r"testCompile|annotationProcessor|developmentOnly)\s*\(?\s*['\"]"
    r"([\w.\-]+):([\w.\-]+)(?::([^'\"]+))?['\"]"
)
_GRADLE_PLUGIN = re.compile(r"\bid\s*\(?\s*['\"]([\w.\-]+)['\"]\s*\)?(?:\s*version\s*['\"]([^'\"]+)['\"])?")


def _parse_gradle(text: str) -> Dict[str, Dict[str, str]]:
    deps: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue
        dependency = _GRADLE_DEPENDENCY.search(stripped)
        if dependency:
            deps[f"{dependency.group(1)}:{dependency.group(2)}".lower()] = dependency.group(3) or ""
            continue
        plugin = _GRADLE_PLUGIN.search(stripped)
        if plugin:
            deps[plugin.group(1).lower()] = plugin.group(2) or ""
    return {"maven": deps}


# Go / Rust / Ruby helpers

_GO_REQUIREMENT = re.compile(r"^([^\s]+)\s+(v[^\s]+)")


def _parse_go_mod(text: str) -> Dict[str, Dict[str, str]]:
    deps: Dict[str, str] = {}
    in_block = False
    for line in text.splitlines():
        stripped = line.split("//", 1)[0].strip()
        if not stripped:
            continue
        if in_block:
            if stripped == ")":
                in_block = False
                continue
            entry = stripped
        elif stripped.startswith("require"):
            remainder = stripped[len("require") :].strip()
            if remainder == "(":
                in_block = True
                continue
            entry = remainder
        else:
            continue
        match = _GO_REQUIREMENT.match(entry)
        if match:
            deps[match.group(1).lower()] = match.group(2)
    return {"go": deps}


def _parse_cargo(text: str) -> Dict[str, Dict[str, str]]:
    data = _load_toml(text)
    deps: Dict[str, str] = {}
    for key in ("dependencies", "dev-dependencies", "build-dependencies"):
        deps.update(_toml_dependency_table(data.get(key)))
    return {"cargo": deps}


_GEM = re.compile(r"^\s*gem\s+['\"]([^'\"]+)['\"](?:\s*,\s*['\"]([^'\"]+)['\"])?")


def _parse_gemfile(text: str) -> Dict[str, Dict[str, str]]:
    deps: Dict[str, str] = {}
    for line in text.splitlines():
        match = _GEM.match(line)
        if match:
            deps[match.group(1).lower()] = match.group(2) or ""
    return {"rubygems": deps}


_PARSERS: Dict[str, Callable[[str], Dict[str, Dict[str, str]]]] = {
    "package.json": _parse_package_json,
    "requirements.txt": _parse_requirements,
    "pyproject.toml": _parse_pyproject,
    "Pipfile": _parse_pipfile,
    "pom.xml": _parse_pom,
    "build.gradle": _parse_gradle,
    "build.gradle.kts": _parse_gradle,
    "Cargo.toml": _parse_cargo,
    "go.mod": _parse_go_mod,
    "composer.json": _parse_composer_json,
    "Gemfile": _parse_gemfile,
}


__all__ = [
    "MANIFEST_LANGUAGES",
    "MANIFEST_NAMES",
    "Manifest",
    "ManifestError",
    "extract_version",
    "is_manifest",
    "load_manifests",
    "manifest_languages",
    "parse_manifest",
]
