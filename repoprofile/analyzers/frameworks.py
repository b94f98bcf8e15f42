"""Framework and architecture-pattern detection from manifests and source idioms."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Set, Tuple

from ..config import DEFAULT_MIN_CONFIDENCE, DEFAULT_SCAN_TIMEOUT_MS, ProfilingOptions
from ..deadline import Deadline
from ..logging import get_logger
from ..models import (
    ARCHITECTURE_PREFIX,
    USAGE_ARCHITECTURE,
    USAGE_MINIMAL,
    USAGE_PRIMARY,
    USAGE_SECONDARY,
    ArchitecturePatternSignal,
    FrameworkSignal,
)
from ..stores.bounded_cache import BoundedCache
from ..walker import (
    DEFAULT_SKIP_NAMES,
    iter_files,
    read_text,
    relative_posix,
    resolve_repository,
)
from .base import Analyzer, MetricsRecorder
from .framework_catalog import (
    ARCHITECTURES,
    FRAMEWORKS,
    LANGUAGE_BY_SOURCE_EXTENSION,
    SOURCE_EXTENSIONS,
    VERSION_RULES,
    ArchitectureDefinition,
    FrameworkDefinition,
    VersionRule,
    glob_to_regex,
)
from .manifests import (
    Manifest,
    ManifestError,
    extract_version,
    is_manifest,
    load_manifests,
    manifest_languages,
    parse_manifest,
)

_LOGGER = get_logger("analyzers.frameworks")

MIN_FILE_CONFIDENCE = 0.3
MIN_LANGUAGE_FILES = 3
MAX_CONTENT_BYTES = 1024 * 1024


def usage_tier(confidence: float, file_count: int) -> str:
    """Classify how central a framework is from its confidence and file count."""
    if confidence > 0.8 and file_count > 5:
        return USAGE_PRIMARY
    if confidence > 0.6 or file_count > 2:
        return USAGE_SECONDARY
    return USAGE_MINIMAL


def fold_architecture(
    frameworks: Sequence[FrameworkSignal],
    patterns: Sequence[ArchitecturePatternSignal],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> List[FrameworkSignal]:
    """Append architecture hits to the framework list under a namespaced name."""
    folded = list(frameworks)
    for pattern in patterns:
        if pattern.confidence < min_confidence:
            continue
        folded.append(
            FrameworkSignal(
                name=f"{ARCHITECTURE_PREFIX}{pattern.pattern_name}",
                confidence=pattern.confidence,
                usage_tier=USAGE_ARCHITECTURE,
                matched_files=pattern.matched_locations,
            )
        )
    return folded


def languages_by_extension(files: Iterable[Path], minimum: int = MIN_LANGUAGE_FILES) -> List[str]:
    """Languages with at least ``minimum`` files, most frequent first."""
    counts: Dict[str, int] = {}
    for path in files:
        language = LANGUAGE_BY_SOURCE_EXTENSION.get(path.suffix.lower())
        if language:
            counts[language] = counts.get(language, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [language for language, count in ranked if count >= minimum]


@dataclass
class _Match:
    confidence: float
    files: Set[str] = field(default_factory=set)
    dependencies: Set[str] = field(default_factory=set)


class FrameworkAnalyzer(Analyzer):
    """Scores frameworks against a weighted catalog of evidence classes."""

    operation_name = "framework-detection"

    def __init__(
        self,
        *,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        result_cache_size: int = 50,
        max_content_bytes: int = MAX_CONTENT_BYTES,
        skip_names: Iterable[str] = DEFAULT_SKIP_NAMES,
        frameworks: Sequence[FrameworkDefinition] = FRAMEWORKS,
        architectures: Sequence[ArchitectureDefinition] = ARCHITECTURES,
    ) -> None:
        super().__init__()
        self._min_confidence = min_confidence
        self._max_content_bytes = max_content_bytes
        self._skip_names = frozenset(skip_names)
        self._frameworks = tuple(frameworks)
        self._architectures = tuple(architectures)
        self._globs: Dict[str, Tuple[Pattern[str], ...]] = {
            definition.name: tuple(glob_to_regex(glob) for glob in definition.file_globs)
            for definition in self._frameworks
        }
        self._result_cache: BoundedCache[tuple, Tuple[FrameworkSignal, ...]] = BoundedCache(
            result_cache_size
        )

    def capabilities(self) -> List[str]:
        return [
            "framework-detection",
            "version-detection",
            "architecture-pattern-detection",
            "dependency-analysis",
            "confidence-scoring",
        ]

    def analyze(
        self,
        path: str,
        options: Optional[ProfilingOptions] = None,
        languages: Optional[Sequence[str]] = None,
    ) -> List[FrameworkSignal]:
        """Detect frameworks and fold architecture patterns into one list.

        ``languages`` replaces the extension-count language guess when the
        caller already ran language detection. Languages implied by the
        manifests found are always added for pruning.
        """
        options = (options or ProfilingOptions()).normalised()
        root = resolve_repository(path)
        recorder = MetricsRecorder(self.operation_name)
        cache_key = (
            str(root),
            options.max_depth,
            tuple(sorted(languages)) if languages is not None else None,
        )
        if options.cache_results:
            cached = self._result_cache.get(cache_key)
            if cached is not None:
                recorder.hit()
                self._record(recorder)
                return list(cached)
            recorder.miss()

        deadline = Deadline.after_ms(options.resolved_timeout_ms(DEFAULT_SCAN_TIMEOUT_MS))
        files = list(
            iter_files(root, max_depth=options.max_depth, deadline=deadline, skip_names=self._skip_names)
        )
        manifests = [candidate for candidate in files if is_manifest(candidate)]

        detected = list(languages) if languages is not None else languages_by_extension(files)
        for language in manifest_languages(manifests):
            if language not in detected:
                detected.append(language)

        frameworks = self.detect_frameworks(
            detected, manifests, root=root, source_files=files, deadline=deadline
        )
        patterns = self._detect_architectures(root, files)
        results = fold_architecture(frameworks, patterns, self._min_confidence)

        if options.cache_results:
            self._result_cache.store(cache_key, tuple(results))
        self._record(recorder)
        _LOGGER.debug(
            "Detected %d framework signal(s) in %s using languages %s",
            len(results),
            root,
            ", ".join(detected) or "none",
        )
        return results

    def detect_frameworks(
        self,
        languages: Sequence[str],
        manifest_files: Sequence[Path | str],
        *,
        root: Optional[Path] = None,
        source_files: Optional[Sequence[Path]] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[FrameworkSignal]:
        """Merge manifest and source evidence into tiered framework signals.

        Only definitions sharing a language with ``languages`` are evaluated.
        Source files default to a walk of ``root`` when it is given.
        """
        wanted = set(languages)
        relevant = [d for d in self._frameworks if wanted.intersection(d.languages)]
        if not relevant:
            return []

        manifest_paths = [Path(item) for item in manifest_files]
        manifests = load_manifests(manifest_paths)
        matches: Dict[str, _Match] = {}

        for manifest in manifests:
            label = self._label(manifest.path, root)
            for definition in relevant:
                dependencies = _manifest_hits(definition, manifest)
                if dependencies:
                    _merge(matches, definition.name, definition.weight, {label}, dependencies)

        if source_files is None and root is not None:
            source_files = list(iter_files(root, deadline=deadline, skip_names=self._skip_names))
        extensions = {
            extension
            for language in wanted
            for extension in SOURCE_EXTENSIONS.get(language, ())
        }
        for source in source_files or ():
            if deadline is not None and deadline.expired():
                _LOGGER.warning("Framework detection timeout reached")
                break
            self._score_source(source, root, relevant, extensions, matches)

        manifest_lookup = [manifest.path for manifest in manifests]
        ranked = sorted(
            (
                (name, match)
                for name, match in matches.items()
                if match.confidence >= self._min_confidence
            ),
            key=lambda item: (-item[1].confidence, item[0]),
        )
        return [
            FrameworkSignal(
                name=name,
                confidence=match.confidence,
                usage_tier=usage_tier(match.confidence, len(match.files)),
                matched_files=frozenset(match.files),
                dependency_names=frozenset(match.dependencies),
                version=self.detect_version(name, manifest_lookup),
            )
            for name, match in ranked
        ]

    def detect_version(self, framework: str, manifest_files: Sequence[Path | str]) -> Optional[str]:
        """Return the first version found for ``framework`` across manifests."""
        rules = VERSION_RULES.get(framework, ())
        if not rules:
            return None
        for item in manifest_files:
            path = Path(item)
            for rule in rules:
                if rule.manifest.lower() != path.name.lower():
                    continue
                try:
                    version = _version_from_rule(rule, path)
                except (OSError, UnicodeDecodeError, ManifestError) as exc:
                    _LOGGER.debug("Error detecting version for %s in %s: %s", framework, path, exc)
                    continue
                if version:
                    return version
        return None

    def detect_architecture_patterns(
        self, path: str, options: Optional[ProfilingOptions] = None
    ) -> List[ArchitecturePatternSignal]:
        options = (options or ProfilingOptions()).normalised()
        root = resolve_repository(path)
        deadline = Deadline.after_ms(options.resolved_timeout_ms(DEFAULT_SCAN_TIMEOUT_MS))
        files = list(
            iter_files(root, max_depth=options.max_depth, deadline=deadline, skip_names=self._skip_names)
        )
        return self._detect_architectures(root, files)

    def _score_source(
        self,
        source: Path,
        root: Optional[Path],
        relevant: Sequence[FrameworkDefinition],
        extensions: Set[str],
        matches: Dict[str, _Match],
    ) -> None:
        label = self._label(source, root)
        content = None
        if source.suffix.lower() in extensions:
            content = read_text(source, self._max_content_bytes)

        for definition in relevant:
            units = definition.source_units
            if not units:
                continue
            matched = 0
            if any(regex.match(label) for regex in self._globs[definition.name]):
                matched += 1
            if content:
                if any(regex.search(content) for regex in definition.import_patterns):
                    matched += 1
                if any(regex.search(content) for regex in definition.code_patterns):
                    matched += 1
            if not matched:
                continue
            confidence = matched / units * definition.weight
            if confidence >= MIN_FILE_CONFIDENCE:
                _merge(matches, definition.name, confidence, {label}, set())

    def _detect_architectures(
        self, root: Path, files: Sequence[Path]
    ) -> List[ArchitecturePatternSignal]:
        relative = [relative_posix(path, root) for path in files]
        sources: List[Tuple[str, str]] = []
        if any(definition.code_patterns for definition in self._architectures):
            for path, label in zip(files, relative):
                if path.suffix.lower() not in LANGUAGE_BY_SOURCE_EXTENSION:
                    continue
                content = read_text(path, self._max_content_bytes)
                if content:
                    sources.append((label, content))

        results: List[ArchitecturePatternSignal] = []
        for definition in self._architectures:
            matched = 0
            locations: Set[str] = set()

            for regex in definition.structure_patterns:
                hit = next((label for label in relative if regex.search(label)), None)
                if hit is not None:
                    matched += 1
                    locations.add(hit)

            for regex in definition.code_patterns:
                hits = [label for label, content in sources if regex.search(content)]
                if hits:
                    matched += 1
                    locations.update(hits)

            for name, regex in definition.config_patterns:
                if _config_matches(root / name, regex, self._max_content_bytes):
                    matched += 1
                    locations.add(name)

            total = definition.total_units
            if not matched or not total:
                continue
            confidence = matched / total * definition.weight
            if confidence >= self._min_confidence:
                results.append(
                    ArchitecturePatternSignal(
                        pattern_name=definition.name,
                        confidence=confidence,
                        matched_locations=frozenset(locations),
                        description=definition.description,
                    )
                )
        results.sort(key=lambda signal: (-signal.confidence, signal.pattern_name))
        return results

    @staticmethod
    def _label(path: Path, root: Optional[Path]) -> str:
        return relative_posix(path, root) if root is not None else path.as_posix()


def _manifest_hits(definition: FrameworkDefinition, manifest: Manifest) -> Set[str]:
    hits: Set[str] = set()
    for pattern in definition.manifest_patterns:
        for section in pattern.sections:
            hits.update(name for name in manifest.dependencies(section) if pattern.name.search(name))
    return hits


def _merge(
    matches: Dict[str, _Match],
    name: str,
    confidence: float,
    files: Set[str],
    dependencies: Set[str],
) -> None:
    existing = matches.get(name)
    if existing is None:
        matches[name] = _Match(confidence=confidence, files=set(files), dependencies=set(dependencies))
        return
    existing.confidence = max(existing.confidence, confidence)
    existing.files.update(files)
    existing.dependencies.update(dependencies)


def _version_from_rule(rule: VersionRule, path: Path) -> Optional[str]:
    if rule.dependency is not None:
        manifest = parse_manifest(path)
        merged: Dict[str, str] = {}
        for deps in manifest.sections.values():
            merged.update(deps)
        spec = merged.get(rule.dependency)
        return extract_version(spec) if spec else None
    if rule.pattern is None:
        return None
    match = rule.pattern.search(path.read_text(encoding="utf-8"))
    return match.group(1) if match else None


def _config_matches(target: Path, regex: Pattern[str], max_bytes: int) -> bool:
    if target.is_file():
        content = read_text(target, max_bytes)
        return bool(content and regex.search(content))
    if target.is_dir():
        for candidate in sorted(target.iterdir()):
            if candidate.suffix.lower() in {".yml", ".yaml"} and candidate.is_file():
                content = read_text(candidate, max_bytes)
                if content and regex.search(content):
                    return True
    return False


__all__ = [
    "FrameworkAnalyzer",
    "fold_architecture",
    "languages_by_extension",
    "usage_tier",
]
