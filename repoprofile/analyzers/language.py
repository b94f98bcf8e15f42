"""Language, dialect and version detection from extension, shebang and content."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import DEFAULT_MIN_CONFIDENCE, DEFAULT_SCAN_TIMEOUT_MS, ProfilingOptions
from ..deadline import Deadline
from ..logging import get_logger
from ..models import LanguageSignal
from ..stores.bounded_cache import BoundedCache
from ..walker import DEFAULT_SKIP_NAMES, iter_files, read_text, resolve_repository
from . import language_catalog as catalog
from .base import Analyzer, MetricsRecorder

_LOGGER = get_logger("analyzers.language")

MAX_CONTENT_BYTES = 1024 * 1024


@dataclass(frozen=True)
class ContentMatch:
    language: str
    confidence: float
    matches: int


def analyze_content(content: str) -> List[ContentMatch]:
    """Score ``content`` against the language catalog, best match first."""
    first_lines = "\n".join(content.split("\n")[: catalog.CONTENT_SCAN_LINES])
    matches: List[ContentMatch] = []

    interpreter = detect_shebang_language(first_lines)
    if interpreter:
        matches.append(ContentMatch(interpreter, catalog.SHEBANG_CONFIDENCE, 1))

    for pattern in catalog.LANGUAGE_PATTERNS:
        hits = sum(1 for regex in pattern.patterns if regex.search(content))
        hits += sum(2 for regex in pattern.shebang_patterns if regex.search(first_lines))
        hits += sum(1 for regex in pattern.import_patterns if regex.search(content))
        hits += sum(1 for regex in pattern.syntax_patterns if regex.search(content))
        if not hits:
            continue
        confidence = min(1.0, hits / pattern.total_units * pattern.weight)
        if confidence >= catalog.MIN_CONTENT_CONFIDENCE:
            matches.append(ContentMatch(pattern.language, confidence, hits))

    return sorted(matches, key=lambda match: match.confidence, reverse=True)


def detect_shebang_language(text: str) -> Optional[str]:
    match = catalog.SHEBANG_LINE.search(text)
    if not match:
        return None
    interpreter = match.group(1).lower()
    for needles, language in catalog.SHEBANG_INTERPRETERS:
        if any(needle in interpreter for needle in needles):
            return language
    return None


def reconcile(
    extension_language: Optional[str], matches: List[ContentMatch]
) -> Optional[Tuple[str, float]]:
    """Fuse the extension guess with content matches into one verdict."""
    extension_confidence = catalog.EXTENSION_CONFIDENCE if extension_language else 0.0
    if matches:
        top = matches[0]
        if top.language == extension_language:
            return top.language, min(catalog.AGREEMENT_CEILING, extension_confidence + top.confidence)
        if extension_language and top.confidence > catalog.CONTENT_OVERRIDE_CONFIDENCE:
            return top.language, top.confidence
        if extension_language:
            return extension_language, extension_confidence
        return top.language, top.confidence
    if extension_language:
        return extension_language, extension_confidence
    return None


def count_lines(path: Path) -> int:
    """Count lines with a full read, matching ``str.split('\\n')`` semantics."""
    newlines = 0
    try:
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(1024 * 1024), b""):
                newlines += chunk.count(b"\n")
    except OSError:
        return 0
    return newlines + 1


class LanguageDetector(Analyzer):
    """Classifies files into languages and aggregates repository percentages."""

    operation_name = "language-detection"

    def __init__(
        self,
        *,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        file_cache_size: int = 1000,
        content_cache_size: int = 100,
        result_cache_size: int = 50,
        max_content_bytes: int = MAX_CONTENT_BYTES,
        skip_names: Iterable[str] = DEFAULT_SKIP_NAMES,
    ) -> None:
        super().__init__()
        self._min_confidence = min_confidence
        self._max_content_bytes = max_content_bytes
        self._skip_names = frozenset(skip_names)
        self._file_cache: BoundedCache[str, LanguageSignal] = BoundedCache(file_cache_size)
        self._content_cache: BoundedCache[str, str] = BoundedCache(content_cache_size)
        self._result_cache: BoundedCache[Tuple[str, int, int], Tuple[LanguageSignal, ...]] = (
            BoundedCache(result_cache_size)
        )

    @property
    def min_confidence(self) -> float:
        return self._min_confidence

    def capabilities(self) -> List[str]:
        return [
            "language-detection",
            "dialect-detection",
            "version-detection",
            "confidence-scoring",
            "mixed-language-analysis",
        ]

    def analyze(
        self, path: str, options: Optional[ProfilingOptions] = None
    ) -> List[LanguageSignal]:
        """Detect the repository's languages, sorted by share descending."""
        options = (options or ProfilingOptions()).normalised()
        root = resolve_repository(path)
        recorder = MetricsRecorder(self.operation_name)
        cache_key = (str(root), options.max_depth, options.max_files)

        if options.cache_results:
            cached = self._result_cache.get(cache_key)
            if cached is not None:
                recorder.hit()
                self._record(recorder)
                return list(cached)
            recorder.miss()

        deadline = Deadline.after_ms(options.resolved_timeout_ms(DEFAULT_SCAN_TIMEOUT_MS))
        files: Dict[str, List[Path]] = {}
        lines: Dict[str, int] = {}
        confidences: Dict[str, List[float]] = {}
        accepted = 0

        for file_path in iter_files(
            root, max_depth=options.max_depth, deadline=deadline, skip_names=self._skip_names
        ):
            if accepted >= options.max_files:
                break
            signal = self._detect(file_path, recorder)
            if signal is None or signal.confidence <= self._min_confidence:
                continue
            files.setdefault(signal.language, []).append(file_path)
            lines[signal.language] = lines.get(signal.language, 0) + count_lines(file_path)
            confidences.setdefault(signal.language, []).append(signal.confidence)
            accepted += 1

        if deadline.expired():
            _LOGGER.warning("Language detection timeout reached for %s", root)

        total_lines = sum(lines.values())
        results: List[LanguageSignal] = []
        for language, language_files in files.items():
            scores = confidences[language]
            sample = language_files[0]
            results.append(
                LanguageSignal(
                    language=language,
                    confidence=sum(scores) / len(scores),
                    dialect=self.detect_dialect(language, sample),
                    version=self.detect_version(language, sample),
                    file_count=len(language_files),
                    line_count=lines[language],
                    percentage_of_repo=(lines[language] / total_lines * 100) if total_lines else 0.0,
                )
            )
        results.sort(key=lambda signal: signal.percentage_of_repo, reverse=True)

        if options.cache_results:
            self._result_cache.store(cache_key, tuple(results))
        self._record(recorder)
        _LOGGER.debug("Detected %d language(s) in %s", len(results), root)
        return results

    def detect_language(self, path: str | Path) -> Optional[LanguageSignal]:
        """Classify one file; returns ``None`` when there is no evidence at all."""
        recorder = MetricsRecorder(self.operation_name)
        signal = self._detect(Path(path), recorder)
        self._record(recorder)
        return signal

    def detect_dialect(self, language: str, path: str | Path) -> Optional[str]:
        content = self._read_content(Path(path))
        if not content:
            return None
        return _first_variant(catalog.DIALECT_PATTERNS, language, content)

    def detect_version(self, language: str, path: str | Path) -> Optional[str]:
        """Version from content patterns, else from a sibling ``package.json``."""
        file_path = Path(path)
        content = self._read_content(file_path)
        if not content:
            return None
        version = _first_variant(catalog.VERSION_PATTERNS, language, content)
        if version is not None:
            return version
        if language in {"javascript", "typescript"}:
            return _package_json_version(language, file_path.parent / "package.json")
        return None

    def calculate_confidence(self, language: str, path: str | Path) -> float:
        signal = self.detect_language(path)
        if signal is not None and signal.language == language:
            return signal.confidence
        return 0.0

    def _detect(self, path: Path, recorder: MetricsRecorder) -> Optional[LanguageSignal]:
        key = str(path)
        cached = self._file_cache.get(key)
        if cached is not None:
            recorder.hit()
            return cached
        recorder.miss()

        if catalog.is_binary_name(path.name):
            return None

        extension_language = catalog.language_for_name(path.name)
        content = self._read_content(path)
        if not content:
            if extension_language is None:
                return None
            signal = LanguageSignal(
                language=extension_language,
                confidence=catalog.EXTENSION_CONFIDENCE,
                file_count=1,
            )
            self._file_cache.store(key, signal)
            return signal

        verdict = reconcile(extension_language, analyze_content(content))
        if verdict is None:
            return None
        language, confidence = verdict
        signal = LanguageSignal(
            language=language,
            confidence=confidence,
            file_count=1,
            line_count=content.count("\n") + 1,
        )
        self._file_cache.store(key, signal)
        return signal

    def _read_content(self, path: Path) -> Optional[str]:
        key = str(path)
        cached = self._content_cache.get(key)
        if cached is not None:
            return cached
        content = read_text(path, self._max_content_bytes)
        if content is None:
            return None
        self._content_cache.store(key, content)
        return content


def _first_variant(
    variants: Iterable[catalog.VariantPattern], language: str, content: str
) -> Optional[str]:
    for variant in variants:
        if variant.language != language:
            continue
        hits = sum(1 for regex in variant.patterns if regex.search(content))
        if hits >= catalog.MIN_VARIANT_MATCHES:
            return variant.name
    return None


def _package_json_version(language: str, manifest: Path) -> Optional[str]:
    if not manifest.is_file():
        return None
    try:
        payload = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _LOGGER.debug("Ignoring unreadable %s: %s", manifest, exc)
        return None
    if not isinstance(payload, dict):
        return None

    candidates = []
    if language == "typescript":
        dev = payload.get("devDependencies")
        if isinstance(dev, dict):
            candidates.append(dev.get("typescript"))
    engines = payload.get("engines")
    if isinstance(engines, dict):
        candidates.append(engines.get("node"))

    for raw in candidates:
        if isinstance(raw, str):
            digits = re.sub(r"[^0-9.]", "", raw)
            major = digits.split(".")[0]
            if major:
                return major
    return None


__all__ = [
    "ContentMatch",
    "LanguageDetector",
    "analyze_content",
    "count_lines",
    "detect_shebang_language",
    "reconcile",
]
