"""Tests for language, dialect and version detection."""

from __future__ import annotations

import pytest

from repoprofile.analyzers.language import (
    ContentMatch,
    LanguageDetector,
    analyze_content,
    reconcile,
)
from repoprofile.config import ProfilingOptions
from tests._fixtures.repo_builder import RepoBuilder

PYTHON_MODULE = """
import os

def main():
    print(os.getcwd())

if __name__ == "__main__":
    main()
"""


def test_reconcile_prefers_agreement_then_strong_content() -> None:
    assert reconcile("python", [ContentMatch("python", 0.5, 4)]) == ("python", 0.95)
    assert reconcile("html", [ContentMatch("javascript", 0.85, 7)]) == ("javascript", 0.85)
    assert reconcile("html", [ContentMatch("javascript", 0.5, 4)]) == ("html", 0.7)
    assert reconcile(None, [ContentMatch("go", 0.4, 3)]) == ("go", 0.4)
    assert reconcile("rust", []) == ("rust", 0.7)
    assert reconcile(None, []) is None


def test_shebang_interpreter_is_detected() -> None:
    matches = analyze_content("#!/usr/bin/env python3\nprint('x')\n")

    assert matches[0].language == "python"
    assert matches[0].confidence == pytest.approx(0.9)


def test_detect_language_fuses_extension_and_content(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"tool.py": PYTHON_MODULE, "run": "#!/usr/bin/env python3\nprint('x')\n"})
    detector = LanguageDetector()

    by_extension = detector.detect_language(repo_builder.path() / "tool.py")
    by_shebang = detector.detect_language(repo_builder.path() / "run")

    assert by_extension is not None
    assert by_extension.language == "python"
    assert by_extension.confidence == pytest.approx(0.95)
    assert by_shebang is not None
    assert by_shebang.language == "python"
    assert by_shebang.confidence == pytest.approx(0.9)


def test_content_confidence_never_exceeds_one(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "tool": """
            #!/usr/bin/env python3
            import sys
            from os import path


            class Tool(object):
                pass


            def main():
                try:
                    return path.exists(sys.argv[0])
                except IndexError:
                    return False


            if __name__ == "__main__":
                main()
            """,
        }
    )
    detector = LanguageDetector()

    signal = detector.detect_language(repo_builder.path() / "tool")
    (summary,) = detector.analyze(str(repo_builder.path()))

    assert signal is not None
    assert signal.language == "python"
    assert signal.confidence == pytest.approx(1.0)
    assert 0.0 <= summary.confidence <= 1.0


def test_binary_and_unknown_files_have_no_signal(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"logo.png": "not really a png", "notes": "plain words only\n"})
    detector = LanguageDetector()

    assert detector.detect_language(repo_builder.path() / "logo.png") is None
    assert detector.detect_language(repo_builder.path() / "notes") is None


def test_empty_file_falls_back_to_extension(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"pkg/__init__.py": ""})
    signal = LanguageDetector().detect_language(repo_builder.path() / "pkg" / "__init__.py")

    assert signal is not None
    assert signal.language == "python"
    assert signal.confidence == pytest.approx(0.7)


def test_analyze_reports_percentages_of_accepted_languages(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "app/main.py": PYTHON_MODULE,
            "app/util.py": PYTHON_MODULE,
            "web/index.js": "const x = 1;\nconsole.log(x);\n",
        }
    )
    detector = LanguageDetector()

    signals = detector.analyze(str(repo_builder.path()))

    languages = [signal.language for signal in signals]
    assert languages == ["python", "javascript"]
    assert sum(signal.percentage_of_repo for signal in signals) == pytest.approx(100.0)
    assert all(signal.confidence > detector.min_confidence for signal in signals)
    python = signals[0]
    assert python.file_count == 2
    assert python.line_count == 16


def test_analyze_caches_results(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"main.py": PYTHON_MODULE})
    detector = LanguageDetector()

    first = detector.analyze(str(repo_builder.path()))
    assert detector.performance_metrics().cache_misses >= 1
    second = detector.analyze(str(repo_builder.path()))

    assert first == second
    metrics = detector.performance_metrics()
    assert metrics.operation_name == "language-detection"
    assert metrics.cache_hits == 1
    assert metrics.cache_misses == 0


def test_analyze_without_cache_rescans(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"main.py": PYTHON_MODULE})
    detector = LanguageDetector()
    options = ProfilingOptions(cache_results=False)

    detector.analyze(str(repo_builder.path()), options)
    detector.analyze(str(repo_builder.path()), options)

    # Only the per-file cache can hit; the repository result is recomputed.
    assert detector.performance_metrics().cache_hits == 1


def test_analyze_stops_at_max_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write({f"mod_{index}.py": PYTHON_MODULE for index in range(5)})

    signals = LanguageDetector().analyze(
        str(repo_builder.path()), ProfilingOptions(max_files=2)
    )

    assert sum(signal.file_count for signal in signals) == 2


def test_dialect_and_version_need_two_patterns(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "modern.py": """
            async def fetch():
                print("fetching")
            """,
            "single.py": "print('only one marker')\n",
        }
    )
    detector = LanguageDetector()
    modern = repo_builder.path() / "modern.py"
    single = repo_builder.path() / "single.py"

    assert detector.detect_dialect("python", modern) == "Python3"
    assert detector.detect_version("python", modern) == "3.x"
    assert detector.detect_dialect("python", single) is None
    assert detector.detect_version("python", single) is None


def test_typescript_version_falls_back_to_package_json(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": '{"devDependencies": {"typescript": "^4.9.5"}}',
            "index.ts": "export const answer = 42;\n",
        }
    )
    detector = LanguageDetector()

    assert detector.detect_version("typescript", repo_builder.path() / "index.ts") == "4"


def test_calculate_confidence_is_zero_for_other_languages(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"main.py": PYTHON_MODULE})
    detector = LanguageDetector()
    path = repo_builder.path() / "main.py"

    assert detector.calculate_confidence("python", path) == pytest.approx(0.95)
    assert detector.calculate_confidence("go", path) == 0.0


def test_capabilities_are_listed() -> None:
    assert "dialect-detection" in LanguageDetector().capabilities()
