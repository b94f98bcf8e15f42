from __future__ import annotations

from repoprofile.analyzers.conventions import (
    ConventionStats,
    brace_style,
    classify_name,
    naming_convention,
    preferences_from_stats,
    scan_conventions,
)
from tests._fixtures.repo_builder import RepoBuilder

TWO_SPACE_JS = """
function greetUser(name) {
  const greetingMessage = `hi ${name}`;
  console.log(greetingMessage);
}

const itemList = [
  1,
  2,
];

const appConfig = {
  debug: true,
  verbose: false,
};
"""

TAB_CRLF_PY = "def load_items():\r\n\treturn []\r\n\r\nclass ItemStore:\r\n\tpass\r\n"


def test_classify_name_recognises_each_convention() -> None:
    assert classify_name("userName") == "camelCase"
    assert classify_name("UserName") == "PascalCase"
    assert classify_name("user_name") == "snake_case"
    assert classify_name("user-name") == "kebab-case"
    assert classify_name("MAX_SIZE") == "SCREAMING_SNAKE_CASE"
    assert classify_name("value") is None


def test_naming_convention_plurality_and_ties() -> None:
    assert naming_convention([]) == "unknown"
    assert naming_convention(["value", "item"]) == "mixed"
    assert naming_convention(["userName", "itemCount", "user_name"]) == "camelCase"
    assert naming_convention(["userName", "user_name"]) == "mixed"


def test_brace_style() -> None:
    assert brace_style(0, 0) == "unknown"
    assert brace_style(3, 1) == "same-line"
    assert brace_style(1, 3) == "new-line"
    assert brace_style(2, 2) == "mixed"


def test_two_space_javascript_preferences(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/app.js": TWO_SPACE_JS})

    preferences = preferences_from_stats(scan_conventions(repo_builder.path()))

    assert preferences.indentation_style == "spaces"
    assert preferences.indent_size == 2
    assert preferences.line_ending_style == "LF"
    assert preferences.brace_style == "same-line"
    assert preferences.trailing_commas is True
    assert preferences.semicolons is True
    assert preferences.naming_conventions["variables"] == "camelCase"
    assert preferences.naming_conventions["functions"] == "camelCase"
    assert preferences.naming_conventions["classes"] == "unknown"
    assert preferences.patterns == (
        "Uses spaces for indentation",
        "Prefers LF line endings",
        "Uses same-line brace style",
        "Uses trailing commas",
        "Uses semicolons",
    )


def test_tab_crlf_python_preferences(repo_builder: RepoBuilder) -> None:
    repo_builder.write_raw("store.py", TAB_CRLF_PY)

    stats = scan_conventions(repo_builder.path())
    preferences = preferences_from_stats(stats)

    assert stats.tab_lines == 2
    assert stats.crlf_files == 1
    assert preferences.indentation_style == "tabs"
    assert preferences.indent_size == 4
    assert preferences.line_ending_style == "CRLF"
    assert preferences.brace_style == "unknown"
    assert preferences.naming_conventions["functions"] == "snake_case"
    assert preferences.naming_conventions["classes"] == "PascalCase"
    assert "Avoids trailing commas" in preferences.patterns
    assert "Avoids semicolons" in preferences.patterns
    assert not any("brace" in pattern for pattern in preferences.patterns)


def test_module_constants_are_screaming_snake_case() -> None:
    stats = ConventionStats()
    stats.add("MAX_SIZE = 10\nTIMEOUT = 5\n")

    assert stats.names["constants"] == ["MAX_SIZE", "TIMEOUT"]
    assert naming_convention(stats.names["constants"]) == "SCREAMING_SNAKE_CASE"


def test_no_source_files_yields_unknown_preferences(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"README.md": "# Title\n", "data.csv": "a,b\n"})

    preferences = preferences_from_stats(scan_conventions(repo_builder.path()))

    assert preferences.indentation_style == "unknown"
    assert preferences.patterns == ()


def test_scan_respects_max_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write({f"mod_{index}.py": "x = 1\n" for index in range(4)})

    stats = scan_conventions(repo_builder.path(), max_files=2)

    assert stats.files_sampled == 2
