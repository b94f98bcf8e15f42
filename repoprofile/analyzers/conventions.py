"""Formatting and naming conventions sampled from source files."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..deadline import Deadline
from ..models import TeamPreferences
from ..walker import DEFAULT_SKIP_NAMES, iter_files, read_text

SAMPLED_EXTENSIONS = frozenset(
    {".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".go", ".rb", ".php", ".cs"}
)

DEFAULT_INDENT_SIZE = 4

CAMEL_CASE = "camelCase"
PASCAL_CASE = "PascalCase"
SNAKE_CASE = "snake_case"
KEBAB_CASE = "kebab-case"
SCREAMING_SNAKE_CASE = "SCREAMING_SNAKE_CASE"

_NAMING_RULES = (
    (CAMEL_CASE, re.compile(r"^[a-z][a-z0-9]*(?:[A-Z][a-z0-9]*)+$")),
    (PASCAL_CASE, re.compile(r"^[A-Z][a-z0-9]+(?:[A-Z][a-z0-9]*)*$")),
    (SNAKE_CASE, re.compile(r"^[a-z][a-z0-9]*(?:_[a-z0-9]+)+$")),
    (KEBAB_CASE, re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)+$")),
    (SCREAMING_SNAKE_CASE, re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)+$")),
)

_TAB_INDENT = re.compile(r"^\t+", re.MULTILINE)
_SPACE_INDENT = re.compile(r"^ +(?=\S)", re.MULTILINE)

_VARIABLE = re.compile(r"\b(?:let|var|const)\s+([A-Za-z_$][\w$]*)\s*=")
_FUNCTION = re.compile(r"\b(?:function|def|func)\s+([A-Za-z_$][\w$]*)\s*\(")
_CLASS = re.compile(r"\b(?:class|interface|struct)\s+([A-Za-z_$][\w$]*)")
_JS_CONSTANT = re.compile(r"\bconst\s+([A-Z][A-Z0-9_]*)\s*=")
_MODULE_CONSTANT = re.compile(r"^([A-Z][A-Z0-9_]*)\s*=", re.MULTILINE)

_BRACE_SAME_LINE = re.compile(r"\)[ \t]*\{")
_BRACE_NEW_LINE = re.compile(r"\)[ \t]*\r?\n\s*\{")

_TRAILING_COMMA = re.compile(r",[ \t]*\r?\n\s*[}\])]")
_NO_TRAILING_COMMA = re.compile(r"[^,\s{\[(][ \t]*\r?\n\s*[}\])]")

_COMMENT_PREFIXES = ("//", "#", "/*", "*", "--")
_OPEN_ENDINGS = ("{", "}", ",", "(", "[", ":", "\\", "=>", "+", "&&", "||")


@dataclass
class ConventionStats:
    """Raw counters collected while sampling files."""

    files_sampled: int = 0
    tab_lines: int = 0
    space_lines: int = 0
    indent_sizes: Counter = field(default_factory=Counter)
    crlf_files: int = 0
    lf_files: int = 0
    max_line_length: int = 0
    names: Dict[str, List[str]] = field(
        default_factory=lambda: {"variables": [], "functions": [], "classes": [], "constants": []}
    )
    same_line_braces: int = 0
    new_line_braces: int = 0
    trailing_commas: int = 0
    no_trailing_commas: int = 0
    semicolon_lines: int = 0
    bare_lines: int = 0

    def add(self, content: str) -> None:
        self.files_sampled += 1

        self.tab_lines += len(_TAB_INDENT.findall(content))
        for indent in _SPACE_INDENT.findall(content):
            self.space_lines += 1
            self.indent_sizes[len(indent)] += 1

        if "\r\n" in content:
            self.crlf_files += 1
        else:
            self.lf_files += 1

        lines = content.splitlines()
        if lines:
            self.max_line_length = max(self.max_line_length, max(len(line) for line in lines))

        constants = _JS_CONSTANT.findall(content) + _MODULE_CONSTANT.findall(content)
        self.names["constants"].extend(constants)
        self.names["variables"].extend(
            name for name in _VARIABLE.findall(content) if not name.isupper()
        )
        self.names["functions"].extend(_FUNCTION.findall(content))
        self.names["classes"].extend(_CLASS.findall(content))

        self.same_line_braces += len(_BRACE_SAME_LINE.findall(content))
        self.new_line_braces += len(_BRACE_NEW_LINE.findall(content))

        self.trailing_commas += len(_TRAILING_COMMA.findall(content))
        self.no_trailing_commas += len(_NO_TRAILING_COMMA.findall(content))

        for line in lines:
            stripped = line.strip()
            if not stripped or stripped.startswith(_COMMENT_PREFIXES):
                continue
            if stripped.endswith(";"):
                self.semicolon_lines += 1
            elif not stripped.endswith(_OPEN_ENDINGS):
                self.bare_lines += 1


def classify_name(name: str) -> Optional[str]:
    """Return the naming convention ``name`` follows, or ``None`` if ambiguous.

    Single lowercase words such as ``value`` fit several conventions and are
    left unclassified.
    """
    for convention, pattern in _NAMING_RULES:
        if pattern.match(name):
            return convention
    return None


def naming_convention(names: Iterable[str]) -> str:
    """Plurality convention across ``names``.

    ``unknown`` when there are no names, ``mixed`` when nothing could be
    classified or the top two conventions tie.
    """
    names = list(names)
    if not names:
        return "unknown"
    counts = Counter(
        convention for convention in (classify_name(name) for name in names) if convention
    )
    ranked = counts.most_common(2)
    if not ranked:
        return "mixed"
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return "mixed"
    return ranked[0][0]


def brace_style(same_line: int, new_line: int) -> str:
    if same_line == 0 and new_line == 0:
        return "unknown"
    if same_line > new_line:
        return "same-line"
    if new_line > same_line:
        return "new-line"
    return "mixed"


def scan_conventions(
    root: Path,
    *,
    max_depth: int = 5,
    max_files: int = 1000,
    deadline: Optional[Deadline] = None,
    skip_names: Iterable[str] = DEFAULT_SKIP_NAMES,
    max_bytes: int = 1024 * 1024,
) -> ConventionStats:
    """Sample up to ``max_files`` source files under ``root``."""
    stats = ConventionStats()
    for path in iter_files(root, max_depth=max_depth, deadline=deadline, skip_names=skip_names):
        if stats.files_sampled >= max_files:
            break
        if path.suffix.lower() not in SAMPLED_EXTENSIONS:
            continue
        content = read_text(path, max_bytes)
        if content is None:
            continue
        stats.add(content)
    return stats


def preferences_from_stats(stats: ConventionStats) -> TeamPreferences:
    """Turn raw counters into ``TeamPreferences`` without commit habits."""
    if stats.files_sampled == 0:
        return TeamPreferences()

    indentation = "tabs" if stats.tab_lines > stats.space_lines else "spaces"
    indent_size = DEFAULT_INDENT_SIZE
    if stats.indent_sizes:
        indent_size = stats.indent_sizes.most_common(1)[0][0]
    line_endings = "CRLF" if stats.crlf_files > stats.lf_files else "LF"
    braces = brace_style(stats.same_line_braces, stats.new_line_braces)
    trailing = stats.trailing_commas > stats.no_trailing_commas
    semicolons = stats.semicolon_lines > stats.bare_lines

    naming = {kind: naming_convention(names) for kind, names in stats.names.items()}

    patterns = [
        f"Uses {indentation} for indentation",
        f"Prefers {line_endings} line endings",
    ]
    if braces not in {"unknown", "mixed"}:
        patterns.append(f"Uses {braces} brace style")
    patterns.append("Uses trailing commas" if trailing else "Avoids trailing commas")
    patterns.append("Uses semicolons" if semicolons else "Avoids semicolons")

    return TeamPreferences(
        indentation_style=indentation,
        indent_size=indent_size,
        line_ending_style=line_endings,
        naming_conventions=naming,
        brace_style=braces,
        trailing_commas=trailing,
        semicolons=semicolons,
        patterns=tuple(patterns),
    )


__all__ = [
    "ConventionStats",
    "SAMPLED_EXTENSIONS",
    "brace_style",
    "classify_name",
    "naming_convention",
    "preferences_from_stats",
    "scan_conventions",
]
