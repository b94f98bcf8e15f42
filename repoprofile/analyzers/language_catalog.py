"""Declarative tables driving language, dialect and version detection."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Pattern, Tuple


@dataclass(frozen=True)
class LanguagePattern:
    """Content evidence for one language.

    Shebang patterns are tested against the first lines only and count
    double when they match.
    """

    language: str
    patterns: Tuple[Pattern[str], ...]
    shebang_patterns: Tuple[Pattern[str], ...] = ()
    import_patterns: Tuple[Pattern[str], ...] = ()
    syntax_patterns: Tuple[Pattern[str], ...] = ()
    weight: float = 1.0

    @property
    def total_units(self) -> int:
        return (
            len(self.patterns)
            + len(self.shebang_patterns)
            + len(self.import_patterns)
            + len(self.syntax_patterns)
        )


@dataclass(frozen=True)
class VariantPattern:
    """A dialect or version, accepted when two or more patterns match."""

    language: str
    name: str
    patterns: Tuple[Pattern[str], ...]


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern) for pattern in patterns)


EXTENSION_CONFIDENCE = 0.7
SHEBANG_CONFIDENCE = 0.9
AGREEMENT_CEILING = 0.95
CONTENT_OVERRIDE_CONFIDENCE = 0.8
MIN_CONTENT_CONFIDENCE = 0.3
MIN_VARIANT_MATCHES = 2
CONTENT_SCAN_LINES = 50

BINARY_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".bin",
        ".zip",
        ".tar",
        ".gz",
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".pdf",
        ".mp4",
        ".avi",
        ".mov",
    }
)

LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".pyw": "python",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cc": "cpp",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".sass": "scss",
    ".less": "less",
    ".php": "php",
    ".rb": "ruby",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".cs": "csharp",
    ".fs": "fsharp",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".xml": "xml",
    ".md": "markdown",
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
    ".ps1": "powershell",
}

# Interpreter substrings checked in order against the shebang's last word.
SHEBANG_INTERPRETERS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("node",), "javascript"),
    (("python",), "python"),
    (("ruby",), "ruby"),
    (("perl",), "perl"),
    (("bash", "sh"), "shell"),
    (("php",), "php"),
)

SHEBANG_LINE = re.compile(r"^#!.*?(\w+)\r?$", re.MULTILINE)

_CONTROL_FLOW_PARENS = r"\b(if|else|for|while|switch|try|catch)\s*\("

LANGUAGE_PATTERNS: Tuple[LanguagePattern, ...] = (
    LanguagePattern(
        language="javascript",
        patterns=_compile(
            r"\bfunction\s+\w+\s*\(",
            r"\bconst\s+\w+\s*=",
            r"\blet\s+\w+\s*=",
            r"\bvar\s+\w+\s*=",
            r"\bimport\s+.*\s+from\s+['\"]",
            r"\bexport\s+(default\s+)?(function|class|const|let|var)",
            r"\bdocument\.getElementById\(",
            r"\bconsole\.log\(",
        ),
        shebang_patterns=_compile(r"^#!.*\bnode\b"),
        import_patterns=_compile(r"\brequire\s*\(\s*['\"][^'\"]+['\"]\s*\)"),
        syntax_patterns=_compile(_CONTROL_FLOW_PARENS),
    ),
    LanguagePattern(
        language="typescript",
        patterns=_compile(
            r"\binterface\s+\w+\s*\{",
            r"\btype\s+\w+\s*=",
            r":\s*(string|number|boolean|any|void|never)\b",
            r"\bimport\s+\{[^}]*\}\s+from\s+['\"]",
            r"\bexport\s+(interface|type|class|enum)\b",
            r"\bnamespace\s+\w+\s*\{",
            r"\benum\s+\w+\s*\{",
        ),
        import_patterns=_compile(r"\bimport\s+\*\s+as\s+\w+\s+from\s+['\"]"),
        syntax_patterns=_compile(r"<\w+>\s*\("),
    ),
    LanguagePattern(
        language="python",
        patterns=_compile(
            r"\bdef\s+\w+\s*\(",
            r"\bclass\s+\w+(\s*\([\w,\s]*\))?\s*:",
            r"\bimport\s+\w+",
            r"\bfrom\s+\w+\s+import\s+",
            r"\bif\s+__name__\s*==\s*['\"]__main__['\"]\s*:",
        ),
        shebang_patterns=_compile(r"^#!.*\bpython\d*\b"),
        import_patterns=_compile(r"\bimport\s+\w+(\.\w+)*"),
        syntax_patterns=_compile(r"\b(if|elif|else|for|while|try|except|with)\s*:"),
    ),
    LanguagePattern(
        language="java",
        patterns=_compile(
            r"\bpublic\s+(class|interface|enum)\s+\w+",
            r"\bprivate\s+(static\s+)?(final\s+)?\w+\s+\w+\s*=",
            r"\bprotected\s+\w+\s+\w+\s*=",
            r"\bimport\s+\w+(\.\w+)*;",
            r"\bpackage\s+\w+(\.\w+)*;",
        ),
        import_patterns=_compile(r"\bimport\s+static\s+\w+(\.\w+)*\.\w+;"),
        syntax_patterns=_compile(_CONTROL_FLOW_PARENS),
    ),
    LanguagePattern(
        language="go",
        patterns=_compile(
            r"\bpackage\s+\w+",
            r"\bfunc\s+\w+\s*\(",
            r"\bimport\s+\(",
            r"\bimport\s+[\"']\w+[\"']",
            r"\btype\s+\w+\s+struct\s*\{",
            r"\bgo\s+func\s*\(",
        ),
        import_patterns=_compile(r"\bimport\s+\(\s*\n(\s*[\"']\w+(\.\w+)*[\"']\s*\n)+\s*\)"),
        syntax_patterns=_compile(r"\b(if|else|for|switch|select|defer)\s*\{"),
    ),
)

_PYTHON2_MARKERS = (
    r"\bprint\s+[^(]",
    r"\bxrange\s*\(",
    r"\bunicode\s*\(",
    r"\b__future__\b",
    r"\braw_input\s*\(",
)
_ES5_MARKERS = (r"\bvar\s+\w+\s*=", r"\bfunction\s+\w+\s*\(", r"\bnew\s+\w+\s*\(")
_ES6_MARKERS = (
    r"\bconst\s+\w+\s*=",
    r"\blet\s+\w+\s*=",
    r"\bclass\s+\w+\s*\{",
    r"=>\s*\{",
    r"\.\.\.\w+",
    r"\bimport\s+.*\s+from\s+['\"]",
)

DIALECT_PATTERNS: Tuple[VariantPattern, ...] = (
    VariantPattern(
        "javascript",
        "ES5",
        _compile(*_ES5_MARKERS, r"\brequire\s*\(\s*['\"][^'\"]+['\"]\s*\)"),
    ),
    VariantPattern(
        "javascript",
        "ES6+",
        _compile(*_ES6_MARKERS, r"\bimport\s*\{[^}]*\}\s*from\s*"),
    ),
    VariantPattern(
        "javascript",
        "Node.js",
        _compile(
            r"\brequire\s*\(\s*['\"][^'\"]+['\"]\s*\)",
            r"\bmodule\.exports\s*=",
            r"\bprocess\.\w+",
            r"\bfs\.\w+",
            r"\bpath\.\w+",
        ),
    ),
    VariantPattern("python", "Python2", _compile(*_PYTHON2_MARKERS)),
    VariantPattern(
        "python",
        "Python3",
        _compile(
            r"\bprint\s*\(",
            r"\binput\s*\(",
            r"\basync\s+def\s+",
            r"\bawait\s+",
            r"\bf\"[^\"]*\"",
            r"\bfrom\s+__future__\s+import\s+annotations",
        ),
    ),
)

VERSION_PATTERNS: Tuple[VariantPattern, ...] = (
    VariantPattern("javascript", "ES5", _compile(*_ES5_MARKERS)),
    VariantPattern("javascript", "ES6", _compile(*_ES6_MARKERS)),
    VariantPattern(
        "javascript",
        "ES2020",
        _compile(r"\?\?", r"\?\.", r"\bBigInt\b", r"\bPromise\.allSettled\b"),
    ),
    VariantPattern(
        "typescript",
        "2.x",
        _compile(
            r"\binterface\s+\w+\s*\{",
            r"\btype\s+\w+\s*=",
            r":\s*(string|number|boolean|any|void|never)\b",
        ),
    ),
    VariantPattern(
        "typescript",
        "3.x",
        _compile(r"\bunknown\b", r"\bReadonly\b", r"\bconst\s+enum\b"),
    ),
    VariantPattern(
        "typescript",
        "4.x",
        _compile(r"\btemplate\s+literal\s+types\b", r"\?\.\[", r"\bas\s+const\b"),
    ),
    VariantPattern("python", "2.x", _compile(*_PYTHON2_MARKERS)),
    VariantPattern(
        "python",
        "3.x",
        _compile(r"\bprint\s*\(", r"\binput\s*\(", r"\basync\s+def\s+", r"\bawait\s+"),
    ),
    VariantPattern(
        "python",
        "3.8+",
        _compile(
            r"\bf\"[^\"]*\"",
            r"\bfrom\s+__future__\s+import\s+annotations",
            r":\s*=\s*",
        ),
    ),
)


def language_for_name(file_name: str) -> Optional[str]:
    """Map a file name to a language using special names, then extension."""
    lowered = file_name.lower()
    if lowered == "dockerfile" or lowered.startswith("dockerfile."):
        return "dockerfile"
    if lowered in {"makefile", "makefile.inc"}:
        return "makefile"
    dot = lowered.rfind(".")
    if dot <= 0:
        return None
    return LANGUAGE_BY_EXTENSION.get(lowered[dot:])


def is_binary_name(file_name: str) -> bool:
    lowered = file_name.lower()
    dot = lowered.rfind(".")
    return dot > 0 and lowered[dot:] in BINARY_EXTENSIONS
