"""Declarative framework and architecture-pattern tables."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Pattern, Tuple

NPM_SECTIONS = ("npm:dependencies", "npm:devDependencies")


@dataclass(frozen=True)
class ManifestPattern:
    """A dependency whose name matches ``name`` under any of ``sections``."""

    sections: Tuple[str, ...]
    name: Pattern[str]


@dataclass(frozen=True)
class FrameworkDefinition:
    name: str
    languages: Tuple[str, ...]
    manifest_patterns: Tuple[ManifestPattern, ...] = ()
    file_globs: Tuple[str, ...] = ()
    import_patterns: Tuple[Pattern[str], ...] = ()
    code_patterns: Tuple[Pattern[str], ...] = ()
    weight: float = 1.0

    @property
    def source_units(self) -> int:
        """Evidence classes observable while walking source files."""
        return sum(1 for group in (self.file_globs, self.import_patterns, self.code_patterns) if group)


@dataclass(frozen=True)
class ArchitectureDefinition:
    name: str
    description: str
    structure_patterns: Tuple[Pattern[str], ...] = ()
    code_patterns: Tuple[Pattern[str], ...] = ()
    # Root-relative file (or directory of YAML files) -> content pattern.
    config_patterns: Tuple[Tuple[str, Pattern[str]], ...] = ()
    weight: float = 1.0

    @property
    def total_units(self) -> int:
        return len(self.structure_patterns) + len(self.code_patterns) + len(self.config_patterns)


@dataclass(frozen=True)
class VersionRule:
    """Where to find a framework's version in one manifest type.

    ``dependency`` names a structured dependency key; ``pattern`` is searched
    in the raw manifest text and its first group is the version.
    """

    manifest: str
    dependency: Optional[str] = None
    pattern: Optional[Pattern[str]] = None


def _compile(*patterns: str, flags: int = 0) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, flags) for pattern in patterns)


def _npm(name: str) -> Tuple[ManifestPattern, ...]:
    return (ManifestPattern(NPM_SECTIONS, re.compile(f"^{re.escape(name)}$")),)


FRAMEWORKS: Tuple[FrameworkDefinition, ...] = (
    FrameworkDefinition(
        name="react",
        languages=("javascript", "typescript"),
        manifest_patterns=_npm("react"),
        file_globs=("**/*.jsx", "**/*.tsx", "**/react.config.js"),
        import_patterns=_compile(
            r"\bimport\s+React\b",
            r"\bimport\s+\{\s*[^}]*\bComponent\b[^}]*\}\s+from\s+['\"]react['\"]",
            r"\bimport\s+\{\s*[^}]*\buseState\b[^}]*\}\s+from\s+['\"]react['\"]",
        ),
        code_patterns=_compile(
            r"\bextends\s+React\.Component\b",
            r"\buseState\s*\(",
            r"\buseEffect\s*\(",
            r"\brender\s*\(\s*\)\s*\{",
        ),
    ),
    FrameworkDefinition(
        name="angular",
        languages=("javascript", "typescript"),
        manifest_patterns=_npm("@angular/core"),
        file_globs=("**/angular.json", "**/*.component.ts", "**/*.module.ts", "**/*.service.ts"),
        import_patterns=_compile(
            r"\bimport\s+\{\s*[^}]*\bComponent\b[^}]*\}\s+from\s+['\"]@angular/core['\"]",
            r"\bimport\s+\{\s*[^}]*\bNgModule\b[^}]*\}\s+from\s+['\"]@angular/core['\"]",
        ),
        code_patterns=_compile(r"@Component\s*\(\s*\{", r"@Injectable\s*\(\s*\{", r"@NgModule\s*\(\s*\{"),
    ),
    FrameworkDefinition(
        name="vue",
        languages=("javascript", "typescript"),
        manifest_patterns=_npm("vue"),
        file_globs=("**/*.vue", "**/vue.config.js"),
        import_patterns=_compile(
            r"\bimport\s+Vue\b",
            r"\bimport\s+\{\s*[^}]*\bdefineComponent\b[^}]*\}\s+from\s+['\"]vue['\"]",
        ),
        code_patterns=_compile(r"\bnew\s+Vue\s*\(", r"\bVue\.component\s*\(", r"<template>", r"<script>"),
    ),
    FrameworkDefinition(
        name="next",
        languages=("javascript", "typescript"),
        manifest_patterns=_npm("next"),
        file_globs=("**/next.config.js", "**/pages/**/*.js", "**/pages/**/*.tsx", "**/pages/api/**/*.js"),
        import_patterns=_compile(
            r"\bimport\s+\{\s*[^}]*\buseRouter\b[^}]*\}\s+from\s+['\"]next/router['\"]",
            r"\bimport\s+\{\s*[^}]*\bHead\b[^}]*\}\s+from\s+['\"]next/head['\"]",
        ),
        code_patterns=_compile(
            r"\bexport\s+default\s+function\s+\w+\s*\(\s*\{\s*[^}]*\}\s*\)",
            r"\bgetStaticProps\b",
            r"\bgetServerSideProps\b",
        ),
    ),
    FrameworkDefinition(
        name="express",
        languages=("javascript", "typescript"),
        manifest_patterns=_npm("express"),
        file_globs=("**/server.js", "**/app.js", "**/index.js"),
        import_patterns=_compile(r"\brequire\s*\(\s*['\"]express['\"]\s*\)", r"\bimport\s+express\b"),
        code_patterns=_compile(
            r"\bexpress\s*\(\s*\)",
            r"\bapp\.get\s*\(",
            r"\bapp\.post\s*\(",
            r"\bapp\.use\s*\(",
            r"\brouter\.get\s*\(",
        ),
    ),
    FrameworkDefinition(
        name="django",
        languages=("python",),
        manifest_patterns=(ManifestPattern(("pypi",), re.compile(r"^django$")),),
        file_globs=("**/manage.py", "**/settings.py", "**/urls.py", "**/wsgi.py", "**/asgi.py"),
        import_patterns=_compile(r"\bfrom\s+django\b", r"\bimport\s+django\b"),
        code_patterns=_compile(
            r"\bfrom\s+django\.db\s+import\s+models\b",
            r"\bclass\s+\w+\s*\(\s*models\.Model\s*\)",
            r"\burlpatterns\s*=",
            r"\bDJANGO_SETTINGS_MODULE\b",
        ),
    ),
    FrameworkDefinition(
        name="flask",
        languages=("python",),
        manifest_patterns=(ManifestPattern(("pypi",), re.compile(r"^flask$")),),
        file_globs=("**/app.py", "**/wsgi.py", "**/flask_app.py"),
        import_patterns=_compile(r"\bfrom\s+flask\s+import\b", r"\bimport\s+flask\b"),
        code_patterns=_compile(
            r"\bFlask\s*\(",
            r"\bapp\s*=\s*Flask\s*\(",
            r"@app\.route\s*\(",
            r"\brender_template\s*\(",
        ),
    ),
    FrameworkDefinition(
        name="spring",
        languages=("java", "kotlin"),
        manifest_patterns=(
            ManifestPattern(("maven",), re.compile(r"^org\.springframework(\.boot)?(:|$)")),
        ),
        file_globs=("**/application.properties", "**/application.yml", "**/pom.xml", "**/build.gradle"),
        import_patterns=_compile(r"\bimport\s+org\.springframework\b", r"\bimport\s+org\.springframework\.boot\b"),
        code_patterns=_compile(
            r"@SpringBootApplication\b",
            r"@RestController\b",
            r"@Service\b",
            r"@Repository\b",
            r"@Autowired\b",
        ),
    ),
    FrameworkDefinition(
        name="gin",
        languages=("go",),
        manifest_patterns=(ManifestPattern(("go",), re.compile(r"^github\.com/gin-gonic/gin$")),),
        file_globs=("**/go.mod", "**/main.go"),
        import_patterns=_compile(r"\bimport\s+[^)]*github\.com/gin-gonic/gin[^)]*\)"),
        code_patterns=_compile(
            r"\bgin\.Default\s*\(",
            r"\bgin\.New\s*\(",
            r"\brouter\s*:=\s*gin\.Default\s*\(",
            r"\br\.GET\s*\(",
            r"\br\.POST\s*\(",
        ),
    ),
    FrameworkDefinition(
        name="echo",
        languages=("go",),
        manifest_patterns=(
            ManifestPattern(("go",), re.compile(r"^github\.com/labstack/echo(/v\d+)?$")),
        ),
        file_globs=("**/go.mod", "**/main.go"),
        import_patterns=_compile(r"\bgithub\.com/labstack/echo(/v\d+)?[\"\s]"),
        code_patterns=_compile(
            r"\becho\.New\s*\(",
            r"\be\.GET\s*\(",
            r"\be\.POST\s*\(",
            r"\be\.Start\s*\(",
        ),
    ),
    FrameworkDefinition(
        name="actix-web",
        languages=("rust",),
        manifest_patterns=(ManifestPattern(("cargo",), re.compile(r"^actix-web$")),),
        file_globs=("**/Cargo.toml", "**/main.rs", "**/lib.rs"),
        import_patterns=_compile(r"\buse\s+actix_web::"),
        code_patterns=_compile(
            r"\bHttpServer::new\s*\(",
            r"\bApp::new\s*\(\)",
            r"#\[get\b",
            r"#\[post\b",
            r"\basync\s+fn\s+index\b",
        ),
    ),
    FrameworkDefinition(
        name="rocket",
        languages=("rust",),
        manifest_patterns=(ManifestPattern(("cargo",), re.compile(r"^rocket$")),),
        file_globs=("**/Cargo.toml", "**/main.rs", "**/lib.rs"),
        import_patterns=_compile(r"\buse\s+rocket::", r"\bextern\s+crate\s+rocket\b"),
        code_patterns=_compile(
            r"#\[launch\]",
            r"\brocket::build\s*\(",
            r"\broutes!\s*\[",
        ),
    ),
)

_SPRING_POM = (
    r"<spring[.-]boot\.version>([0-9.]+)</spring[.-]boot\.version>",
    r"<spring\.version>([0-9.]+)</spring\.version>",
)
_SPRING_GRADLE = (
    r"spring[.-]boot[.-]version\s*=\s*['\"]([0-9.]+)['\"]",
    r"spring[.-]version\s*=\s*['\"]([0-9.]+)['\"]",
)

VERSION_RULES: Dict[str, Tuple[VersionRule, ...]] = {
    "react": (VersionRule("package.json", dependency="react"),),
    "angular": (VersionRule("package.json", dependency="@angular/core"),),
    "vue": (VersionRule("package.json", dependency="vue"),),
    "next": (VersionRule("package.json", dependency="next"),),
    "express": (VersionRule("package.json", dependency="express"),),
    "django": (
        VersionRule(
            "requirements.txt",
            pattern=re.compile(r"^\s*django\s*[=~<>]+\s*([0-9.]+)", re.IGNORECASE | re.MULTILINE),
        ),
    ),
    "flask": (
        VersionRule(
            "requirements.txt",
            pattern=re.compile(r"^\s*flask\s*[=~<>]+\s*([0-9.]+)", re.IGNORECASE | re.MULTILINE),
        ),
    ),
    "spring": tuple(VersionRule("pom.xml", pattern=regex) for regex in _compile(*_SPRING_POM, flags=re.IGNORECASE))
    + tuple(VersionRule("build.gradle", pattern=regex) for regex in _compile(*_SPRING_GRADLE, flags=re.IGNORECASE)),
    "gin": (VersionRule("go.mod", pattern=re.compile(r"gin-gonic/gin\s+v([0-9.]+)")),),
    "echo": (VersionRule("go.mod", pattern=re.compile(r"labstack/echo/v\d+\s+v([0-9.]+)")),),
    "actix-web": (VersionRule("Cargo.toml", pattern=re.compile(r"actix-web\s*=\s*[\"']([0-9.]+)[\"']")),),
    "rocket": (VersionRule("Cargo.toml", pattern=re.compile(r"rocket\s*=\s*[\"']([0-9.]+)[\"']")),),
}

ARCHITECTURES: Tuple[ArchitectureDefinition, ...] = (
    ArchitectureDefinition(
        name="MVC",
        description="Model-View-Controller architecture pattern",
        structure_patterns=_compile(
            r"(controllers?|models?|views?)/.+\.(js|ts|py|java|rb|php)$",
            r"app/(controllers?|models?|views?)/.+\.(js|ts|py|java|rb|php)$",
            r"src/(controllers?|models?|views?)/.+\.(js|ts|py|java|rb|php)$",
        ),
        code_patterns=_compile(
            r"class\s+\w+Controller\b",
            r"class\s+\w+Model\b",
            r"\brender\s*\(\s*['\"][^'\"]+['\"]\s*,",
        ),
    ),
    ArchitectureDefinition(
        name="MVVM",
        description="Model-View-ViewModel architecture pattern",
        structure_patterns=_compile(
            r"(viewmodels?|models?)/.+\.(js|ts|cs|java|kt)$",
            r"app/(viewmodels?|models?)/.+\.(js|ts|cs|java|kt)$",
            r"src/(viewmodels?|models?)/.+\.(js|ts|cs|java|kt)$",
        ),
        code_patterns=(
            re.compile(r"class\s+\w+ViewModel\b"),
            re.compile(r"\bobservable\b"),
            re.compile(r"\bbinding\b"),
            re.compile(r"\bnotifyPropertyChanged\b", re.IGNORECASE),
        ),
    ),
    ArchitectureDefinition(
        name="Microservices",
        description="Microservices architecture with multiple independent services",
        structure_patterns=_compile(
            r"services?/.+/Dockerfile",
            r"services?/.+/package\.json",
            r"services?/.+/pom\.xml",
            r"services?/.+/go\.mod",
        ),
        config_patterns=(
            ("docker-compose.yml", re.compile(r"services:")),
            ("kubernetes", re.compile(r"apiVersion:")),
        ),
    ),
    ArchitectureDefinition(
        name="Hexagonal",
        description="Hexagonal/Clean Architecture with domain-driven design",
        structure_patterns=_compile(
            r"(core|domain|entities)/.+\.(js|ts|java|go|py)$",
            r"(adapters|ports|interfaces|infrastructure)/.+\.(js|ts|java|go|py)$",
            r"src/(core|domain|entities)/.+\.(js|ts|java|go|py)$",
        ),
        code_patterns=_compile(
            r"interface\s+\w+Repository\b",
            r"interface\s+\w+Service\b",
            r"class\s+\w+UseCase\b",
        ),
    ),
    ArchitectureDefinition(
        name="JAMstack",
        description="JavaScript, APIs, and Markup stack for static sites",
        structure_patterns=_compile(
            r"static/.+\.(html|js|css)$",
            r"content/.+\.(md|mdx|json)$",
            r"public/.+\.(html|js|css)$",
        ),
        config_patterns=(
            ("gatsby-config.js", re.compile(r"module\.exports")),
            ("next.config.js", re.compile(r"module\.exports")),
            ("nuxt.config.js", re.compile(r"export default")),
            ("netlify.toml", re.compile(r"\[build\]")),
        ),
    ),
    ArchitectureDefinition(
        name="Event-driven",
        description="Event-driven architecture with publishers and subscribers",
        structure_patterns=_compile(
            r"(events?|listeners?|subscribers?)/.+\.(js|ts|java|py|go)$",
            r"src/(events?|listeners?|subscribers?)/.+\.(js|ts|java|py|go)$",
        ),
        code_patterns=_compile(
            r"\bemit\s*\(",
            r"\bon\s*\(\s*['\"][^'\"]+['\"]",
            r"\baddEventListener\s*\(",
            r"\bpublish\s*\(",
            r"\bsubscribe\s*\(",
        ),
    ),
)

SOURCE_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    "javascript": (".js", ".jsx", ".mjs", ".cjs", ".vue"),
    "typescript": (".ts", ".tsx"),
    "python": (".py", ".pyw"),
    "java": (".java",),
    "kotlin": (".kt", ".kts"),
    "go": (".go",),
    "rust": (".rs",),
    "ruby": (".rb",),
    "php": (".php",),
    "csharp": (".cs",),
}

LANGUAGE_BY_SOURCE_EXTENSION: Dict[str, str] = {
    extension: language
    for language, extensions in SOURCE_EXTENSIONS.items()
    for extension in extensions
}


def glob_to_regex(pattern: str) -> Pattern[str]:
    """Translate a ``**``-aware path glob into an anchored regex."""
    parts = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("^" + "".join(parts) + "$")
