"""Configuration loading for repoprofile (.repoprofile.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".repoprofile.yml"

DEFAULT_MAX_DEPTH = 5
DEFAULT_MAX_FILES = 1000
DEFAULT_SCAN_TIMEOUT_MS = 30_000
DEFAULT_TEAM_TIMEOUT_MS = 60_000
DEFAULT_ORGANIZATION_TIMEOUT_MS = 120_000
DEFAULT_MIN_CONFIDENCE = 0.6
DEFAULT_MAX_WORKERS = 4


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class ProfilingOptions:
    """Per-call options shared by every analyzer.

    ``timeout_ms`` of ``None`` means "use the analyzer's own default".
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    max_files: int = DEFAULT_MAX_FILES
    cache_results: bool = True
    timeout_ms: Optional[int] = None

    def resolved_timeout_ms(self, default_ms: int) -> int:
        if self.timeout_ms is None or self.timeout_ms <= 0:
            return default_ms
        return self.timeout_ms

    def normalised(self) -> "ProfilingOptions":
        """Replace non-positive limits with their defaults."""
        return replace(
            self,
            max_depth=self.max_depth if self.max_depth and self.max_depth > 0 else DEFAULT_MAX_DEPTH,
            max_files=self.max_files if self.max_files and self.max_files > 0 else DEFAULT_MAX_FILES,
            timeout_ms=self.timeout_ms if self.timeout_ms and self.timeout_ms > 0 else None,
        )


@dataclass
class ThresholdConfig:
    min_language_confidence: float = DEFAULT_MIN_CONFIDENCE
    min_framework_confidence: float = DEFAULT_MIN_CONFIDENCE


@dataclass
class OrganizationConfig:
    max_workers: int = DEFAULT_MAX_WORKERS


@dataclass
class ProfileConfig:
    """Represents the settings defined in .repoprofile.yml."""

    root: Path
    max_depth: Optional[int] = None
    max_files: Optional[int] = None
    cache_results: Optional[bool] = None
    timeout_ms: Optional[int] = None
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    exclude_dirs: List[str] = field(default_factory=list)
    organization: OrganizationConfig = field(default_factory=OrganizationConfig)

    def options(self, **overrides: Any) -> ProfilingOptions:
        """Build options from the file, letting non-``None`` overrides win."""
        values: Dict[str, Any] = {
            "max_depth": self.max_depth,
            "max_files": self.max_files,
            "cache_results": self.cache_results,
            "timeout_ms": self.timeout_ms,
        }
        for key, value in overrides.items():
            if key not in values:
                raise TypeError(f"Unknown profiling option: {key}")
            if value is not None:
                values[key] = value
        return ProfilingOptions(
            max_depth=values["max_depth"] or DEFAULT_MAX_DEPTH,
            max_files=values["max_files"] or DEFAULT_MAX_FILES,
            cache_results=True if values["cache_results"] is None else values["cache_results"],
            timeout_ms=values["timeout_ms"],
        ).normalised()


def load_config(config_path: Path) -> ProfileConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ProfileConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    options_data = _as_dict(data.get("options"))
    thresholds_data = _as_dict(data.get("thresholds"))
    thresholds = ThresholdConfig()
    if thresholds_data:
        language = _as_float(thresholds_data.get("min_language_confidence"))
        framework = _as_float(thresholds_data.get("min_framework_confidence"))
        if language is not None:
            thresholds.min_language_confidence = _clamp_unit(language)
        if framework is not None:
            thresholds.min_framework_confidence = _clamp_unit(framework)

    organization = OrganizationConfig()
    organization_data = _as_dict(data.get("organization"))
    workers = _as_int(organization_data.get("max_workers")) if organization_data else None
    if workers is not None and workers > 0:
        organization.max_workers = workers

    return ProfileConfig(
        root=root,
        max_depth=_positive(_as_int(options_data.get("max_depth"))),
        max_files=_positive(_as_int(options_data.get("max_files"))),
        cache_results=_as_bool(options_data.get("cache_results")),
        timeout_ms=_positive(_as_int(options_data.get("timeout_ms"))),
        thresholds=thresholds,
        exclude_dirs=_as_str_list(data.get("exclude_dirs")),
        organization=organization,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def _positive(value: Optional[int]) -> Optional[int]:
    if value is None or value <= 0:
        return None
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "OrganizationConfig",
    "ProfileConfig",
    "ProfilingOptions",
    "ThresholdConfig",
    "load_config",
]
