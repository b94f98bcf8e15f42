"""Tests for repoprofile.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from repoprofile.config import (
    ConfigError,
    ProfileConfig,
    ProfilingOptions,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ProfileConfig)
    assert config.root == tmp_path.resolve()
    assert config.max_depth is None
    assert config.exclude_dirs == []
    assert config.thresholds.min_language_confidence == 0.6
    assert config.organization.max_workers == 4
    assert config.options() == ProfilingOptions()


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".repoprofile.yml"
    config_file.write_text(
        """
options:
  max_depth: 3
  max_files: "250"
  cache_results: "no"
  timeout_ms: 5000
thresholds:
  min_language_confidence: 0.5
  min_framework_confidence: 1.7
exclude_dirs:
  - generated
  - "*.min.js"
organization:
  max_workers: 8
""",
        encoding="utf-8",
    )

    config = load_config(config_file)
    options = config.options()

    assert options == ProfilingOptions(
        max_depth=3, max_files=250, cache_results=False, timeout_ms=5000
    )
    assert config.thresholds.min_language_confidence == 0.5
    assert config.thresholds.min_framework_confidence == 1.0
    assert config.exclude_dirs == ["generated", "*.min.js"]
    assert config.organization.max_workers == 8


def test_options_overrides_win_over_file_values(tmp_path: Path) -> None:
    (tmp_path / ".repoprofile.yml").write_text(
        "options:\n  max_depth: 3\n  timeout_ms: 5000\n", encoding="utf-8"
    )
    config = load_config(tmp_path)

    options = config.options(max_depth=7, timeout_ms=None, cache_results=False)

    assert options.max_depth == 7
    assert options.timeout_ms == 5000
    assert options.cache_results is False


def test_options_rejects_unknown_keys(tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        load_config(tmp_path).options(depth=2)


def test_non_positive_values_fall_back_to_defaults() -> None:
    options = ProfilingOptions(max_depth=0, max_files=-1, timeout_ms=0).normalised()

    assert options.max_depth == 5
    assert options.max_files == 1000
    assert options.timeout_ms is None
    assert options.resolved_timeout_ms(30_000) == 30_000
    assert ProfilingOptions(timeout_ms=10).resolved_timeout_ms(30_000) == 10


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".repoprofile.yml").write_text("options: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".repoprofile.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
