from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[[str], RepoBuilder]:
    """Build several named repositories side by side under tmp_path."""

    def _make(name: str) -> RepoBuilder:
        return RepoBuilder(tmp_path, name)

    return _make
