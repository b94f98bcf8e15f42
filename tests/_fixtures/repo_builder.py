"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping


class RepoBuilder:
    """Utility for writing files into throwaway repositories."""

    def __init__(self, tmp_path: Path, name: str = "repo") -> None:
        self.root = tmp_path / name
        self.root.mkdir(parents=True)

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_raw(self, relative: str, content: str) -> None:
        """Write content byte-for-byte, keeping tabs and CRLF line endings."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))

    def mark_git(self) -> None:
        """Create an empty .git directory so the root looks like a checkout."""
        (self.root / ".git").mkdir(exist_ok=True)

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder"]
