"""Bounded-depth repository traversal shared by every analyzer."""

from __future__ import annotations

import os
import re
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, Iterator, Optional

from .deadline import Deadline
from .logging import get_logger

_LOGGER = get_logger("walker")

DEFAULT_SKIP_NAMES: FrozenSet[str] = frozenset(
    {
        "node_modules",
        ".git",
        ".svn",
        ".hg",
        "vendor",
        "target",
        "build",
        "dist",
        ".next",
        ".nuxt",
        "coverage",
        ".nyc_output",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".venv",
        "venv",
        ".idea",
        ".vscode",
        ".vs",
        "*.log",
        "logs",
        "tmp",
        "temp",
    }
)

_VISIBLE_DOT_DIRS = re.compile(r"^\.(github|vscode|trunk)$")


def should_skip(name: str, is_dir: bool, skip_names: Iterable[str] = DEFAULT_SKIP_NAMES) -> bool:
    """Return True when an entry is hidden or on the ignore list.

    Hidden directories are skipped except for ``.github``, ``.vscode`` and
    ``.trunk``; note ``.vscode`` is still dropped by the default ignore list.
    """
    if is_dir and name.startswith(".") and not _VISIBLE_DOT_DIRS.match(name):
        return True
    for pattern in skip_names:
        if "*" in pattern:
            if fnmatchcase(name, pattern):
                return True
        elif name == pattern:
            return True
    return False


def iter_files(
    root: Path,
    *,
    max_depth: int = 5,
    deadline: Optional[Deadline] = None,
    skip_names: Iterable[str] = DEFAULT_SKIP_NAMES,
) -> Iterator[Path]:
    """Yield files under ``root`` no deeper than ``max_depth`` directories.

    Files directly under ``root`` are depth 0. Entries are visited in sorted
    order so repeated scans see files in the same sequence. Iteration stops
    silently once ``deadline`` expires.
    """
    skip = frozenset(skip_names)
    root = Path(root)

    def _on_error(exc: OSError) -> None:
        _LOGGER.warning("Could not read directory %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        depth = 0 if current == root else len(current.relative_to(root).parts)

        if depth >= max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(name for name in dirnames if not should_skip(name, True, skip))

        for filename in sorted(filenames):
            if deadline is not None and deadline.expired():
                _LOGGER.debug("Traversal deadline reached under %s", root)
                return
            if should_skip(filename, False, skip):
                continue
            path = current / filename
            if not path.is_file():
                continue
            yield path


def walk_repository(
    root: Path,
    callback: Callable[[Path], None],
    *,
    max_depth: int = 5,
    deadline: Optional[Deadline] = None,
    skip_names: Iterable[str] = DEFAULT_SKIP_NAMES,
) -> int:
    """Invoke ``callback`` for every visited file and return the visit count."""
    visited = 0
    for path in iter_files(root, max_depth=max_depth, deadline=deadline, skip_names=skip_names):
        callback(path)
        visited += 1
    return visited


def resolve_repository(path: str | Path) -> Path:
    """Resolve a repository root, rejecting missing paths and plain files."""
    root = Path(path).expanduser().resolve()
    if not root.exists():
        raise FileNotFoundError(f"Repository path not found: {path}")
    if not root.is_dir():
        raise NotADirectoryError(f"Repository path is not a directory: {path}")
    return root


def read_text(path: Path, max_bytes: int = 1024 * 1024) -> Optional[str]:
    """Read a text file no larger than ``max_bytes``; ``None`` when skipped.

    Line endings are kept as stored on disk.
    """
    try:
        if path.stat().st_size > max_bytes:
            return None
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError as exc:
        _LOGGER.debug("Skipping unreadable file %s: %s", path, exc)
        return None


def relative_posix(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = [
    "DEFAULT_SKIP_NAMES",
    "iter_files",
    "read_text",
    "relative_posix",
    "resolve_repository",
    "should_skip",
    "walk_repository",
]
