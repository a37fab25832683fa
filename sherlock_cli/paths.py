"""Path helpers: ignore patterns, glob exclusion, and directory listing."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import pathspec

logger = logging.getLogger(__name__)

DEFAULT_IGNORE: Tuple[str, ...] = (
    "node_modules",
    "dist",
    "build",
    ".git",
    "*.log",
    ".env",
    ".env.*",
)

IGNORE_FILENAME = ".gitignore"


def load_ignore_patterns(root_dir: Path) -> List[str]:
    """Built-in ignore patterns plus the lines of the root ``.gitignore``."""
    patterns = list(DEFAULT_IGNORE)
    ignore_file = Path(root_dir) / IGNORE_FILENAME
    if not ignore_file.is_file():
        return patterns
    try:
        content = ignore_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Could not read %s: %s", ignore_file, exc)
        return patterns

    for line in content.splitlines():
        line = line.strip()
        # Negations are not supported.
        if not line or line.startswith("#") or line.startswith("!"):
            continue
        patterns.append(line)
    return patterns


def _normalize_pattern(pattern: str) -> str:
    pattern = pattern.replace("\\", "/")
    if len(pattern) > 1:
        pattern = pattern.rstrip("/")
    return pattern


def is_ignored(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True if *relative_path* matches any glob in *patterns*.

    Patterns use gitignore glob rules and match case-sensitively: a
    pattern without a ``/`` matches at any depth, a leading ``/`` anchors
    it at the root, ``*`` stops at ``/`` and ``**`` spans directories. A matched
    directory also matches everything below it.
    """
    spec = _compile(tuple(patterns))
    return spec.match_file(relative_path.replace("\\", "/"))


@lru_cache(maxsize=32)
def _compile(patterns: Tuple[str, ...]) -> pathspec.PathSpec:
    lines = [p for p in (_normalize_pattern(raw) for raw in patterns) if p]
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def resolve_target_dir(path_arg: Optional[str] = None) -> Path:
    """Resolve the directory to analyse (defaults to the working directory)."""
    return Path(path_arg).expanduser().resolve() if path_arg else Path.cwd().resolve()


def is_directory(path: Path) -> bool:
    try:
        return Path(path).is_dir()
    except OSError:
        return False


def list_directories(current: Path) -> List[Tuple[str, Path]]:
    """List ``(name, path)`` for each visible subdirectory of *current*.

    ``..`` comes first unless *current* is a filesystem root. Unreadable
    directories yield only the parent entry.
    """
    current = Path(current).resolve()
    entries: List[Tuple[str, Path]] = []
    if current.parent != current:
        entries.append(("..", current.parent))

    try:
        with os.scandir(current) as it:
            names = [
                entry.name
                for entry in it
                if not entry.name.startswith(".") and entry.is_dir()
            ]
    except OSError as exc:
        logger.debug("Cannot list %s: %s", current, exc)
        return entries

    for name in sorted(names, key=str.casefold):
        entries.append((name, current / name))
    return entries


def combined_patterns(root_dir: Path, extra: Sequence[str] = ()) -> List[str]:
    return load_ignore_patterns(root_dir) + list(extra)
