"""Repository indexer: walk a directory tree and read eligible text files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import FrozenSet, List, Optional, Sequence, Union

from .models import IndexedFile, IndexResult, Skipped
from .paths import combined_patterns, is_ignored

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS: FrozenSet[str] = frozenset({
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".rb", ".go", ".rs", ".java", ".kt",
    ".c", ".cpp", ".h", ".hpp", ".cs", ".php",
    ".md", ".json", ".yaml", ".yml", ".html", ".css", ".scss",
})


def file_extension(name: str) -> str:
    """Lower-cased text after the last dot, with the dot; ``""`` when none.

    Unlike :attr:`Path.suffix`, a dotfile such as ``.gitignore`` reports
    ``.gitignore`` and is therefore not treated as extension-less.
    """
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


def _collect_files(
    directory: Path,
    root_dir: Path,
    patterns: Sequence[str],
    acc: List[Path],
    skipped: List[Skipped],
) -> None:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        logger.debug("Skipping unreadable directory %s: %s", directory, exc)
        skipped.append(Skipped(str(directory), f"unreadable directory: {exc}"))
        return

    for entry in entries:
        full_path = Path(entry.path)
        rel_path = full_path.relative_to(root_dir).as_posix()
        if is_ignored(rel_path, patterns):
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                _collect_files(full_path, root_dir, patterns, acc, skipped)
            elif entry.is_file(follow_symlinks=False):
                ext = file_extension(entry.name)
                if not ext or ext in TEXT_EXTENSIONS:
                    acc.append(full_path)
        except OSError as exc:
            skipped.append(Skipped(str(full_path), f"stat failed: {exc}"))


def read_indexed_file(file_path: Path, root_dir: Path) -> Union[IndexedFile, Skipped]:
    """Read one file as UTF-8 text, or report why it was skipped."""
    try:
        content = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return Skipped(str(file_path), "not UTF-8 text")
    except OSError as exc:
        return Skipped(str(file_path), f"unreadable: {exc}")
    if "\x00" in content:
        return Skipped(str(file_path), "binary content")

    ext = file_extension(file_path.name)
    return IndexedFile(
        path=str(file_path),
        relative_path=file_path.relative_to(root_dir).as_posix(),
        content=content,
        language=ext[1:] or None,
    )


def index_repo(
    root_dir: Union[str, Path],
    exclude_patterns: Optional[Sequence[str]] = None,
) -> IndexResult:
    """Index a repository: apply ignore patterns, then read file contents.

    Individual unreadable, binary, or non-UTF-8 files are recorded in
    ``IndexResult.skipped`` and never abort the pass.
    """
    root = Path(root_dir).resolve()
    patterns = combined_patterns(root, exclude_patterns or ())

    paths: List[Path] = []
    skipped: List[Skipped] = []
    _collect_files(root, root, patterns, paths, skipped)

    files: List[IndexedFile] = []
    for file_path in paths:
        outcome = read_indexed_file(file_path, root)
        if isinstance(outcome, Skipped):
            logger.debug("Skipped %s (%s)", outcome.path, outcome.reason)
            skipped.append(outcome)
        else:
            files.append(outcome)

    logger.info("Indexed %d files under %s (%d skipped)", len(files), root, len(skipped))
    return IndexResult(root_dir=str(root), files=tuple(files), skipped=tuple(skipped))
