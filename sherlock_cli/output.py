"""Write generated reports next to the analysed repository."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from .config import BUGS_FILENAME, DOCS_FILENAME


def _write(root_dir: Union[str, Path], filename: str, content: str) -> Path:
    path = Path(root_dir) / filename
    path.write_text(content, encoding="utf-8")
    return path


def save_docs(root_dir: Union[str, Path], content: str) -> Path:
    """Write generated documentation to ``DOCS.md`` in the repo root."""
    return _write(root_dir, DOCS_FILENAME, content)


def save_bug_report(root_dir: Union[str, Path], content: str) -> Path:
    """Write a bug report to ``BUGS.md`` in the repo root."""
    return _write(root_dir, BUGS_FILENAME, content)
