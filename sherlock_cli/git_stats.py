"""Per-file change frequency from the repository's git history."""

from __future__ import annotations

import logging
import subprocess
from collections import Counter
from pathlib import Path
from typing import Dict, Union

logger = logging.getLogger(__name__)

GIT_LOG_COMMAND = ["git", "log", "--name-only", "--pretty=format:", "--", "."]


def get_file_change_stats(root_dir: Union[str, Path]) -> Dict[str, int]:
    """Map repo-relative POSIX path -> number of commits touching it.

    Returns an empty mapping when the directory is not a git checkout or
    ``git`` is unavailable.
    """
    root = Path(root_dir)
    if not (root / ".git").exists():
        return {}

    try:
        result = subprocess.run(
            GIT_LOG_COMMAND,
            cwd=root,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug("git log failed in %s: %s", root, exc)
        return {}

    counts: Counter = Counter()
    for line in result.stdout.splitlines():
        line = line.strip()
        if line:
            counts[line.replace("\\", "/")] += 1
    return dict(counts)
