"""Build a small, task-specific prompt context from indexed files.

The total budget is fixed at 2100 characters shared by at most six files.
Ordering is the selection mechanism: files are ranked per task mode and
the first :data:`MAX_CONTEXT_FILES` are kept.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import MAX_CONTEXT_FILES, MAX_FILE_CHARS
from .models import IndexedFile, IndexResult

EMPTY_CONTEXT = "(No files indexed)"
TRUNCATION_MARKER = "\n\n... (truncated)"

TASK_MODES = ("docs", "bugs", "ask")

MANIFEST_PATHS = frozenset({"readme.md", "package.json"})
STRUCTURED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
SOURCE_DIR_MARKERS = ("src", "lib", "app")
SOURCE_CODE_SUFFIXES = (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".rb", ".go", ".rs", ".java", ".kt",
    ".c", ".cpp", ".h", ".hpp", ".cs", ".php",
)

# (query keyword, path fragments that answer it)
DOMAIN_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("auth", ("auth", "login")),
    ("payment", ("payment",)),
)

Ranker = Callable[[IndexedFile], int]


def _lower_path(f: IndexedFile) -> str:
    return f.relative_path.replace("\\", "/").lower()


def _is_manifest(p: str) -> bool:
    return p in MANIFEST_PATHS


def _in_source_dir(p: str) -> bool:
    return any(marker in p for marker in SOURCE_DIR_MARKERS)


def rank_docs(f: IndexedFile) -> int:
    p = _lower_path(f)
    if _is_manifest(p):
        return 0
    if p.endswith(STRUCTURED_CONFIG_SUFFIXES):
        return 1
    if _in_source_dir(p):
        return 2
    return 3


def rank_bugs(f: IndexedFile) -> int:
    p = _lower_path(f)
    if _in_source_dir(p):
        return 0
    if p.endswith(SOURCE_CODE_SUFFIXES):
        return 1
    return 2


def rank_ask(f: IndexedFile, query: str) -> int:
    p = _lower_path(f)
    q = query.lower()
    for keyword, fragments in DOMAIN_KEYWORDS:
        if keyword in q and any(fragment in p for fragment in fragments):
            return 0
    if _is_manifest(p):
        return 1
    if _in_source_dir(p):
        return 2
    return 3


def ranker_for(mode: str, query: Optional[str] = None) -> Ranker:
    rankers: Dict[str, Ranker] = {
        "docs": rank_docs,
        "bugs": rank_bugs,
        "ask": lambda f: rank_ask(f, query or ""),
    }
    try:
        return rankers[mode]
    except KeyError:
        raise ValueError(f"Unknown task mode '{mode}'. Expected one of: {', '.join(TASK_MODES)}") from None


def per_file_budget(selected: int) -> int:
    """Share of the fixed total budget for each of *selected* files."""
    if selected <= 0:
        raise ValueError("selected must be positive")
    return (MAX_FILE_CHARS * MAX_CONTEXT_FILES) // selected


def truncate(content: str, max_chars: int) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + TRUNCATION_MARKER


def render_files(files: Sequence[IndexedFile]) -> str:
    budget = per_file_budget(len(files))
    blocks: List[str] = []
    for f in files:
        blocks.append(f"## {f.relative_path}\n```\n{truncate(f.content, budget)}\n```\n")
    return "\n".join(blocks)


def select_files(files: Sequence[IndexedFile], mode: str, query: Optional[str] = None) -> List[IndexedFile]:
    # sorted() is stable, so equal ranks keep indexer order.
    ranked = sorted(files, key=ranker_for(mode, query))
    return ranked[:MAX_CONTEXT_FILES]


def build_context(index: IndexResult, mode: str, query: Optional[str] = None) -> str:
    """Rank, select, and truncate indexed files into one prompt fragment."""
    if not index.files:
        return EMPTY_CONTEXT
    return render_files(select_files(index.files, mode, query))
