"""File-level import graph for JavaScript/TypeScript projects using Tree-sitter.

Only top-level ``import ... from "<specifier>"`` statements are read, and
only relative specifiers (starting with ``.``) that resolve to a file in
the scanned set become edges. Package imports and unresolvable paths are
dropped silently.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

import tree_sitter_typescript
from tree_sitter import Language, Node as TSNode, Parser as TSParser

from .models import ModuleGraph, ModuleImport, Skipped
from .paths import combined_patterns, is_ignored

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")

# File extension -> grammar factory in ``tree_sitter_typescript``.
# TSX is a superset of JavaScript + JSX; plain TypeScript needs its own
# grammar because of ``<T>expr`` type assertions.
GRAMMARS: Dict[str, str] = {
    ".ts": "language_typescript",
    ".tsx": "language_tsx",
    ".js": "language_tsx",
    ".jsx": "language_tsx",
}

WILDCARD = "*"


def discover_source_files(root_dir: Path, patterns: Sequence[str]) -> List[str]:
    """Absolute paths of JS/TS files under *root_dir*, in name order."""
    results: List[str] = []

    def walk(directory: Path) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            return
        for entry in entries:
            rel_path = Path(entry.path).relative_to(root_dir).as_posix()
            if is_ignored(rel_path, patterns):
                continue
            if entry.is_dir(follow_symlinks=False):
                walk(Path(entry.path))
            elif entry.is_file(follow_symlinks=False) and entry.name.endswith(SOURCE_EXTENSIONS):
                results.append(os.path.normpath(entry.path))

    walk(root_dir)
    return results


def resolve_import_path(
    from_file: str,
    specifier: str,
    files: Sequence[str],
    file_set: Optional[Set[str]] = None,
) -> Optional[str]:
    """Resolve a relative *specifier* imported by *from_file* to a scanned file.

    Tries the exact path, then the path plus each source extension, then a
    file in the target directory with the same base name (any extension).
    """
    if file_set is None:
        file_set = set(files)
    directory = os.path.dirname(from_file)
    candidate = os.path.normpath(os.path.join(directory, specifier))
    if candidate in file_set:
        return candidate

    if not specifier.endswith(SOURCE_EXTENSIONS):
        for ext in SOURCE_EXTENSIONS:
            if candidate + ext in file_set:
                return candidate + ext

    base = os.path.splitext(os.path.basename(specifier))[0]
    spec_dir = os.path.normpath(os.path.join(directory, os.path.dirname(specifier)))
    for f in files:
        if os.path.splitext(os.path.basename(f))[0] == base and os.path.dirname(f) == spec_dir:
            return f
    return None


def _text(node: TSNode) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text is not None else ""


def _string_value(node: TSNode) -> Optional[str]:
    if node.type != "string":
        return None
    raw = _text(node)
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"":
        return raw[1:-1]
    return None


def _imported_names(import_statement: TSNode) -> str:
    """Default import name, else the named imports, else ``*``."""
    clause = next((c for c in import_statement.named_children if c.type == "import_clause"), None)
    if clause is None:
        return WILDCARD

    named: List[str] = []
    for child in clause.named_children:
        if child.type == "identifier":
            return _text(child)
        if child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                if local is not None:
                    named.append(_text(local))
    return ", ".join(named) if named else WILDCARD


class ModuleGraphParser:
    """Extract import edges between files of a JavaScript/TypeScript project."""

    def __init__(self) -> None:
        self._parsers: Dict[str, TSParser] = {}
        for factory in sorted(set(GRAMMARS.values())):
            ts_lang = Language(getattr(tree_sitter_typescript, factory)())
            self._parsers[factory] = TSParser(ts_lang)
            logger.debug("Loaded tree-sitter grammar %s", factory)

    def iter_import_specifiers(self, file_path: str, source: str) -> Iterator[Tuple[str, str]]:
        """Yield ``(specifier, imported names)`` for each top-level import."""
        ext = os.path.splitext(file_path)[1].lower()
        parser = self._parsers[GRAMMARS.get(ext, "language_tsx")]
        tree = parser.parse(source.encode("utf-8"))

        for node in tree.root_node.children:
            if node.type != "import_statement":
                continue
            source_node = node.child_by_field_name("source")
            specifier = _string_value(source_node) if source_node is not None else None
            if specifier is None:
                continue
            yield specifier, _imported_names(node)

    def parse_file(self, file_path: str, files: Sequence[str], file_set: Set[str]) -> Union[List[ModuleImport], Skipped]:
        try:
            source = Path(file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return Skipped(file_path, f"unreadable: {exc}")

        edges: List[ModuleImport] = []
        for specifier, names in self.iter_import_specifiers(file_path, source):
            if not specifier.startswith("."):
                continue
            resolved = resolve_import_path(file_path, specifier, files, file_set)
            if resolved:
                edges.append(ModuleImport(from_file=file_path, to_file=resolved, specifier=names))
        return edges

    def parse_project(self, root_dir: Union[str, Path], exclude: Sequence[str] = ()) -> ModuleGraph:
        root = Path(root_dir).resolve()
        files = discover_source_files(root, combined_patterns(root, exclude))
        file_set = set(files)

        imports: List[ModuleImport] = []
        for file_path in files:
            outcome = self.parse_file(file_path, files, file_set)
            if isinstance(outcome, Skipped):
                logger.debug("Skipped %s (%s)", outcome.path, outcome.reason)
                continue
            imports.extend(outcome)

        logger.info("Module graph: %d files, %d imports", len(files), len(imports))
        return ModuleGraph(files=files, imports=imports)


def parse_module_graph(root_dir: Union[str, Path], exclude: Sequence[str] = ()) -> ModuleGraph:
    """Parse import statements under *root_dir* into a file-level graph."""
    return ModuleGraphParser().parse_project(root_dir, exclude)
