"""Core data models shared by indexing, context building, and task orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class IndexedFile:
    path: str
    relative_path: str
    content: str
    language: Optional[str] = None


@dataclass(frozen=True)
class Skipped:
    """A file or config entry that was passed over; the caller carries on."""

    path: str
    reason: str


@dataclass(frozen=True)
class IndexResult:
    root_dir: str
    files: Tuple[IndexedFile, ...] = ()
    skipped: Tuple[Skipped, ...] = ()

    @property
    def total_files(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class ModuleImport:
    from_file: str
    to_file: str
    specifier: str


@dataclass
class ModuleGraph:
    files: List[str] = field(default_factory=list)
    imports: List[ModuleImport] = field(default_factory=list)


@dataclass(frozen=True)
class OutputConfig:
    save_reports: bool = False


@dataclass(frozen=True)
class SherlockConfig:
    provider: str = "groq"
    model: str = "llama-3.1-8b-instant"
    exclude: Tuple[str, ...] = ("node_modules", "dist", ".git")
    output: OutputConfig = field(default_factory=OutputConfig)


@dataclass
class TaskResult:
    content: str
    saved_to: Optional[str] = None


@dataclass
class MapEntry:
    relative_path: str
    imports: int
    imported_by: int
    changes: int = 0
    dependencies: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def importance(self) -> int:
        return self.imports + self.imported_by
