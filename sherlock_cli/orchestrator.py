"""Task orchestrator coordinating indexing, context building, and providers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Union

from .context_builder import build_context
from .git_stats import get_file_change_stats
from .indexer import index_repo
from .llm import LLMClient
from .models import MapEntry, SherlockConfig, TaskResult
from .module_map import DEFAULT_MAP_LIMIT, summarize_module_graph
from .output import save_bug_report, save_docs
from .parser import parse_module_graph
from .prompts import ask_prompt, bugs_prompt, docs_prompt

logger = logging.getLogger(__name__)


class TaskOrchestrator:
    """Runs docs, bugs, ask, and map tasks against one repository root."""

    def __init__(
        self,
        root_dir: Union[str, Path],
        config: SherlockConfig,
        llm: Optional[LLMClient] = None,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.config = config
        self.llm = llm or LLMClient()

    def context_for(self, mode: str, query: Optional[str] = None) -> str:
        index = index_repo(self.root_dir, self.config.exclude)
        return build_context(index, mode, query)

    def _generate(self, prompt: str) -> str:
        logger.info("Sending %d-char prompt to %s", len(prompt), self.config.provider)
        return self.llm.generate(prompt, self.config.provider, self.config.model)

    def generate_docs(self) -> TaskResult:
        """Generate documentation and always write it to DOCS.md."""
        markdown = self._generate(docs_prompt(self.context_for("docs")))
        saved = save_docs(self.root_dir, markdown)
        return TaskResult(content=markdown, saved_to=str(saved))

    def generate_bugs(self) -> TaskResult:
        """Generate a bug report; write BUGS.md only when configured to."""
        report = self._generate(bugs_prompt(self.context_for("bugs")))
        saved_to = None
        if self.config.output.save_reports:
            saved_to = str(save_bug_report(self.root_dir, report))
        return TaskResult(content=report, saved_to=saved_to)

    def ask(self, question: str) -> str:
        return self._generate(ask_prompt(self.context_for("ask", question), question))

    def ask_stream(self, question: str) -> Iterator[str]:
        """Stream the answer fragment by fragment; nothing is persisted."""
        prompt = ask_prompt(self.context_for("ask", question), question)
        return self.llm.generate_stream(prompt, self.config.provider, self.config.model)

    def module_map(self, limit: int = DEFAULT_MAP_LIMIT) -> List[MapEntry]:
        """Import map annotated with commit counts; no provider involved."""
        graph = parse_module_graph(self.root_dir, self.config.exclude)
        stats = get_file_change_stats(self.root_dir)
        return summarize_module_graph(graph, str(self.root_dir), stats, limit=limit)
