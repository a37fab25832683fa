"""Interactive TUI for Sherlock: folder picker, task menu, streamed answers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.tree import Tree

from .config_manager import load_config
from .llm import LLMClient, LLMError
from .models import MapEntry
from .orchestrator import TaskOrchestrator
from .paths import list_directories

console = Console()

MENU_CHOICES = [
    "1. 📝 Generate documentation",
    "2. 🐞 Find bugs",
    "3. 💬 Ask a question",
    "4. 🗺️  Module map",
    "5. 📂 Choose another folder",
    "0. Exit",
]


def run_interactive(
    root_dir: Optional[Path] = None,
    start_dir: Optional[Path] = None,
    initial_mode: Optional[str] = None,
    initial_question: Optional[str] = None,
) -> None:
    """Run the interactive session until the user exits.

    One :class:`LLMClient` is shared by every task in the session so that
    provider connections are created once.
    """
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]🔎 Sherlock[/bold cyan]\n"
            "[dim]Docs, bug reports, Q&A and import maps for your codebase[/dim]",
            border_style="cyan",
        )
    )

    llm = LLMClient()
    if root_dir is None:
        root_dir = pick_folder(start_dir or Path.cwd())
        if root_dir is None:
            console.print("[cyan]Goodbye![/cyan]")
            return

    orchestrator = _open(root_dir, llm)
    if initial_mode == "ask":
        _run_ask(orchestrator, initial_question)
    elif initial_mode == "map":
        _run_map(orchestrator)
    elif initial_mode == "docs":
        _run_docs(orchestrator)
    elif initial_mode == "bugs":
        _run_bugs(orchestrator)

    while True:
        console.print(f"\n[bold]What would you like to do?[/bold] [dim]({escape(str(orchestrator.root_dir))})[/dim]\n")
        for choice in MENU_CHOICES:
            console.print(f"  {choice}")

        selection = Prompt.ask("\nChoice", choices=["0", "1", "2", "3", "4", "5"], default="0")

        if selection == "0":
            console.print("[cyan]Goodbye![/cyan]")
            break
        elif selection == "1":
            _run_docs(orchestrator)
        elif selection == "2":
            _run_bugs(orchestrator)
        elif selection == "3":
            _run_ask(orchestrator)
        elif selection == "4":
            _run_map(orchestrator)
        elif selection == "5":
            picked = pick_folder(orchestrator.root_dir)
            if picked is not None:
                orchestrator = _open(picked, llm)


def _open(root_dir: Path, llm: LLMClient) -> TaskOrchestrator:
    config = load_config(root_dir)
    console.print(f"[dim]Provider: {config.provider} · Model: {escape(config.model)}[/dim]")
    return TaskOrchestrator(root_dir, config, llm=llm)


def pick_folder(start: Path) -> Optional[Path]:
    """Navigate directories until the user picks one; ``None`` on quit."""
    current = Path(start).resolve()
    while True:
        entries = list_directories(current)
        console.print(f"\n[bold]📂 {escape(str(current))}[/bold]")
        console.print("  0. ✔ Use this folder")
        for i, (name, _) in enumerate(entries, start=1):
            console.print(f"  {i}. {escape(name)}")

        valid = [str(i) for i in range(len(entries) + 1)] + ["q"]
        selection = Prompt.ask("Folder (q to quit)", choices=valid, default="0", show_choices=False)
        if selection == "q":
            return None
        if selection == "0":
            return current
        current = entries[int(selection) - 1][1]


def _report_error(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")


def _run_docs(orchestrator: TaskOrchestrator) -> None:
    try:
        with console.status("Generating documentation..."):
            result = orchestrator.generate_docs()
    except (LLMError, OSError) as exc:
        _report_error(exc)
        return
    console.print(f"[green]✓[/green] Documentation written to {escape(str(result.saved_to))}\n")
    console.print(Markdown(result.content))


def _run_bugs(orchestrator: TaskOrchestrator) -> None:
    try:
        with console.status("Analyzing for bugs..."):
            result = orchestrator.generate_bugs()
    except (LLMError, OSError) as exc:
        _report_error(exc)
        return
    if result.saved_to:
        console.print(f"[green]✓[/green] Bug report written to {escape(result.saved_to)}\n")
    console.print(Markdown(result.content))


def _run_ask(orchestrator: TaskOrchestrator, question: Optional[str] = None) -> None:
    while True:
        if not question:
            question = Prompt.ask("\nQuestion [dim](blank to return)[/dim]", default="", show_default=False)
        if not question.strip():
            return
        stream_answer(orchestrator, question.strip())
        question = None


def stream_answer(orchestrator: TaskOrchestrator, question: str) -> str:
    """Print the answer as it streams; returns whatever text arrived.

    Ctrl-C stops the stream and releases the connection. On a provider
    error the partial answer stays on screen, followed by the error.
    """
    console.print(f"\n[bold cyan]Q:[/bold cyan] {escape(question)}\n")
    received: List[str] = []
    fragments: Optional[Iterator[str]] = None
    try:
        with console.status("Thinking..."):
            fragments = orchestrator.ask_stream(question)
        for fragment in fragments:
            received.append(fragment)
            console.print(fragment, end="", markup=False, highlight=False)
        console.print()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
    except LLMError as exc:
        console.print()
        _report_error(exc)
    finally:
        close = getattr(fragments, "close", None)
        if close is not None:
            close()
    return "".join(received)


def _map_table(entries: List[MapEntry]) -> Table:
    table = Table(title="Components (by importance)", title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("File", style="cyan")
    table.add_column("Imports", justify="right")
    table.add_column("Imported by", justify="right")
    table.add_column("Commits", justify="right", style="magenta")
    for i, entry in enumerate(entries, start=1):
        table.add_row(
            str(i),
            escape(entry.relative_path),
            str(entry.imports),
            str(entry.imported_by),
            str(entry.changes) if entry.changes else "-",
        )
    return table


def dependency_tree(entry: MapEntry) -> Tree:
    tree = Tree(f"[bold cyan]{escape(entry.relative_path)}[/bold cyan] →")
    if not entry.dependencies:
        tree.add("[dim](no local imports)[/dim]")
    for target, specifier in entry.dependencies:
        tree.add(f"[green]→[/green] {escape(target)} [dim]({escape(specifier)})[/dim]")
    return tree


def _run_map(orchestrator: TaskOrchestrator) -> None:
    with console.status("Parsing imports..."):
        entries = orchestrator.module_map()

    if not entries:
        console.print(Panel("[dim]No source files found.[/dim]", title="Project Map", border_style="cyan"))
        return

    console.print(_map_table(entries))
    valid = [str(i) for i in range(len(entries) + 1)]
    while True:
        selection = Prompt.ask(
            "Show imports of # [dim](0 to return)[/dim]",
            choices=valid,
            default="0",
            show_choices=False,
        )
        if selection == "0":
            return
        console.print(dependency_tree(entries[int(selection) - 1]))
