"""Typer-based CLI for Sherlock codebase analysis."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer

from . import __version__, config
from .config_manager import load_config
from .llm import LLMError
from .module_map import render_module_map
from .orchestrator import TaskOrchestrator
from .paths import resolve_target_dir

app = typer.Typer(
    help="🔎 Sherlock CLI: docs, bug reports, Q&A, and import maps for your codebase.",
    rich_markup_mode="rich",
)

SUBCOMMAND_USAGE = (
    "  sherlock docs\n"
    "  sherlock bugs\n"
    "  sherlock map\n"
    '  sherlock ask "Your question here"'
)


def is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"Sherlock CLI v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        "-p",
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Target directory (default: current directory).",
    ),
    tui: bool = typer.Option(True, "--tui/--no-tui", help="Enable or disable the interactive TUI."),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Sherlock: intelligent codebase analysis (docs | bugs | map | ask).

    Without a command, starts the interactive mode with a folder picker.
    """
    config.load_env_file()
    _configure_logging(verbose)
    ctx.obj = {"path": path, "tui": tui}

    if ctx.invoked_subcommand is not None:
        return

    if not tui:
        typer.echo("TUI disabled. Use a subcommand:")
        typer.echo(SUBCOMMAND_USAGE)
        raise typer.Exit(code=0)

    if not is_interactive():
        typer.echo("Not running in an interactive terminal. Use a subcommand with --no-tui:")
        typer.echo(SUBCOMMAND_USAGE.replace("sherlock ", "sherlock --no-tui "))
        raise typer.Exit(code=1)

    from .cli_tui import run_interactive

    run_interactive(root_dir=_root_dir(ctx) if path else None, start_dir=Path.cwd())


def _root_dir(ctx: typer.Context) -> Path:
    path = (ctx.obj or {}).get("path")
    return resolve_target_dir(str(path) if path else None)


def _tui_enabled(ctx: typer.Context) -> bool:
    return bool((ctx.obj or {}).get("tui", True)) and is_interactive()


def _orchestrator(ctx: typer.Context) -> TaskOrchestrator:
    root = _root_dir(ctx)
    return TaskOrchestrator(root, load_config(root))


def _fail(exc: Exception) -> NoReturn:
    typer.echo(typer.style(f"❌ Error: {exc}", fg=typer.colors.RED), err=True)
    raise typer.Exit(code=1)


@app.command("docs")
def docs(ctx: typer.Context):
    """📝 Generate documentation from the codebase (writes DOCS.md)."""
    orchestrator = _orchestrator(ctx)
    try:
        result = orchestrator.generate_docs()
    except (LLMError, OSError) as exc:
        _fail(exc)
    typer.echo(f"Documentation written to {config.DOCS_FILENAME}")
    typer.echo(result.content)


@app.command("bugs")
def bugs(ctx: typer.Context):
    """🐞 Run bug analysis on the codebase."""
    orchestrator = _orchestrator(ctx)
    try:
        result = orchestrator.generate_bugs()
    except (LLMError, OSError) as exc:
        _fail(exc)
    if result.saved_to:
        typer.echo(f"Bug report written to {config.BUGS_FILENAME}")
    typer.echo(result.content)


@app.command("ask")
def ask(
    ctx: typer.Context,
    question: Optional[str] = typer.Argument(None, help="Question about the codebase."),
):
    """💬 Ask a question about the codebase (streams the answer)."""
    if _tui_enabled(ctx):
        from .cli_tui import run_interactive

        run_interactive(root_dir=_root_dir(ctx), initial_mode="ask", initial_question=question)
        return

    if not question:
        typer.echo('Provide a question: sherlock ask "How does auth work?"')
        return

    orchestrator = _orchestrator(ctx)
    try:
        for fragment in orchestrator.ask_stream(question):
            typer.echo(fragment, nl=False)
    except LLMError as exc:
        typer.echo("")
        _fail(exc)
    typer.echo("")


@app.command("map")
def map_command(ctx: typer.Context):
    """🗺️  Show the project's import dependency map."""
    if _tui_enabled(ctx):
        from .cli_tui import run_interactive

        run_interactive(root_dir=_root_dir(ctx), initial_mode="map")
        return

    entries = _orchestrator(ctx).module_map()
    typer.echo(render_module_map(entries))


@app.command("start")
def start(ctx: typer.Context):
    """🚀 Start interactive mode with the folder picker."""
    if not _tui_enabled(ctx):
        typer.echo("Start command requires interactive TUI. Run: sherlock")
        raise typer.Exit(code=1)

    from .cli_tui import run_interactive

    run_interactive(root_dir=None, start_dir=Path.cwd())


if __name__ == "__main__":
    app()
