"""Integration tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sherlock_cli import __version__
from sherlock_cli.cli import app

runner = CliRunner()


@pytest.fixture
def repo(temp_dir: Path, write_tree) -> Path:
    return write_tree(
        temp_dir,
        {
            "README.md": "# Notes app",
            "src/index.ts": 'import { save } from "./store";\nsave();',
            "src/store.ts": "export function save() {}",
        },
    )


@pytest.fixture
def no_tty(monkeypatch):
    monkeypatch.setattr("sherlock_cli.cli.is_interactive", lambda: False)


@pytest.fixture
def offline_llm(monkeypatch, fake_llm):
    """Route every orchestrator built by the CLI to the fake provider."""
    monkeypatch.setattr("sherlock_cli.orchestrator.LLMClient", lambda: fake_llm)
    return fake_llm


@pytest.fixture
def tui_calls(monkeypatch):
    calls = []
    monkeypatch.setattr("sherlock_cli.cli.is_interactive", lambda: True)
    monkeypatch.setattr("sherlock_cli.cli_tui.run_interactive", lambda **kwargs: calls.append(kwargs))
    return calls


class TestTopLevel:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"Sherlock CLI v{__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("docs", "bugs", "ask", "map", "start"):
            assert command in result.output

    def test_no_command_with_tui_disabled(self, no_tty):
        result = runner.invoke(app, ["--no-tui"])

        assert result.exit_code == 0
        assert "TUI disabled" in result.output
        assert 'sherlock ask "Your question here"' in result.output

    def test_no_command_without_terminal(self, no_tty):
        result = runner.invoke(app, [])

        assert result.exit_code == 1
        assert "sherlock --no-tui docs" in result.output

    def test_no_command_in_terminal_starts_picker(self, tui_calls):
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert tui_calls == [{"root_dir": None, "start_dir": Path.cwd()}]

    def test_nonexistent_path_rejected(self, no_tty):
        result = runner.invoke(app, ["--no-tui", "--path", "/nonexistent/sherlock/path", "docs"])
        assert result.exit_code != 0


class TestDocsCommand:
    def test_writes_docs(self, repo: Path, no_tty, offline_llm, fake_provider):
        fake_provider.response = "# Notes app docs"

        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "docs"])

        assert result.exit_code == 0
        assert "Documentation written to DOCS.md" in result.output
        assert "# Notes app docs" in result.output
        assert (repo / "DOCS.md").read_text(encoding="utf-8") == "# Notes app docs"

    def test_missing_credential_exits_with_error(self, repo: Path, no_tty):
        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "docs"])

        assert result.exit_code == 1
        assert "Error: GROQ_API_KEY is not set" in result.output
        assert not (repo / "DOCS.md").exists()

    def test_uses_configured_provider(self, repo: Path, no_tty):
        (repo / ".sherlockrc").write_text(json.dumps({"provider": "anthropic"}))

        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "docs"])

        assert result.exit_code == 1
        assert "ANTHROPIC_API_KEY is not set" in result.output


class TestBugsCommand:
    def test_report_printed_not_saved(self, repo: Path, no_tty, offline_llm, fake_provider):
        fake_provider.response = "## src/index.ts\n### Line 2 - [warning] Unawaited call"

        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "bugs"])

        assert result.exit_code == 0
        assert "Unawaited call" in result.output
        assert "Bug report written" not in result.output
        assert not (repo / "BUGS.md").exists()

    def test_report_saved_when_configured(self, repo: Path, no_tty, offline_llm):
        (repo / ".sherlockrc").write_text(json.dumps({"output": {"save_reports": True}}))

        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "bugs"])

        assert result.exit_code == 0
        assert "Bug report written to BUGS.md" in result.output
        assert (repo / "BUGS.md").exists()


class TestAskCommand:
    def test_streams_answer(self, repo: Path, no_tty, offline_llm, fake_provider):
        fake_provider.fragments = ["Saves ", "to disk."]

        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "ask", "What does save do?"])

        assert result.exit_code == 0
        assert "Saves to disk." in result.output
        assert "Question: What does save do?" in fake_provider.prompts[0]

    def test_missing_question_prints_hint(self, repo: Path, no_tty, offline_llm, fake_provider):
        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "ask"])

        assert result.exit_code == 0
        assert 'Provide a question: sherlock ask "How does auth work?"' in result.output
        assert fake_provider.prompts == []

    def test_provider_failure(self, repo: Path, no_tty):
        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "ask", "Why?"])

        assert result.exit_code == 1
        assert "GROQ_API_KEY is not set" in result.output

    def test_interactive_terminal_opens_tui(self, repo: Path, tui_calls):
        result = runner.invoke(app, ["--path", str(repo), "ask", "Where is state kept?"])

        assert result.exit_code == 0
        assert tui_calls == [
            {"root_dir": repo.resolve(), "initial_mode": "ask", "initial_question": "Where is state kept?"}
        ]


class TestMapCommand:
    def test_plain_text_map(self, repo: Path, no_tty, monkeypatch):
        monkeypatch.setattr("sherlock_cli.orchestrator.get_file_change_stats", lambda root: {})

        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "map"])

        assert result.exit_code == 0
        assert "Components (by importance)" in result.output
        assert "src/index.ts (1 imports, 0 importers)" in result.output
        assert "-> src/store.ts (save)" in result.output

    def test_empty_project(self, temp_dir: Path, no_tty):
        result = runner.invoke(app, ["--no-tui", "--path", str(temp_dir), "map"])

        assert result.exit_code == 0
        assert "No source files found." in result.output

    def test_tui_flag_overrides_terminal(self, repo: Path, tui_calls, monkeypatch):
        monkeypatch.setattr("sherlock_cli.orchestrator.get_file_change_stats", lambda root: {})

        result = runner.invoke(app, ["--no-tui", "--path", str(repo), "map"])

        assert result.exit_code == 0
        assert tui_calls == []
        assert "src/store.ts" in result.output


class TestStartCommand:
    def test_requires_terminal(self, no_tty):
        result = runner.invoke(app, ["start"])

        assert result.exit_code == 1
        assert "Start command requires interactive TUI" in result.output

    def test_opens_picker(self, tui_calls):
        result = runner.invoke(app, ["start"])

        assert result.exit_code == 0
        assert tui_calls == [{"root_dir": None, "start_dir": Path.cwd()}]
