from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import viewnav.cli as cli
from viewnav.components import nav_choices, normalize_choice, view_choices
from viewnav.demo import DEFAULT_DEMO_STEPS, LibraryView, build_demo_registry
from viewnav.registry import ViewConfig

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("VIEWNAV_CACHE_LIMIT", "VIEWNAV_MAX_HISTORY_LENGTH", "VIEWNAV_PRELOAD_VIEWS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VIEWNAV_TRANSITION_DURATION_MS", "0")
    monkeypatch.setattr(cli, "setup_logging", lambda s, console=True: tmp_path / "viewnav.log")


def test_normalize_choice_aliases():
    """Test rendered labels and shortcuts map to canonical commands."""
    assert normalize_choice("← Back") == "back"
    assert normalize_choice(" B ") == "back"
    assert normalize_choice("Main Menu") == "home"
    assert normalize_choice("q") == "exit"
    assert normalize_choice(" settings ") == "settings"
    assert normalize_choice("") is None
    assert normalize_choice(None) is None


def test_menu_choices_mark_current_view():
    """Test the view menu marks the current view and ends with nav entries."""
    configs = build_demo_registry().list(lambda c: c.show_in_nav)
    choices = view_choices(configs, current="settings")

    titles = [c.title for c in choices]
    assert "Settings (current)" in titles
    assert "Library" in titles
    assert [c.value for c in nav_choices(include_separator=False)] == ["back", "home", "exit"]


def test_views_command_lists_demo_views():
    result = runner.invoke(cli.app, ["views"])
    assert result.exit_code == 0
    assert "Library" in result.output
    assert "Settings" in result.output


def test_config_command_shows_overrides(monkeypatch):
    monkeypatch.setenv("VIEWNAV_CACHE_LIMIT", "7")
    result = runner.invoke(cli.app, ["config"])
    assert result.exit_code == 0
    assert "limit 7" in result.output


def test_demo_command_with_steps():
    result = runner.invoke(cli.app, ["demo", "--steps", "settings,missing,back", "--cache-limit", "2"])
    assert result.exit_code == 0, result.output
    assert "Transitions" in result.output
    assert "missing" in result.output


def test_demo_command_rejects_zero_cache_limit():
    result = runner.invoke(cli.app, ["demo", "--cache-limit", "0"])
    assert result.exit_code == 2


@pytest.mark.asyncio
async def test_run_demo_default_plan(settings):
    """Test the scripted walkthrough commits every valid step."""
    metrics = await cli.run_demo(settings, DEFAULT_DEMO_STEPS)

    assert metrics["failed_transitions"] == 1
    # Start view plus seven successful steps; "missing" fails.
    assert metrics["transitions"]["count"] == 8
    assert metrics["current_view"] == "settings"
    assert "detail" not in metrics["cached_views"]


@pytest.mark.asyncio
async def test_run_demo_keeps_view_ids_that_look_like_aliases(settings, monkeypatch):
    """Test registered ids such as "q" or "main" are navigated to, not treated as commands."""

    def registry_with_short_ids():
        registry = build_demo_registry()
        registry.register("q", ViewConfig("q", LibraryView, title="Queue", cache=True))
        registry.register("main", ViewConfig("main", LibraryView, title="Main", cache=True))
        return registry

    monkeypatch.setattr(cli, "build_demo_registry", registry_with_short_ids)

    metrics = await cli.run_demo(settings, ["q", "main", "b"])

    assert metrics["failed_transitions"] == 0
    assert metrics["views"]["q"]["count"] == 2
    assert metrics["views"]["main"]["count"] == 1
    # "b" is not registered, so it still means Back.
    assert metrics["current_view"] == "q"


@pytest.mark.asyncio
async def test_run_shell_with_scripted_answers(settings):
    """Test the shell loop navigates, goes back and exits."""
    answers = iter(["settings", "library", "← Back", "exit"])
    seen: list[str | None] = []

    async def ask(manager):
        seen.append(manager.current_view_id)
        return next(answers)

    manager = await cli.run_shell(settings, ask=ask)

    assert seen == ["home", "settings", "library", "settings"]
    assert manager.current_view is None
    assert len(manager.registry) == 0


@pytest.mark.asyncio
async def test_run_shell_stops_on_cancel(settings):
    """Test an empty answer (Ctrl+C) ends the loop."""

    async def ask(manager):
        return None

    manager = await cli.run_shell(settings, ask=ask)
    assert manager.current_view is None


@pytest.mark.asyncio
async def test_run_shell_reports_unknown_view(settings, capsys):
    """Test an unknown view is rendered as an error and the loop continues."""
    answers = iter(["nowhere", "exit"])
    seen: list[str | None] = []

    async def ask(manager):
        seen.append(manager.current_view_id)
        return next(answers)

    await cli.run_shell(settings, ask=ask)

    assert seen == ["home", "home"]
    assert "nowhere" in capsys.readouterr().out
