from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import questionary
import typer
from rich.console import Console
from rich.panel import Panel

from .components import (
    BRAND_STYLE,
    nav_choices,
    normalize_choice,
    render_breadcrumbs,
    render_error,
    render_metrics,
    render_navigation_state,
    render_view_output,
    render_view_table,
    view_choices,
)
from .demo import DEFAULT_DEMO_STEPS, build_demo_registry
from .errors import NavigationError
from .logging import setup_logging
from .manager import ViewManager
from .settings import NavigatorSettings, load_settings
from .view import ViewContainer

app = typer.Typer(
    add_completion=False,
    help="viewnav: view navigation and lifecycle manager",
    rich_markup_mode="rich",
)
console = Console()

ChoiceAsker = Callable[[ViewManager], Awaitable[Optional[str]]]


def _load(cache_limit: int | None = None, max_history: int | None = None) -> NavigatorSettings:
    overrides: dict[str, object] = {}
    # When called as a normal Python function, Typer's defaults are OptionInfo
    # objects rather than values.
    if isinstance(cache_limit, int):
        overrides["VIEWNAV_CACHE_LIMIT"] = cache_limit
    if isinstance(max_history, int):
        overrides["VIEWNAV_MAX_HISTORY_LENGTH"] = max_history
    return load_settings(**overrides)


def _resolve_command(manager: ViewManager, raw: str | None) -> str | None:
    """Map an answer or demo step to a view id or a nav command.

    Registered view ids are taken literally; only other input goes through
    the Back/Home/Exit aliases.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if manager.registry.has(text):
        return text
    return normalize_choice(text)


async def _navigate(manager: ViewManager, command: str, settings: NavigatorSettings) -> None:
    """Run one navigation command, rendering (not raising) navigation errors."""
    try:
        if command == "back":
            if not await manager.go_back():
                console.print("[dim]Nothing to go back to.[/dim]")
        elif command == "home":
            await manager.navigate_to(settings.VIEWNAV_DEFAULT_VIEW)
        else:
            await manager.navigate_to(command)
    except NavigationError as exc:
        render_error(
            console,
            f"Navigation to '{exc.view_id}' failed",
            str(exc),
            action="Pick another view or go back",
        )


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN CALLBACK
# ═══════════════════════════════════════════════════════════════════════════════

@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context):
    """
    [bold]viewnav[/bold]: view navigation and lifecycle manager.

    [dim]Run without arguments to launch the interactive shell.[/dim]

    [bold]Quick Commands:[/bold]
      viewnav demo      Scripted navigation walkthrough
      viewnav shell     Navigate the demo views interactively
      viewnav views     List registered demo views
      viewnav config    Show effective settings
    """
    if ctx.invoked_subcommand is None:
        shell()
        raise typer.Exit(code=0)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("demo", help="Run a scripted navigation session over the demo views")
def demo(
    steps: Optional[str] = typer.Option(
        None, "--steps", "-s", help="Comma separated view ids; 'back' goes back"
    ),
    cache_limit: Optional[int] = typer.Option(None, "--cache-limit", min=1, help="Override VIEWNAV_CACHE_LIMIT"),
    max_history: Optional[int] = typer.Option(None, "--max-history", min=1, help="Override VIEWNAV_MAX_HISTORY_LENGTH"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo log lines to the terminal"),
):
    """Navigate through the demo views, printing state after every step."""
    s = _load(cache_limit, max_history)
    setup_logging(s, console=verbose is True)

    plan = DEFAULT_DEMO_STEPS
    if isinstance(steps, str) and steps.strip():
        plan = [p.strip() for p in steps.split(",") if p.strip()]

    metrics = asyncio.run(run_demo(s, plan))
    render_metrics(console, metrics)


async def run_demo(settings: NavigatorSettings, plan: list[str]) -> dict:
    """Execute ``plan`` against a fresh manager and return its final metrics."""
    manager = ViewManager(registry=build_demo_registry(), settings=settings)
    await manager.initialize(ViewContainer("demo"))
    try:
        render_navigation_state(console, manager.get_navigation_state())
        for step in plan:
            command = _resolve_command(manager, step) or step
            console.rule(f"[bold]{command}[/bold]")
            await _navigate(manager, command, settings)
            render_view_output(console, manager.current_view)
            render_navigation_state(console, manager.get_navigation_state())
        return manager.get_metrics()
    finally:
        manager.destroy()


@app.command("shell", help="Navigate the demo views interactively")
def shell():
    """Interactive menu: pick a view, go back, or exit."""
    s = load_settings()
    setup_logging(s, console=False)
    asyncio.run(run_shell(s))


async def _ask_view_choice(manager: ViewManager) -> str | None:
    configs = manager.get_available_views(nav_only=True)
    return await questionary.select(
        "Go to:",
        choices=view_choices(configs, manager.current_view_id) + nav_choices(),
        style=BRAND_STYLE,
    ).ask_async()


async def run_shell(settings: NavigatorSettings, ask: ChoiceAsker | None = None) -> ViewManager:
    """Main navigation loop.

    Prompts for the next view until "exit" (or Ctrl+C / an empty answer).
    Returns the destroyed manager so callers can inspect the final state.
    """
    ask = ask or _ask_view_choice
    manager = ViewManager(registry=build_demo_registry(), settings=settings)
    await manager.initialize(ViewContainer("shell"))
    try:
        while True:
            render_breadcrumbs(console, manager.get_navigation_state())
            render_view_output(console, manager.current_view)

            command = _resolve_command(manager, await ask(manager))
            if command is None or command == "exit":
                console.print("\n[dim]👋 Goodbye![/]")
                break
            await _navigate(manager, command, settings)
    finally:
        manager.destroy()
    return manager


@app.command("views", help="List the registered demo views")
def views():
    render_view_table(console, build_demo_registry().list())


@app.command("config", help="Show effective navigator settings")
def config():
    s = load_settings()
    console.print(Panel.fit(
        "\n".join([
            f"[bold]Default view:[/bold]      {s.VIEWNAV_DEFAULT_VIEW}",
            f"[bold]Cache:[/bold]             {'on' if s.VIEWNAV_ENABLE_VIEW_CACHING else 'off'} "
            f"(limit {s.VIEWNAV_CACHE_LIMIT}, preload {'on' if s.VIEWNAV_PRELOAD_VIEWS else 'off'})",
            f"[bold]History:[/bold]           {'on' if s.VIEWNAV_ENABLE_HISTORY else 'off'} "
            f"(max {s.VIEWNAV_MAX_HISTORY_LENGTH})",
            f"[bold]Transitions:[/bold]       {'on' if s.VIEWNAV_ENABLE_TRANSITIONS else 'off'} "
            f"({s.VIEWNAV_TRANSITION_DURATION_MS} ms)",
            "",
            f"[dim]Logs:[/dim] {s.VIEWNAV_LOG_DIR} ({s.VIEWNAV_LOG_LEVEL}, keep {s.VIEWNAV_LOG_BACKUP_COUNT})",
        ]),
        title="[bold]Configuration[/bold]",
    ))
