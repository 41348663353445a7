"""Reusable terminal components for the CLI and interactive shell."""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import questionary
from questionary import Choice, Separator
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .registry import ViewConfig


# ═══════════════════════════════════════════════════════════════════════════════
# BRAND STYLING
# ═══════════════════════════════════════════════════════════════════════════════

BRAND_STYLE = questionary.Style([
    ("qmark", "fg:#00b4d8 bold"),
    ("question", "bold"),
    ("answer", "fg:#90e0ef bold"),
    ("highlighted", "fg:#00b4d8 bold"),
    ("pointer", "fg:#00b4d8 bold"),
    ("selected", "fg:#90e0ef"),
])


# ═══════════════════════════════════════════════════════════════════════════════
# NAVIGATION HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def nav_choices(include_separator: bool = True) -> list:
    """Standard Back/Home/Exit choices appended to the view menu."""
    choices: list = []
    if include_separator:
        choices.append(Separator())
    choices.extend([
        Choice(title="← Back", value="back"),
        Choice(title="Home", value="home"),
        Choice(title="Exit", value="exit"),
    ])
    return choices


def view_choices(configs: Iterable[ViewConfig], current: str | None = None) -> list:
    """One menu entry per navigable view; the current view is marked."""
    choices: list = []
    for config in configs:
        marker = " (current)" if config.view_id == current else ""
        choices.append(Choice(title=f"{config.title}{marker}", value=config.view_id))
    return choices


def normalize_choice(result: str | None) -> str | None:
    """Normalize common nav aliases/titles to canonical commands.

    Typed input may use rendered labels such as "← Back" instead of the
    internal value "back".
    """
    if result is None:
        return None
    s = str(result).strip().lower()
    if not s:
        return None
    if s in {"back", "← back", "< back", "go back", "previous", "prev", "b"}:
        return "back"
    if s in {"home", "main", "main menu", "h"}:
        return "home"
    if s in {"exit", "quit", "q", "x"}:
        return "exit"
    return str(result).strip()


# ═══════════════════════════════════════════════════════════════════════════════
# RENDERERS
# ═══════════════════════════════════════════════════════════════════════════════

def render_breadcrumbs(console: Console, state: dict[str, Any]) -> None:
    """Render navigation breadcrumbs.

    Args:
        console: Rich Console for output
        state: Output of ``ViewManager.get_navigation_state()``
    """
    breadcrumbs = state.get("breadcrumbs") or "(no view)"
    console.print(f"[dim]{breadcrumbs}[/dim]\n")


def render_navigation_state(console: Console, state: dict[str, Any]) -> None:
    """Render current/previous view, history and queue as a two-column table."""
    history = state.get("history") or ()
    queued = state.get("queued") or ()
    current = state.get("current_view")

    table = Table(title="[bold]Navigation[/bold]", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", style="cyan")
    table.add_row("Current", current if current else "[red](none)[/red]")
    table.add_row("Previous", state.get("previous_view") or "[dim]-[/dim]")
    table.add_row("History", " > ".join(history) if history else "[dim](empty)[/dim]")
    table.add_row("Can go back", "✓" if state.get("can_go_back") else "✗")
    table.add_row("Transitioning", "✓" if state.get("is_transitioning") else "✗")
    table.add_row("Queued", ", ".join(queued) if queued else "[dim]-[/dim]")
    table.add_row("Last phase", str(state.get("phase", "")))

    console.print(table)
    console.print()


def _ms(value: float | None) -> str:
    return "-" if value is None else f"{value:.2f}"


def render_metrics(console: Console, metrics: dict[str, Any]) -> None:
    """Render global and per-view transition timings plus cache contents."""
    overall = metrics.get("transitions", {})

    table = Table(title="[bold]Transitions[/bold]", show_header=True, header_style="bold cyan")
    table.add_column("View", min_width=12)
    table.add_column("Count", justify="right")
    table.add_column("Avg ms", justify="right")
    table.add_column("Fastest ms", justify="right")
    table.add_column("Slowest ms", justify="right")

    for view_id, stats in sorted(metrics.get("views", {}).items()):
        table.add_row(
            view_id,
            f"{stats['count']:,}",
            _ms(stats["average_ms"]),
            _ms(stats["fastest_ms"]),
            _ms(stats["slowest_ms"]),
        )
    table.add_row(
        "[bold]all[/bold]",
        f"{overall.get('count', 0):,}",
        _ms(overall.get("average_ms")),
        _ms(overall.get("fastest_ms")),
        _ms(overall.get("slowest_ms")),
    )
    console.print(table)

    cached = metrics.get("cached_views") or []
    console.print(
        f"[bold]Failed[/bold] [cyan]{metrics.get('failed_transitions', 0)}[/cyan]  "
        f"[bold]Cached[/bold] [cyan]{', '.join(cached) if cached else '-'}[/cyan]"
    )
    console.print()


def render_view_table(console: Console, configs: Iterable[ViewConfig], current: str | None = None) -> None:
    """Render registered view configurations."""
    table = Table(title="Views", show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Id", min_width=10)
    table.add_column("Title", min_width=12)
    table.add_column("Route", min_width=10)
    table.add_column("Cache", width=6, justify="center")
    table.add_column("Nav", width=5, justify="center")
    table.add_column("Description")

    for config in configs:
        view_id = f"[bold]{config.view_id}[/bold]" if config.view_id == current else config.view_id
        table.add_row(
            view_id,
            config.title,
            config.route,
            "[green]✓[/]" if config.cache else "[red]✗[/]",
            "[green]✓[/]" if config.show_in_nav else "[dim]-[/]",
            config.description,
        )
    console.print(table)
    console.print()


def render_view_output(console: Console, view: Any) -> None:
    """Print what the current view rendered, if anything."""
    if view is None:
        console.print(Panel.fit("[yellow]No active view[/yellow]", border_style="yellow"))
        return
    rendered = getattr(view, "rendered", None)
    if rendered is not None:
        console.print(rendered)
        console.print()


def render_error(
    console: Console,
    title: str,
    cause: str,
    action: str | None = None,
) -> None:
    """Render a friendly error panel with 3-part structure.

    Args:
        console: Rich Console for output
        title: Error title
        cause: What caused the error
        action: Suggested action to resolve
    """
    content = f"[bold red]✗ {title}[/bold red]\n\n"
    content += f"[yellow]Cause:[/yellow] {cause}\n"

    if action:
        content += f"\n[dim]→ {action}[/dim]"

    console.print(Panel.fit(content, border_style="red", title="Error"))
    console.print()
