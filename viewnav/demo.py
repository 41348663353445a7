"""Demo views used by the CLI to exercise navigation end to end."""
from __future__ import annotations

from typing import Any

from rich.panel import Panel

from .registry import ViewConfig, ViewRegistry
from .transitions import NavigationOptions
from .view import View


class DemoView(View):
    """Renders its title, description and loaded data as a panel."""

    def render_content(self) -> Any:
        lines = [f"[dim]{self.config.description}[/dim]"] if self.config.description else []
        for key, value in self.data.items():
            lines.append(f"[bold]{key}:[/bold] {value}")
        lines.append(f"[dim]activations: {self.activation_count}[/dim]")
        return Panel.fit("\n".join(lines), title=f"[bold]{self.config.title}[/bold]", border_style="cyan")


class HomeView(DemoView):
    async def load_data(self) -> dict[str, Any]:
        views = self.manager.get_available_views(nav_only=True) if self.manager else []
        return {"sections": ", ".join(c.title for c in views)}


class LibraryView(DemoView):
    async def load_data(self) -> dict[str, Any]:
        return {"items": 3, "latest": "Field notes"}


class SettingsView(DemoView):
    async def load_data(self) -> dict[str, Any]:
        settings = getattr(self.manager, "settings", None)
        if settings is None:
            return {}
        return {
            "cache limit": settings.VIEWNAV_CACHE_LIMIT,
            "history length": settings.VIEWNAV_MAX_HISTORY_LENGTH,
        }


class DetailView(DemoView):
    """Not cached: a new instance is built every visit."""

    async def activated(self, options: NavigationOptions) -> None:
        self.data["created"] = self.created_at.strftime("%H:%M:%S.%f")[:-3]


class BrokenView(DemoView):
    """Fails while rendering; the failure is reported, navigation still succeeds."""

    def render_content(self) -> Any:
        raise RuntimeError("demo render failure")


DEMO_VIEWS: list[ViewConfig] = [
    ViewConfig("home", HomeView, title="Home", cache=True, show_in_nav=False, icon="home", route="/",
               preload=True),
    ViewConfig("library", LibraryView, title="Library", cache=True, icon="book",
               description="Browse saved items"),
    ViewConfig("settings", SettingsView, title="Settings", cache=True, icon="gear",
               description="Navigator configuration"),
    ViewConfig("detail", DetailView, title="Detail", cache=False, icon="file",
               description="Rebuilt on every visit"),
    ViewConfig("broken", BrokenView, title="Broken", cache=False, show_in_nav=False,
               description="Render errors stay inside the view"),
]

DEFAULT_DEMO_STEPS = ["settings", "detail", "home", "back", "library", "missing", "broken", "settings"]


def build_demo_registry() -> ViewRegistry:
    registry = ViewRegistry()
    for config in DEMO_VIEWS:
        registry.register(config.view_id, config)
    return registry
