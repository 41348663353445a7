from __future__ import annotations

import os
import sys

import pytest


def _ensure_project_root_on_path() -> None:
    # When running via the venv's pytest entrypoint, the CWD is not guaranteed to
    # be on sys.path. Ensure the repository root (containing `viewnav/`) is importable.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

from viewnav.manager import ViewManager  # noqa: E402
from viewnav.registry import ViewConfig, ViewRegistry  # noqa: E402
from viewnav.settings import NavigatorSettings  # noqa: E402
from viewnav.view import View  # noqa: E402


class RecordingView(View):
    """View that journals its hooks and can be paused or failed per hook.

    Behaviour is driven by the manager's ``services`` dict:
    - ``journal``: list receiving ``(view_id, hook)`` tuples
    - ``gates``: ``(view_id, hook) -> asyncio.Event`` awaited inside the hook
    - ``failures``: ``(view_id, hook) -> Exception`` raised by the hook
    - ``instances``: every instance constructed, in order
    """

    def __init__(self, context):
        super().__init__(context)
        context.services.setdefault("instances", []).append(self)

    @property
    def services(self) -> dict:
        return self.context.services

    def _step(self, hook: str) -> None:
        self.services.setdefault("journal", []).append((self.view_id, hook))

    async def _checkpoint(self, hook: str) -> None:
        self._step(hook)
        gate = self.services.get("gates", {}).get((self.view_id, hook))
        if gate is not None:
            await gate.wait()
        failure = self.services.get("failures", {}).get((self.view_id, hook))
        if failure is not None:
            raise failure

    async def load_data(self) -> dict:
        await self._checkpoint("initialize")
        return {}

    async def activated(self, options) -> None:
        self.last_options = options
        await self._checkpoint("activate")

    async def deactivated(self) -> None:
        await self._checkpoint("deactivate")

    def destroy(self) -> None:
        if not self.is_destroyed:
            self._step("destroy")
        super().destroy()

    def render_content(self):
        return f"<{self.view_id}>"


@pytest.fixture
def settings() -> NavigatorSettings:
    return NavigatorSettings(
        VIEWNAV_ENABLE_TRANSITIONS=True,
        VIEWNAV_TRANSITION_DURATION_MS=0,
        VIEWNAV_ENABLE_HISTORY=True,
        VIEWNAV_MAX_HISTORY_LENGTH=10,
        VIEWNAV_ENABLE_VIEW_CACHING=True,
        VIEWNAV_CACHE_LIMIT=5,
        VIEWNAV_PRELOAD_VIEWS=False,
        VIEWNAV_DEFAULT_VIEW="home",
    )


@pytest.fixture
def make_manager(settings):
    """Build a manager over ``RecordingView`` views.

    ``uncached`` lists ids registered with ``cache=False``; keyword overrides
    are applied to the settings fixture.
    """

    def _make(views=("home", "settings", "detail"), *, uncached=(), preload=(), **overrides) -> ViewManager:
        registry = ViewRegistry()
        for view_id in views:
            registry.register(
                view_id,
                ViewConfig(
                    view_id,
                    RecordingView,
                    title=view_id.title(),
                    cache=view_id not in uncached,
                    preload=view_id in preload,
                ),
            )
        s = settings.model_copy(update=overrides) if overrides else settings
        services = {"journal": [], "gates": {}, "failures": {}, "instances": []}
        return ViewManager(registry=registry, settings=s, services=services)

    return _make
