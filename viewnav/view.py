"""View lifecycle contract and the base implementation views extend.

A view moves through:

    CONSTRUCTED -> INITIALIZED -> MOUNTED (hidden) <-> ACTIVE -> ... -> DESTROYED

It may cycle between MOUNTED and ACTIVE any number of times while cached and
reaches DESTROYED exactly once. The manager calls the lifecycle members in
order and awaits the asynchronous ones before moving on; errors raised by
them propagate to the manager. Errors raised while a view renders its own
content are caught by ``View.render`` and reported instead.
"""
from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from .errors import ViewContractError, ViewStateError
from .events import VIEW_ERROR, EventSink
from .transitions import NavigationOptions

if TYPE_CHECKING:
    from .registry import ViewConfig

logger = logging.getLogger(__name__)

REQUIRED_MEMBERS = (
    "initialize",
    "mount",
    "unmount",
    "show",
    "hide",
    "on_activate",
    "on_deactivate",
    "destroy",
)
AWAITABLE_MEMBERS = ("initialize", "on_activate", "on_deactivate")


class ViewState(Enum):
    CONSTRUCTED = "constructed"
    INITIALIZED = "initialized"
    MOUNTED = "mounted"
    ACTIVE = "active"
    DESTROYED = "destroyed"


class ViewContainer:
    """Root mounting point views attach to while mounted.

    Also carries the window title and the transition indicator flag the
    manager toggles around activations.
    """

    def __init__(self, name: str = "app"):
        self.name = name
        self.children: list[Any] = []
        self.transitioning = False
        self.title = ""

    def attach(self, view: Any) -> None:
        if view not in self.children:
            self.children.append(view)

    def detach(self, view: Any) -> None:
        if view in self.children:
            self.children.remove(view)

    def begin_transition(self) -> None:
        self.transitioning = True

    def end_transition(self) -> None:
        self.transitioning = False

    def visible_views(self) -> list[Any]:
        return [v for v in self.children if getattr(v, "is_visible", False)]


class ViewLifecycleHost(Protocol):
    """Members the manager requires from every view instance."""

    view_id: str
    is_mounted: bool

    async def initialize(self) -> None: ...

    def mount(self, container: ViewContainer) -> None: ...

    def unmount(self) -> None: ...

    def show(self) -> None: ...

    def hide(self) -> None: ...

    async def on_activate(self, options: NavigationOptions) -> None: ...

    async def on_deactivate(self) -> None: ...

    def destroy(self) -> None: ...


def ensure_view_contract(view: object, view_id: str) -> ViewLifecycleHost:
    """Reject factory output that does not satisfy ``ViewLifecycleHost``.

    Raises ``ViewContractError`` naming every missing or malformed member.
    """
    problems: list[str] = []
    if getattr(view, "view_id", None) != view_id:
        problems.append(f"view_id={getattr(view, 'view_id', None)!r}")
    if not hasattr(view, "is_mounted"):
        problems.append("is_mounted")
    for name in REQUIRED_MEMBERS:
        member = getattr(view, name, None)
        if not callable(member):
            problems.append(f"{name}()")
        elif name in AWAITABLE_MEMBERS and not inspect.iscoroutinefunction(member):
            problems.append(f"{name}() must be async")
    if problems:
        raise ViewContractError(
            view_id,
            f"View '{view_id}' ({type(view).__name__}) does not satisfy the lifecycle contract: "
            + ", ".join(problems),
        )
    return view  # type: ignore[return-value]


@dataclass
class ViewContext:
    """Everything a factory receives when a view is constructed."""

    view_id: str
    config: ViewConfig
    events: EventSink | None = None
    manager: Any = None
    services: dict[str, Any] = field(default_factory=dict)


class View:
    """Base class for navigable views.

    Subclasses override the hooks, not the lifecycle members:
    - ``load_data``: async, called once by ``initialize`` and by ``refresh``
    - ``activated`` / ``deactivated``: async, around visibility changes
    - ``render_content``: build whatever the view displays
    """

    def __init__(self, context: ViewContext):
        self.context = context
        self.view_id = context.view_id
        self.config = context.config
        self.events = context.events
        self.manager = context.manager

        self.state = ViewState.CONSTRUCTED
        self.created_at = datetime.now(timezone.utc)
        self.container: ViewContainer | None = None
        self.is_mounted = False
        self.is_visible = False

        self.data: dict[str, Any] = {}
        self.rendered: Any = None

        self.last_activated: datetime | None = None
        self.last_deactivated: datetime | None = None
        self.activation_count = 0
        self.render_count = 0
        self.error_count = 0
        self.average_render_ms = 0.0

    @property
    def is_active(self) -> bool:
        return self.state is ViewState.ACTIVE

    @property
    def is_destroyed(self) -> bool:
        return self.state is ViewState.DESTROYED

    def _require_alive(self, action: str) -> None:
        if self.state is ViewState.DESTROYED:
            raise ViewStateError(f"Cannot {action} destroyed view '{self.view_id}'")

    # ── lifecycle members ────────────────────────────────────────────

    async def initialize(self) -> None:
        """Load initial data; runs once per instance."""
        self._require_alive("initialize")
        if self.state is not ViewState.CONSTRUCTED:
            return
        logger.debug("View[%s]: initializing", self.view_id)
        self.data = await self.load_data() or {}
        self.state = ViewState.INITIALIZED

    def mount(self, container: ViewContainer) -> None:
        self._require_alive("mount")
        if self.is_mounted:
            return
        container.attach(self)
        self.container = container
        self.is_mounted = True
        self.is_visible = False
        self.state = ViewState.MOUNTED

    def unmount(self) -> None:
        if not self.is_mounted:
            return
        if self.container is not None:
            self.container.detach(self)
        self.container = None
        self.is_mounted = False
        self.is_visible = False
        if self.state in (ViewState.MOUNTED, ViewState.ACTIVE):
            self.state = ViewState.INITIALIZED

    def show(self) -> None:
        self._require_alive("show")
        self.is_visible = True

    def hide(self) -> None:
        self.is_visible = False

    async def on_activate(self, options: NavigationOptions | None = None) -> None:
        self._require_alive("activate")
        if not self.is_mounted:
            raise ViewStateError(f"Cannot activate unmounted view '{self.view_id}'")
        await self.activated(options or NavigationOptions())
        if self.state is ViewState.DESTROYED:
            return
        self.state = ViewState.ACTIVE
        self.last_activated = datetime.now(timezone.utc)
        self.activation_count += 1
        self.render()

    async def on_deactivate(self) -> None:
        if self.state is not ViewState.ACTIVE:
            return
        await self.deactivated()
        self.state = ViewState.MOUNTED
        self.last_deactivated = datetime.now(timezone.utc)

    def destroy(self) -> None:
        """Tear the view down. Idempotent; a destroyed view cannot be reused."""
        if self.state is ViewState.DESTROYED:
            return
        self.unmount()
        self.state = ViewState.DESTROYED
        self.rendered = None
        logger.debug("View[%s]: destroyed", self.view_id)

    # ── subclass hooks ───────────────────────────────────────────────

    async def load_data(self) -> dict[str, Any]:
        return {}

    async def activated(self, options: NavigationOptions) -> None:
        pass

    async def deactivated(self) -> None:
        pass

    def render_content(self) -> Any:
        return None

    # ── rendering + error boundary ───────────────────────────────────

    def render(self) -> Any:
        """Re-render, reporting (not raising) errors from ``render_content``."""
        if self.state is ViewState.DESTROYED or not self.is_mounted:
            return None
        start = time.perf_counter()
        try:
            self.rendered = self.render_content()
            self.render_count += 1
        except Exception as exc:
            self._handle_view_error(exc, "render")
        finally:
            elapsed = (time.perf_counter() - start) * 1000.0
            n = self.render_count + self.error_count
            self.average_render_ms += (elapsed - self.average_render_ms) / max(n, 1)
        return self.rendered

    async def refresh(self) -> None:
        """Reload data and re-render while active."""
        if not self.is_active:
            return
        try:
            self.data = await self.load_data() or {}
        except Exception as exc:
            self._handle_view_error(exc, "refresh")
            return
        self.render()

    def on_state_change(self, payload: dict[str, Any]) -> None:
        if self.is_active:
            self.render()

    def on_data_update(self, payload: dict[str, Any]) -> None:
        self.data.update(payload)
        if self.is_active:
            self.render()

    def _handle_view_error(self, error: Exception, where: str) -> None:
        self.error_count += 1
        logger.error(
            "View[%s]: error in %s: %s", self.view_id, where, error, exc_info=error
        )
        if self.events is not None:
            self.events.emit(
                VIEW_ERROR,
                {
                    "view_id": self.view_id,
                    "context": where,
                    "error": str(error),
                    "error_count": self.error_count,
                    "view_active": self.is_active,
                },
            )

    def get_view_stats(self) -> dict[str, Any]:
        return {
            "view_id": self.view_id,
            "state": self.state.value,
            "is_mounted": self.is_mounted,
            "is_visible": self.is_visible,
            "is_active": self.is_active,
            "activations": self.activation_count,
            "renders": self.render_count,
            "errors": self.error_count,
            "average_render_ms": self.average_render_ms,
            "created_at": self.created_at.isoformat(),
            "last_activated": self.last_activated.isoformat() if self.last_activated else None,
        }
