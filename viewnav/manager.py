"""Navigation manager: owns the current view, the view cache, the history and
the request queue, and drives every transition through the view lifecycle.

A transition runs these phases in order:

    VALIDATING -> DEACTIVATING_PREVIOUS -> RESOLVING_TARGET
        -> ACTIVATING_TARGET -> COMMITTED

and stops in FAILED on the first error. Failures are not rolled back: when
the outgoing view was already deactivated, no view is current until the next
successful navigation.

Only one transition runs at a time. Calls that arrive while one is in flight
are queued and started strictly in arrival order once it settles; the queue
is checked once per settled transition, whether it committed or failed.
"""
from __future__ import annotations

import asyncio
import dataclasses
import itertools
import logging
import time
from functools import partial
from typing import Any, Callable

from .cache import ViewCache
from .errors import (
    ManagerDestroyedError,
    NavigationError,
    ViewActivationError,
    ViewConstructionError,
    ViewDeactivationError,
    ViewNotFoundError,
)
from .events import (
    MANAGER_DESTROYED,
    MANAGER_INITIALIZED,
    NAVIGATION_COMPLETE,
    NAVIGATION_ERROR,
    NAVIGATION_QUEUED,
    NAVIGATION_STARTED,
    STATE_CHANGED,
    VIEW_REGISTERED,
    EventBus,
    EventSink,
    data_updated_event,
)
from .history import HistoryStack
from .metrics import TransitionMetrics
from .registry import ViewConfig, ViewRegistry
from .settings import NavigatorSettings, load_settings
from .transitions import (
    NavigationOptions,
    NavigationRequest,
    TransitionPhase,
    TransitionQueue,
)
from .view import View, ViewContainer, ViewContext, ViewLifecycleHost, ensure_view_contract

logger = logging.getLogger(__name__)


class ViewManager:
    """Create one per application session and inject its collaborators.

    Args:
        registry: View configurations; a fresh ``ViewRegistry`` by default
        events: Event sink for lifecycle notifications; an ``EventBus`` by default
        settings: Navigator settings; loaded from the environment by default
        services: Extra collaborators handed to every view through ``ViewContext``
    """

    def __init__(
        self,
        registry: ViewRegistry | None = None,
        events: EventSink | None = None,
        settings: NavigatorSettings | None = None,
        services: dict[str, Any] | None = None,
    ):
        self.registry = registry if registry is not None else ViewRegistry()
        self.events = events if events is not None else EventBus()
        self.settings = settings if settings is not None else load_settings()
        self.services = dict(services or {})
        self.container: ViewContainer | None = None
        self.metrics = TransitionMetrics()

        self._cache = ViewCache(self.settings.VIEWNAV_CACHE_LIMIT)
        self._history = HistoryStack(self.settings.VIEWNAV_MAX_HISTORY_LENGTH)
        self._queue = TransitionQueue()

        self._current: ViewLifecycleHost | None = None
        self._previous_id: str | None = None
        self._last_phase = TransitionPhase.IDLE

        # Number of transitions in flight. Only forced requests push it above 1.
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._sequence = itertools.count(1)
        self._tasks: set[asyncio.Task] = set()
        self._transition_timer: asyncio.TimerHandle | None = None

        self._unsubscribers: list[Callable[[], None]] = []
        self._data_subscriptions: dict[str, Callable[[], None]] = {}
        self._initialized = False
        self._destroyed = False

    # ── setup ────────────────────────────────────────────────────────

    async def initialize(
        self,
        root: ViewContainer | None = None,
        *,
        start_view: str | None = None,
        settings: NavigatorSettings | None = None,
    ) -> None:
        """Bind the mounting root, wire bus events and show the start view.

        Args:
            root: Container views are mounted into; a new ``ViewContainer`` by default
            start_view: First view to show; falls back to ``VIEWNAV_DEFAULT_VIEW``
            settings: Replaces the settings given at construction
        """
        if self._initialized:
            logger.warning("ViewManager: already initialized; call destroy() first to re-initialize")
            return
        logger.info("ViewManager: initializing")
        if settings is not None:
            self._apply_settings(settings)
        self._destroyed = False
        self.container = root if root is not None else ViewContainer()

        self._unsubscribers.append(self.events.on(STATE_CHANGED, self._forward_state_change))
        for config in self.registry.list():
            self._subscribe_data_updates(config.view_id)

        if self.settings.VIEWNAV_PRELOAD_VIEWS:
            await self._preload_views()

        target = start_view or self.settings.VIEWNAV_DEFAULT_VIEW
        if target:
            await self.navigate_to(target)

        self._initialized = True
        logger.info("ViewManager: initialized with %d views", len(self.registry))
        self._emit(
            MANAGER_INITIALIZED,
            {
                "view_count": len(self.registry),
                "current_view": self.current_view_id,
                "settings": self.settings.model_dump(mode="json"),
            },
        )

    def _apply_settings(self, settings: NavigatorSettings) -> None:
        self.settings = settings
        self._cache.limit = settings.VIEWNAV_CACHE_LIMIT
        history = HistoryStack(settings.VIEWNAV_MAX_HISTORY_LENGTH)
        for view_id in self._history.peek_all():
            history.push(view_id)
        self._history = history

    def register_view(self, view_id: str, config: ViewConfig | None = None, **fields: Any) -> ViewConfig:
        """Register a view by config, or by keyword fields (``factory=`` required).

        Re-registering an id replaces the earlier config.
        """
        if config is None:
            config = ViewConfig(view_id=view_id, **fields)
        elif fields:
            config = dataclasses.replace(config, **fields)
        config = self.registry.register(view_id, config)
        if self._initialized:
            self._subscribe_data_updates(config.view_id)
        self._emit(VIEW_REGISTERED, {"view_id": config.view_id, "config": config.as_dict()})
        return config

    async def _preload_views(self) -> None:
        for config in self.registry.list(lambda c: c.preload):
            if not self._is_cacheable(config.view_id) or self._cache.has(config.view_id):
                continue
            try:
                view = await self._create_view(config)
            except ViewConstructionError as exc:
                logger.warning("Preload of view %s failed: %s", config.view_id, exc, exc_info=exc)
                continue
            self._cache.put(config.view_id, view)
            logger.info("Preloaded view: %s", config.view_id)

    # ── navigation ───────────────────────────────────────────────────

    def navigate_to(
        self,
        view_id: str,
        *,
        force: bool = False,
        replace_history: bool = False,
    ) -> asyncio.Future:
        """Request a transition to ``view_id``.

        Returns a future that resolves once the transition commits, or fails
        with a ``NavigationError`` subclass. When a transition is already in
        flight the request is queued and the future stays pending until the
        request has been dequeued and run; ``force=True`` skips the queue.
        An unregistered id fails the future before this call returns.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        request = NavigationRequest(
            view_id=str(view_id),
            options=NavigationOptions(force=force, replace_history=replace_history),
            sequence=next(self._sequence),
            future=loop.create_future(),
        )
        if self._in_flight and not force:
            self._queue.enqueue(request)
            self._idle.clear()
            logger.debug(
                "Navigation to %s queued behind an active transition (position %d)",
                request.view_id,
                len(self._queue),
            )
            self._emit(
                NAVIGATION_QUEUED,
                {"view_id": request.view_id, "position": len(self._queue), "sequence": request.sequence},
            )
            return request.future
        self._start(request)
        return request.future

    async def go_back(self) -> bool:
        """Return to the most recent history entry, or the previous view.

        Returns False (and does nothing) when there is nowhere to go.
        """
        target = self._history.pop()
        if target is None:
            target = self._previous_id
        if target is None:
            logger.debug("No previous view to go back to")
            return False
        await self.navigate_to(target, replace_history=True)
        return True

    async def wait_idle(self) -> None:
        """Wait until no transition is in flight and nothing is queued."""
        await self._idle.wait()

    def _start(self, request: NavigationRequest) -> None:
        # Runs synchronously up to task creation, so the busy counter is raised
        # before anything else can observe the manager as idle.
        self._in_flight += 1
        self._idle.clear()
        request.phase = TransitionPhase.VALIDATING
        self._last_phase = request.phase

        config = self.registry.get(request.view_id)
        if config is None:
            self._fail(request, ViewNotFoundError(request.view_id))
            self._settle()
            return

        self._emit(
            NAVIGATION_STARTED,
            {
                "view_id": request.view_id,
                "previous_view_id": self.current_view_id,
                "options": request.options.as_dict(),
                "sequence": request.sequence,
            },
        )
        task = asyncio.get_running_loop().create_task(self._run(request, config))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, request: NavigationRequest, config: ViewConfig) -> None:
        started = time.perf_counter()
        outgoing = self._current
        logger.info("ViewManager: navigating to %s", request.view_id)
        try:
            if outgoing is not None:
                self._set_phase(request, TransitionPhase.DEACTIVATING_PREVIOUS)
                await self._deactivate(outgoing, request)

            self._set_phase(request, TransitionPhase.RESOLVING_TARGET)
            view = await self._resolve(config, outgoing)

            self._set_phase(request, TransitionPhase.ACTIVATING_TARGET)
            await self._activate(view, request)

            if self._destroyed:
                self._cache.remove(view.view_id, destroy=False)
                view.destroy()
                raise ManagerDestroyedError(request.view_id)

            self._commit(request, config, view, started)
        except Exception as exc:
            self._fail(request, exc)
        finally:
            self._settle()

    async def _deactivate(self, view: ViewLifecycleHost, request: NavigationRequest) -> None:
        try:
            await view.on_deactivate()
            view.hide()
        except Exception as exc:
            raise ViewDeactivationError(
                request.view_id, f"Failed to deactivate view '{view.view_id}': {exc}"
            ) from exc

        self._current = None
        leaving = view.view_id
        if leaving != request.view_id:
            self._previous_id = leaving
            if self.settings.VIEWNAV_ENABLE_HISTORY and not request.options.replace_history:
                self._history.push(leaving)

        if not self._is_cacheable(leaving):
            self._cache.remove(leaving, destroy=False)
            view.destroy()
            logger.debug("Destroyed non-cached view: %s", leaving)
        logger.debug("Deactivated view: %s", leaving)

    async def _resolve(self, config: ViewConfig, outgoing: ViewLifecycleHost | None = None) -> ViewLifecycleHost:
        cached = self._cache.get(config.view_id)
        if cached is not None:
            logger.debug("Cache hit for view: %s", config.view_id)
            return cached

        view = await self._create_view(config)
        if self._is_cacheable(config.view_id):
            # The view being left still counts as active until commit.
            protected = {v.view_id for v in (outgoing, self._current) if v is not None}
            self._cache.put(config.view_id, view, protected=protected)
        return view

    async def _create_view(self, config: ViewConfig) -> ViewLifecycleHost:
        context = ViewContext(
            view_id=config.view_id,
            config=config,
            events=self.events,
            manager=self,
            services=self.services,
        )
        try:
            view = config.factory(context)
        except Exception as exc:
            raise ViewConstructionError(
                config.view_id, f"Failed to construct view '{config.view_id}': {exc}"
            ) from exc
        ensure_view_contract(view, config.view_id)
        try:
            await view.initialize()
        except Exception as exc:
            raise ViewConstructionError(
                config.view_id, f"Failed to initialize view '{config.view_id}': {exc}"
            ) from exc
        logger.info("Created view instance: %s", config.view_id)
        return view

    async def _activate(self, view: ViewLifecycleHost, request: NavigationRequest) -> None:
        container = self._ensure_container()
        indicator = self.settings.VIEWNAV_ENABLE_TRANSITIONS
        if indicator:
            self._begin_transition_indicator(container)
        try:
            if not view.is_mounted:
                view.mount(container)
            view.show()
            await view.on_activate(request.options)
        except Exception as exc:
            self._discard_failed_target(view)
            raise ViewActivationError(
                request.view_id, f"Failed to activate view '{request.view_id}': {exc}"
            ) from exc
        finally:
            if indicator:
                self._schedule_transition_end(container)
        logger.debug("Activated view: %s", view.view_id)

    def _discard_failed_target(self, view: ViewLifecycleHost) -> None:
        """Hide a target whose activation failed; destroy it unless it is cacheable."""
        try:
            view.hide()
            if not self._is_cacheable(view.view_id):
                self._cache.remove(view.view_id, destroy=False)
                view.destroy()
                logger.debug("Destroyed view after failed activation: %s", view.view_id)
        except Exception as exc:
            logger.warning("Cleanup of view %s failed: %s", view.view_id, exc, exc_info=exc)

    def _commit(
        self,
        request: NavigationRequest,
        config: ViewConfig,
        view: ViewLifecycleHost,
        started: float,
    ) -> None:
        self._current = view
        duration_ms = (time.perf_counter() - started) * 1000.0
        self.metrics.record(request.view_id, duration_ms)
        self._set_phase(request, TransitionPhase.COMMITTED)
        if self.container is not None:
            self.container.title = f"{config.title} - {self.settings.VIEWNAV_APP_TITLE}"

        logger.info("ViewManager: navigated to %s (%.1f ms)", request.view_id, duration_ms)
        self._emit(
            NAVIGATION_COMPLETE,
            {
                "view_id": request.view_id,
                "previous_view_id": self._previous_id,
                "duration_ms": duration_ms,
                "options": request.options.as_dict(),
                "sequence": request.sequence,
            },
        )
        if not request.future.done():
            request.future.set_result(None)

    def _fail(self, request: NavigationRequest, exc: Exception) -> None:
        failed_in = request.phase
        if not isinstance(exc, NavigationError):
            wrapped = NavigationError(request.view_id, f"Navigation to '{request.view_id}' failed: {exc}")
            wrapped.__cause__ = exc
            exc = wrapped
        self._set_phase(request, TransitionPhase.FAILED)
        self.metrics.record_failure()

        if isinstance(exc, ViewNotFoundError):
            logger.error("ViewManager: %s", exc)
        else:
            logger.error("ViewManager: navigation to %s failed: %s", request.view_id, exc, exc_info=exc)
        self._emit(
            NAVIGATION_ERROR,
            {
                "view_id": request.view_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
                "phase": failed_in.value,
                "sequence": request.sequence,
            },
        )
        if not request.future.done():
            request.future.set_exception(exc)

    def _settle(self) -> None:
        self._in_flight -= 1
        if self._in_flight > 0:
            return
        if not self._destroyed:
            request = self._queue.dequeue()
            if request is not None:
                self._start(request)
                return
        self._idle.set()

    def _set_phase(self, request: NavigationRequest, phase: TransitionPhase) -> None:
        request.phase = phase
        self._last_phase = phase

    def _is_cacheable(self, view_id: str) -> bool:
        if not self.settings.VIEWNAV_ENABLE_VIEW_CACHING:
            return False
        config = self.registry.get(view_id)
        return config is not None and config.cache

    def _ensure_container(self) -> ViewContainer:
        if self.container is None:
            self.container = ViewContainer()
        return self.container

    # ── transition indicator ─────────────────────────────────────────

    def _begin_transition_indicator(self, container: ViewContainer) -> None:
        if self._transition_timer is not None:
            self._transition_timer.cancel()
            self._transition_timer = None
        container.begin_transition()

    def _schedule_transition_end(self, container: ViewContainer) -> None:
        delay = self.settings.VIEWNAV_TRANSITION_DURATION_MS / 1000.0
        if delay <= 0:
            container.end_transition()
            return
        self._transition_timer = asyncio.get_running_loop().call_later(delay, container.end_transition)

    # ── bus routing ──────────────────────────────────────────────────

    def _subscribe_data_updates(self, view_id: str) -> None:
        if view_id in self._data_subscriptions:
            return
        self._data_subscriptions[view_id] = self.events.on(
            data_updated_event(view_id), partial(self._forward_data_update, view_id)
        )

    def _forward_state_change(self, payload: dict[str, Any]) -> None:
        if isinstance(self._current, View):
            self._current.on_state_change(payload)

    def _forward_data_update(self, view_id: str, payload: dict[str, Any]) -> None:
        view = self._current
        if isinstance(view, View) and view.view_id == view_id:
            view.on_data_update(payload)

    def _emit(self, event: str, payload: dict[str, Any]) -> None:
        if self.events is not None:
            self.events.emit(event, payload)

    # ── introspection ────────────────────────────────────────────────

    @property
    def current_view(self) -> ViewLifecycleHost | None:
        return self._current

    @property
    def current_view_id(self) -> str | None:
        return self._current.view_id if self._current is not None else None

    @property
    def previous_view_id(self) -> str | None:
        return self._previous_id

    @property
    def is_transitioning(self) -> bool:
        return self._in_flight > 0

    @property
    def cache(self) -> ViewCache:
        """The live view cache. Read it; do not mutate it."""
        return self._cache

    @property
    def history(self) -> tuple[str, ...]:
        return self._history.peek_all()

    def get_current_view(self) -> dict[str, Any] | None:
        view = self._current
        if view is None:
            return None
        return {
            "view_id": view.view_id,
            "config": self.registry.get(view.view_id),
            "is_active": bool(getattr(view, "is_active", True)),
        }

    def get_available_views(self, *, nav_only: bool = False) -> list[ViewConfig]:
        predicate = (lambda c: c.show_in_nav) if nav_only else None
        return list(self.registry.list(predicate))

    def get_navigation_state(self) -> dict[str, Any]:
        current_id = self.current_view_id
        return {
            "current_view": current_id,
            "previous_view": self._previous_id,
            "history": self._history.peek_all(),
            "breadcrumbs": self._history.breadcrumbs(self.registry.labels(), current=current_id),
            "can_go_back": self._history.depth() > 0 or self._previous_id is not None,
            "is_transitioning": self.is_transitioning,
            "queued": self._queue.pending(),
            "phase": self._last_phase.value,
        }

    def get_metrics(self) -> dict[str, Any]:
        return {
            "transitions": self.metrics.overall.as_dict(),
            "views": {view_id: s.as_dict() for view_id, s in self.metrics.per_view.items()},
            "failed_transitions": self.metrics.failed,
            "current_view": self.current_view_id,
            "cached_views": self._cache.ids(),
        }

    # ── teardown ─────────────────────────────────────────────────────

    def destroy(self) -> None:
        """Destroy every live view and clear all internal state. Idempotent.

        Queued requests are cancelled. A transition already in flight cannot
        be interrupted; it fails with ``ManagerDestroyedError`` when it reaches
        the commit step.
        """
        if self._destroyed:
            return
        self._destroyed = True

        if self._transition_timer is not None:
            self._transition_timer.cancel()
            self._transition_timer = None

        for request in self._queue.clear():
            request.future.cancel()

        current = self._current
        for view in self._cache.values():
            view.destroy()
        if current is not None and not self._cache.has(current.view_id):
            current.destroy()

        self._cache.clear()
        self._history.clear()
        self.registry.clear()
        self.metrics.reset()
        self._current = None
        self._previous_id = None
        self._last_phase = TransitionPhase.IDLE

        for unsubscribe in self._unsubscribers + list(self._data_subscriptions.values()):
            unsubscribe()
        self._unsubscribers.clear()
        self._data_subscriptions.clear()

        if self.container is not None:
            self.container.end_transition()
        self._initialized = False
        if self._in_flight == 0:
            self._idle.set()

        logger.info("ViewManager: destroyed")
        self._emit(MANAGER_DESTROYED, {})
