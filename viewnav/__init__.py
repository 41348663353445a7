"""viewnav: view navigation and lifecycle manager.

Decides which view is visible, keeps a bounded cache of live views, queues
navigation requests that arrive mid-transition and records back history.
"""
from .errors import (
    ManagerDestroyedError,
    NavigationError,
    ViewActivationError,
    ViewConstructionError,
    ViewContractError,
    ViewDeactivationError,
    ViewNotFoundError,
    ViewStateError,
)
from .events import EventBus, EventSink
from .manager import ViewManager
from .registry import ViewConfig, ViewRegistry
from .settings import NavigatorSettings, load_settings
from .transitions import NavigationOptions, TransitionPhase
from .view import View, ViewContainer, ViewContext, ViewLifecycleHost, ViewState

__all__ = [
    "EventBus",
    "EventSink",
    "ManagerDestroyedError",
    "NavigationError",
    "NavigationOptions",
    "NavigatorSettings",
    "TransitionPhase",
    "View",
    "ViewActivationError",
    "ViewConfig",
    "ViewConstructionError",
    "ViewContainer",
    "ViewContext",
    "ViewContractError",
    "ViewDeactivationError",
    "ViewLifecycleHost",
    "ViewManager",
    "ViewNotFoundError",
    "ViewRegistry",
    "ViewState",
    "load_settings",
]
