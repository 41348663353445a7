"""Typed errors raised by the navigation core.

Every navigation failure carries the id of the view the request targeted.
Hook exceptions are chained (``raise ... from exc``) so the original cause
stays visible in tracebacks and logs.
"""
from __future__ import annotations


class NavigationError(Exception):
    """Base class for failures that reject a ``navigate_to`` request."""

    def __init__(self, view_id: str, message: str):
        super().__init__(message)
        self.view_id = view_id


class ViewNotFoundError(NavigationError):
    """The requested id has no registered configuration."""

    def __init__(self, view_id: str):
        super().__init__(view_id, f"View not found: {view_id}")


class ViewConstructionError(NavigationError):
    """The factory or the ``initialize`` hook of the target failed."""


class ViewContractError(ViewConstructionError):
    """A factory returned an object missing required lifecycle members."""


class ViewActivationError(NavigationError):
    """The target's ``mount``/``show``/``on_activate`` step failed."""


class ViewDeactivationError(NavigationError):
    """The outgoing view's ``on_deactivate``/``hide`` step failed."""


class ManagerDestroyedError(NavigationError):
    """The manager was torn down while the request was in flight."""

    def __init__(self, view_id: str):
        super().__init__(view_id, f"View manager destroyed while navigating to {view_id}")


class ViewStateError(RuntimeError):
    """A view lifecycle method was called in a state that does not allow it."""
