"""Unit tests for the View base class and the lifecycle contract."""
from __future__ import annotations

import pytest

from viewnav.errors import ViewContractError, ViewStateError
from viewnav.events import VIEW_ERROR, EventBus
from viewnav.registry import ViewConfig
from viewnav.transitions import NavigationOptions
from viewnav.view import View, ViewContainer, ViewContext, ViewState, ensure_view_contract


class CounterView(View):
    async def load_data(self):
        return {"count": 1}

    def render_content(self):
        return f"count={self.data['count']}"


class FailingRenderView(View):
    def render_content(self):
        raise RuntimeError("render exploded")


def _context(view_id="counter", events=None):
    return ViewContext(view_id=view_id, config=ViewConfig(view_id, CounterView), events=events)


@pytest.mark.asyncio
async def test_view_lifecycle_states():
    """Test a view walks constructed -> initialized -> mounted -> active -> destroyed."""
    view = CounterView(_context())
    container = ViewContainer()
    assert view.state is ViewState.CONSTRUCTED

    await view.initialize()
    assert view.state is ViewState.INITIALIZED
    assert view.data == {"count": 1}

    view.mount(container)
    assert view.state is ViewState.MOUNTED
    assert view.is_mounted and not view.is_visible
    assert container.children == [view]

    view.show()
    await view.on_activate(NavigationOptions())
    assert view.is_active
    assert view.rendered == "count=1"
    assert view.activation_count == 1
    assert container.visible_views() == [view]

    await view.on_deactivate()
    view.hide()
    assert view.state is ViewState.MOUNTED

    view.destroy()
    assert view.is_destroyed
    assert container.children == []
    view.destroy()
    assert view.is_destroyed


@pytest.mark.asyncio
async def test_initialize_runs_once():
    """Test initialize() is a no-op after the first call."""
    view = CounterView(_context())
    await view.initialize()
    view.data["count"] = 5
    await view.initialize()
    assert view.data["count"] == 5


@pytest.mark.asyncio
async def test_activate_requires_mount():
    """Test activating an unmounted view is rejected."""
    view = CounterView(_context())
    await view.initialize()
    with pytest.raises(ViewStateError):
        await view.on_activate()


@pytest.mark.asyncio
async def test_destroyed_view_cannot_be_reused():
    """Test lifecycle calls on a destroyed view raise."""
    view = CounterView(_context())
    view.destroy()
    with pytest.raises(ViewStateError):
        await view.initialize()
    with pytest.raises(ViewStateError):
        view.mount(ViewContainer())


@pytest.mark.asyncio
async def test_render_errors_are_reported_not_raised():
    """Test render errors are counted and published on the bus."""
    bus = EventBus()
    errors = []
    bus.on(VIEW_ERROR, errors.append)
    view = FailingRenderView(_context("broken", events=bus))
    await view.initialize()
    view.mount(ViewContainer())

    await view.on_activate()

    assert view.is_active
    assert view.error_count == 1
    assert errors[0]["view_id"] == "broken"
    assert errors[0]["context"] == "render"
    assert "render exploded" in errors[0]["error"]


@pytest.mark.asyncio
async def test_data_update_rerenders_active_view():
    """Test data updates merge and re-render only while active."""
    view = CounterView(_context())
    await view.initialize()
    view.mount(ViewContainer())

    view.on_data_update({"count": 2})
    assert view.rendered is None

    await view.on_activate()
    view.on_data_update({"count": 3})
    assert view.rendered == "count=3"
    assert view.get_view_stats()["renders"] == 2


def test_contract_accepts_view_subclass():
    """Test a View subclass satisfies the contract."""
    view = CounterView(_context())
    assert ensure_view_contract(view, "counter") is view


def test_contract_rejects_incomplete_object():
    """Test objects missing lifecycle members are rejected with details."""

    class Partial:
        view_id = "partial"
        is_mounted = False

        def initialize(self):  # not async
            pass

    with pytest.raises(ViewContractError) as exc_info:
        ensure_view_contract(Partial(), "partial")
    message = str(exc_info.value)
    assert "initialize() must be async" in message
    assert "mount()" in message
    assert exc_info.value.view_id == "partial"


def test_contract_rejects_mismatched_id():
    """Test the instance must carry the id it was built for."""
    view = CounterView(_context("other"))
    with pytest.raises(ViewContractError):
        ensure_view_contract(view, "counter")
