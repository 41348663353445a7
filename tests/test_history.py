"""Unit tests for HistoryStack."""
from __future__ import annotations

import pytest

from viewnav.history import HistoryStack


def test_history_initial_state():
    """Test history starts empty."""
    history = HistoryStack(3)
    assert history.depth() == 0
    assert history.peek() is None
    assert history.pop() is None
    assert history.peek_all() == ()
    assert history.breadcrumbs() == ""


def test_history_push_pop():
    """Test push/pop order is last-in first-out."""
    history = HistoryStack(5)
    history.push("home")
    history.push("settings")

    assert history.peek() == "settings"
    assert history.pop() == "settings"
    assert history.pop() == "home"
    assert history.pop() is None


def test_history_drops_oldest_past_bound():
    """Test the oldest entries drop once the bound is exceeded."""
    history = HistoryStack(3)
    for view_id in ("a", "b", "c", "d", "e"):
        history.push(view_id)

    assert len(history) == 3
    assert history.peek_all() == ("c", "d", "e")


def test_history_rejects_bad_length():
    """Test a capacity below one is rejected."""
    with pytest.raises(ValueError):
        HistoryStack(0)


def test_history_breadcrumbs():
    """Test breadcrumbs use labels and append the current view."""
    history = HistoryStack(5)
    history.push("home")
    history.push("settings")

    assert history.breadcrumbs() == "home > settings"
    labels = {"home": "Home", "settings": "Settings", "detail": "Detail"}
    assert history.breadcrumbs(labels, current="detail") == "Home > Settings > Detail"
    assert history.breadcrumbs({"home": "Home"}, current="unknown") == "Home > settings > unknown"


def test_history_clear():
    """Test clear empties the stack."""
    history = HistoryStack(5)
    history.push("home")
    history.clear()
    assert history.depth() == 0
