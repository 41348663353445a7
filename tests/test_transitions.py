"""Unit tests for the request queue and transition phases."""
from __future__ import annotations

import asyncio

from viewnav.transitions import (
    NavigationOptions,
    NavigationRequest,
    TransitionPhase,
    TransitionQueue,
)


def _request(view_id: str, sequence: int, loop: asyncio.AbstractEventLoop) -> NavigationRequest:
    return NavigationRequest(
        view_id=view_id,
        options=NavigationOptions(),
        sequence=sequence,
        future=loop.create_future(),
    )


def test_queue_is_fifo():
    """Test requests leave in arrival order."""
    loop = asyncio.new_event_loop()
    try:
        queue = TransitionQueue()
        for i, view_id in enumerate(("a", "b", "c"), start=1):
            queue.enqueue(_request(view_id, i, loop))

        assert len(queue) == 3
        assert queue.pending() == ("a", "b", "c")
        assert [queue.dequeue().view_id for _ in range(3)] == ["a", "b", "c"]
        assert queue.dequeue() is None
        assert queue.is_empty()
    finally:
        loop.close()


def test_queue_keeps_duplicates():
    """Test identical requests are not de-duplicated."""
    loop = asyncio.new_event_loop()
    try:
        queue = TransitionQueue()
        queue.enqueue(_request("b", 1, loop))
        queue.enqueue(_request("b", 2, loop))

        assert queue.pending() == ("b", "b")
        dropped = queue.clear()
        assert [r.sequence for r in dropped] == [1, 2]
        assert queue.is_empty()
    finally:
        loop.close()


def test_phase_terminal_flags():
    """Test only COMMITTED and FAILED are terminal."""
    assert TransitionPhase.COMMITTED.is_terminal
    assert TransitionPhase.FAILED.is_terminal
    assert not TransitionPhase.IDLE.is_terminal
    assert not TransitionPhase.ACTIVATING_TARGET.is_terminal


def test_options_defaults():
    """Test navigation options default to off."""
    options = NavigationOptions()
    assert options.as_dict() == {"force": False, "replace_history": False}
    assert NavigationOptions(force=True).force is True
