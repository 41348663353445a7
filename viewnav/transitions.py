"""Navigation requests, transition phases and the FIFO request queue."""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransitionPhase(Enum):
    """Where a single navigation attempt is (or stopped)."""

    IDLE = "idle"
    VALIDATING = "validating"
    DEACTIVATING_PREVIOUS = "deactivating_previous"
    RESOLVING_TARGET = "resolving_target"
    ACTIVATING_TARGET = "activating_target"
    COMMITTED = "committed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransitionPhase.COMMITTED, TransitionPhase.FAILED)


@dataclass(frozen=True)
class NavigationOptions:
    force: bool = False
    replace_history: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {"force": self.force, "replace_history": self.replace_history}


@dataclass(eq=False)
class NavigationRequest:
    """One ``navigate_to`` call.

    ``sequence`` is the creation order; ``future`` settles when the request
    has committed or failed.
    """

    view_id: str
    options: NavigationOptions
    sequence: int
    future: asyncio.Future = field(repr=False)
    phase: TransitionPhase = TransitionPhase.IDLE


class TransitionQueue:
    """Strict FIFO; no priorities, no de-duplication."""

    def __init__(self) -> None:
        self._items: deque[NavigationRequest] = deque()

    def enqueue(self, request: NavigationRequest) -> None:
        self._items.append(request)

    def dequeue(self) -> NavigationRequest | None:
        if not self._items:
            return None
        return self._items.popleft()

    def is_empty(self) -> bool:
        return not self._items

    def pending(self) -> tuple[str, ...]:
        """Queued view ids, oldest first."""
        return tuple(r.view_id for r in self._items)

    def clear(self) -> list[NavigationRequest]:
        """Drop every queued request and return them."""
        dropped = list(self._items)
        self._items.clear()
        return dropped

    def __len__(self) -> int:
        return len(self._items)
