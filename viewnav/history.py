"""Bounded back-navigation history."""
from __future__ import annotations

from collections import deque
from collections.abc import Mapping


class HistoryStack:
    """Stack of previously visited view ids with a fixed capacity.

    Pushing past ``max_length`` drops the oldest entry; ``pop`` returns the
    most recent one:
    - Push on forward navigation (the view being left)
    - Pop on Back
    - Breadcrumbs read oldest to newest
    """

    def __init__(self, max_length: int = 10):
        if max_length < 1:
            raise ValueError(f"history length must be >= 1, got {max_length}")
        self.max_length = int(max_length)
        self._entries: deque[str] = deque(maxlen=self.max_length)

    def push(self, view_id: str) -> None:
        """Record ``view_id`` as the most recent entry.

        Args:
            view_id: Identifier of the view being left
        """
        self._entries.append(view_id)

    def pop(self) -> str | None:
        """Remove and return the most recent entry.

        Returns:
            The popped view id, or None if the history is empty
        """
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> str | None:
        return self._entries[-1] if self._entries else None

    def peek_all(self) -> tuple[str, ...]:
        """Immutable snapshot, oldest first."""
        return tuple(self._entries)

    def breadcrumbs(self, labels: Mapping[str, str] | None = None, current: str | None = None) -> str:
        """Generate a breadcrumb string.

        Args:
            labels: Optional view id to human-readable title mapping
            current: View id to append after the history entries

        Returns:
            Breadcrumb path like "Home > Settings > Detail"
        """
        ids = list(self._entries)
        if current is not None:
            ids.append(current)
        labels = labels or {}
        return " > ".join(labels.get(view_id, view_id) for view_id in ids)

    def depth(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
