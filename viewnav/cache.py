"""Bounded, insertion-ordered store of live view instances."""
from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Collection, Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .view import ViewLifecycleHost

logger = logging.getLogger(__name__)


def select_eviction_candidate(ids: Iterable[str], protected: Collection[str] = ()) -> str | None:
    """Return the oldest id that is not protected, or None.

    ``ids`` must be in insertion order (oldest first). Protected ids are the
    active view and the view being navigated to; they are skipped even when
    they are the oldest entry.
    """
    for view_id in ids:
        if view_id not in protected:
            return view_id
    return None


class ViewCache:
    """Insertion-ordered view cache with a size limit.

    When an insert pushes the size over ``limit`` the oldest unprotected entry
    is destroyed and removed. If every entry is protected nothing is evicted
    and the cache stays over the limit until a later insert can evict.
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"cache limit must be >= 1, got {limit}")
        self.limit = int(limit)
        self._entries: OrderedDict[str, ViewLifecycleHost] = OrderedDict()

    def get(self, view_id: str) -> ViewLifecycleHost | None:
        return self._entries.get(view_id)

    def has(self, view_id: str) -> bool:
        return view_id in self._entries

    def put(
        self,
        view_id: str,
        view: ViewLifecycleHost,
        *,
        protected: Collection[str] = (),
    ) -> list[str]:
        """Insert ``view`` and enforce the limit.

        Re-inserting an id moves it to the newest position. Returns the ids
        that were evicted (destroyed) by this call.
        """
        if view_id in self._entries:
            self._entries.move_to_end(view_id)
        self._entries[view_id] = view

        evicted: list[str] = []
        keep = set(protected) | {view_id}
        while len(self._entries) > self.limit:
            candidate = select_eviction_candidate(self._entries.keys(), keep)
            if candidate is None:
                logger.debug(
                    "Cache over limit (%d > %d) but every entry is protected; eviction skipped",
                    len(self._entries),
                    self.limit,
                )
                break
            self.remove(candidate)
            evicted.append(candidate)
            logger.info("Evicted cached view: %s", candidate)
        return evicted

    def remove(self, view_id: str, *, destroy: bool = True) -> ViewLifecycleHost | None:
        """Drop ``view_id``; the instance is destroyed first unless ``destroy`` is False."""
        view = self._entries.get(view_id)
        if view is None:
            return None
        if destroy:
            view.destroy()
        del self._entries[view_id]
        return view

    def ids(self) -> list[str]:
        return list(self._entries.keys())

    def values(self) -> list[ViewLifecycleHost]:
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, view_id: object) -> bool:
        return view_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
