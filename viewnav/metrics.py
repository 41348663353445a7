from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TransitionStats:
    """Running duration statistics (milliseconds) for a set of transitions."""

    count: int = 0
    average_ms: float = 0.0
    fastest_ms: float | None = None
    slowest_ms: float = 0.0
    total_ms: float = 0.0

    def record(self, duration_ms: float) -> None:
        self.count += 1
        self.total_ms += duration_ms
        # Incremental mean avoids re-summing history.
        self.average_ms += (duration_ms - self.average_ms) / self.count
        self.fastest_ms = duration_ms if self.fastest_ms is None else min(self.fastest_ms, duration_ms)
        self.slowest_ms = max(self.slowest_ms, duration_ms)

    def as_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "average_ms": self.average_ms,
            "fastest_ms": self.fastest_ms,
            "slowest_ms": self.slowest_ms,
            "total_ms": self.total_ms,
        }


@dataclass
class TransitionMetrics:
    """Global and per-view transition statistics. Append-only."""

    overall: TransitionStats = field(default_factory=TransitionStats)
    per_view: dict[str, TransitionStats] = field(default_factory=dict)
    failed: int = 0

    def record(self, view_id: str, duration_ms: float) -> None:
        self.overall.record(duration_ms)
        self.per_view.setdefault(view_id, TransitionStats()).record(duration_ms)

    def record_failure(self) -> None:
        self.failed += 1

    def reset(self) -> None:
        self.overall = TransitionStats()
        self.per_view = {}
        self.failed = 0
