"""Unit tests for transition metrics."""
from __future__ import annotations

import pytest

from viewnav.metrics import TransitionMetrics, TransitionStats


def test_stats_record():
    """Test count, mean and bounds update per sample."""
    stats = TransitionStats()
    for ms in (10.0, 20.0, 30.0):
        stats.record(ms)

    assert stats.count == 3
    assert stats.average_ms == pytest.approx(20.0)
    assert stats.fastest_ms == 10.0
    assert stats.slowest_ms == 30.0
    assert stats.total_ms == pytest.approx(60.0)


def test_stats_empty():
    """Test an empty stats block reports no fastest sample."""
    assert TransitionStats().as_dict()["fastest_ms"] is None


def test_metrics_per_view_and_reset():
    """Test per-view breakdown, failure count and reset."""
    metrics = TransitionMetrics()
    metrics.record("home", 5.0)
    metrics.record("settings", 15.0)
    metrics.record("home", 15.0)
    metrics.record_failure()

    assert metrics.overall.count == 3
    assert metrics.per_view["home"].count == 2
    assert metrics.per_view["home"].average_ms == pytest.approx(10.0)
    assert metrics.failed == 1

    metrics.reset()
    assert metrics.overall.count == 0
    assert metrics.per_view == {}
    assert metrics.failed == 0
