import random

import pytest

from hordemon.metrics import MetricsWindow
from hordemon.models import AggregateStats

from .fakes import make_sample


def test_first_point_has_no_change_and_stats_untouched():
    window = MetricsWindow(limit=60)
    point = window.append(make_sample(0, 100))
    assert point.kudos_change is None
    assert window.stats() == AggregateStats(0, 0)


def test_thirty_second_gap_extrapolates_to_an_hour():
    window = MetricsWindow(limit=60)
    window.append(make_sample(0, 100))
    point = window.append(make_sample(30_000, 130))
    assert point.kudos_change == 30
    assert window.stats().kudos_per_hour == 3600


def test_rates_use_whole_window():
    window = MetricsWindow(limit=60)
    window.append(make_sample(0, 100, image=["a"]))
    window.append(make_sample(60_000, 90, image=["a", "b"], text=["t"]))
    window.append(make_sample(120_000, 80))
    stats = window.stats()
    # (80 - 100) over two minutes
    assert stats.kudos_per_hour == -600
    # mean of 1, 3, 0 requests
    assert stats.requests_per_hour == 1


def test_requests_round_half_up():
    window = MetricsWindow(limit=60)
    window.append(make_sample(0, 0, image=["a"]))
    window.append(make_sample(1000, 0, image=["a", "b"]))
    assert window.stats().requests_per_hour == 2


def test_zero_span_keeps_previous_kudos_rate():
    window = MetricsWindow(limit=60)
    window.append(make_sample(0, 100))
    window.append(make_sample(60_000, 110))
    assert window.stats().kudos_per_hour == 600
    window.clear()
    window.append(make_sample(5000, 100))
    window.append(make_sample(5000, 500, text=["t"]))
    stats = window.stats()
    assert stats.kudos_per_hour == 0
    assert stats.requests_per_hour == 1


def test_zero_span_after_history_keeps_rate():
    window = MetricsWindow(limit=2)
    window.append(make_sample(0, 100))
    window.append(make_sample(60_000, 110))
    window.append(make_sample(60_000, 999))
    assert window.stats().kudos_per_hour == 600


def test_eviction_clears_front_change():
    window = MetricsWindow(limit=3)
    for i in range(5):
        window.append(make_sample(i * 1000, 100 + i * 5))
    points = window.current()
    assert len(points) == 3
    assert [p.timestamp for p in points] == [2000, 3000, 4000]
    assert points[0].kudos_change is None
    assert [p.kudos_change for p in points[1:]] == [5, 5]


def test_retain_shrink_clears_new_front_change():
    window = MetricsWindow(limit=60)
    kudos = [100, 101, 103, 106, 110, 117, 120, 121, 125, 130]
    for i, k in enumerate(kudos):
        window.append(make_sample(i * 60_000, k))
    assert window.current()[5].kudos_change == 7
    window.retain(5)
    points = window.current()
    assert len(points) == 5
    assert points[0].kudos == 117
    assert points[0].kudos_change is None
    assert window.limit == 5


def test_retain_grow_keeps_points():
    window = MetricsWindow(limit=3)
    for i in range(3):
        window.append(make_sample(i, i))
    window.retain(10)
    assert len(window) == 3
    window.append(make_sample(10, 10))
    assert len(window) == 4


def test_late_sample_is_clamped_to_keep_order():
    window = MetricsWindow(limit=10)
    window.append(make_sample(50_000, 100))
    point = window.append(make_sample(20_000, 90))
    assert point.timestamp == 50_000
    assert point.kudos_change == -10


def test_since_filters_by_timestamp():
    window = MetricsWindow(limit=10)
    for ts in (0, 60_000, 120_000):
        window.append(make_sample(ts, 1))
    assert [p.timestamp for p in window.since(60_000)] == [60_000, 120_000]


def test_current_returns_copy():
    window = MetricsWindow(limit=10)
    window.append(make_sample(0, 1))
    window.current().clear()
    assert len(window) == 1


def test_invalid_limit():
    with pytest.raises(ValueError):
        MetricsWindow(limit=0)
    with pytest.raises(ValueError):
        MetricsWindow().retain(0)


def test_random_sequences_stay_ordered_and_bounded():
    rng = random.Random(1234)
    for _ in range(50):
        limit = rng.randint(1, 8)
        window = MetricsWindow(limit=limit)
        ts = 0
        for _ in range(rng.randint(1, 30)):
            # occasionally go backwards to mimic late arrivals
            ts += rng.randint(-5000, 60_000)
            window.append(make_sample(ts, rng.uniform(-50, 500), image=["x"] * rng.randint(0, 3)))
            if rng.random() < 0.1:
                window.retain(rng.randint(1, 8))
            points = window.current()
            assert len(points) <= window.limit
            assert all(a.timestamp <= b.timestamp for a, b in zip(points, points[1:]))
            assert points[0].kudos_change is None


def test_overflowing_rate_keeps_previous_value():
    window = MetricsWindow(limit=10)
    window.append(make_sample(0, 0))
    window.append(make_sample(60_000, 10))
    assert window.stats().kudos_per_hour == 600
    point = window.append(make_sample(90_000, 1e308, image=["a", "b", "c"]))
    assert point.kudos_change == 1e308
    stats = window.stats()
    assert stats.kudos_per_hour == 600
    assert stats.requests_per_hour == 1
    assert len(window) == 3
