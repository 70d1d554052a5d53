from __future__ import annotations
import dataclasses
import math
from typing import List

from .config import TIME_PERIODS
from .models import AggregateStats, DataPoint, Sample
from .utils import round_half_up

HOUR_MS = 3_600_000


class MetricsWindow:
    """Bounded FIFO of DataPoints plus the rates derived from them.

    The bound is a point count. Stats are recomputed from the whole window
    after every append, so evictions and ``retain`` never leave them drifting.
    """

    def __init__(self, limit: int = TIME_PERIODS["1hr"]):
        if limit < 1:
            raise ValueError("limit must be positive")
        self.limit = limit
        self._points: List[DataPoint] = []
        self._stats = AggregateStats()

    def __len__(self) -> int:
        return len(self._points)

    def append(self, sample: Sample) -> DataPoint:
        timestamp = sample.timestamp_ms
        change = None
        if self._points:
            last = self._points[-1]
            # Late arrivals are pinned to the newest point to keep ordering
            timestamp = max(timestamp, last.timestamp)
            change = sample.kudos - last.kudos
        point = DataPoint(
            timestamp=timestamp,
            kudos=sample.kudos,
            kudos_change=change,
            image_requests=len(sample.image_ids),
            text_requests=len(sample.text_ids),
        )
        self._points.append(point)
        self._trim()
        self._recompute()
        return point

    def current(self) -> List[DataPoint]:
        return list(self._points)

    def since(self, cutoff_ms: int) -> List[DataPoint]:
        return [p for p in self._points if p.timestamp >= cutoff_ms]

    def stats(self) -> AggregateStats:
        return dataclasses.replace(self._stats)

    def retain(self, n: int) -> None:
        if n < 1:
            raise ValueError("retention must be positive")
        self.limit = n
        self._trim()

    def clear(self) -> None:
        self._points = []
        self._stats = AggregateStats()

    def _trim(self) -> None:
        excess = len(self._points) - self.limit
        if excess > 0:
            del self._points[:excess]
        # the oldest point has no predecessor left to diff against
        if self._points and self._points[0].kudos_change is not None:
            self._points[0] = dataclasses.replace(self._points[0], kudos_change=None)

    def _recompute(self) -> None:
        points = self._points
        if len(points) < 2:
            return
        load = sum(p.image_requests + p.text_requests for p in points) / len(points)
        self._stats.requests_per_hour = round_half_up(load)
        first, last = points[0], points[-1]
        span = last.timestamp - first.timestamp
        if span > 0:
            rate = (last.kudos - first.kudos) * (HOUR_MS / span)
            # huge balances can overflow to inf; keep the last good rate
            if math.isfinite(rate):
                self._stats.kudos_per_hour = round_half_up(rate)
