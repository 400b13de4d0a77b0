"""Bounded per-stop flow history and fixed-width time bucketing for charts."""

import datetime
import logging
import math
from collections import deque
from collections.abc import Iterable

from transit_monitor.schemas.stop import FlowPoint

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 50


class FlowHistory:
    """Sliding window of the most recent samples per stop.

    Samples are appended in tick order, so each series is chronological.
    Once a series holds ``max_length`` points the oldest one is dropped on
    every append.
    """

    def __init__(self, max_length: int = DEFAULT_MAX_HISTORY) -> None:
        if max_length < 1:
            raise ValueError(f"max_length must be >= 1, got {max_length}")
        self.max_length = max_length
        self._series: dict[str, deque[FlowPoint]] = {}

    def record(self, stop_id: str, point: FlowPoint) -> None:
        series = self._series.get(stop_id)
        if series is None:
            series = deque(maxlen=self.max_length)
            self._series[stop_id] = series
        series.append(point)

    def series(self, stop_id: str) -> tuple[FlowPoint, ...]:
        """Copy of the stored samples for a stop, oldest first."""
        return tuple(self._series.get(stop_id, ()))

    def stop_ids(self) -> list[str]:
        return list(self._series)

    def clear(self) -> None:
        self._series.clear()

    def __len__(self) -> int:
        return sum(len(s) for s in self._series.values())


def _round_half_up(value: float) -> int:
    # Python's round() is half-to-even; dashboards expect 2.5 -> 3
    return math.floor(value + 0.5)


def bucket_flow(points: Iterable[FlowPoint], interval_minutes: int) -> list[FlowPoint]:
    """Average samples into fixed-width intervals aligned to the epoch.

    Each output point is stamped with its interval start and carries the mean
    count of the samples inside it, rounded half up. Empty intervals produce
    no point. Output is sorted by interval start.
    """
    if interval_minutes <= 0:
        raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")

    interval_ms = interval_minutes * 60 * 1000
    buckets: dict[int, list[int]] = {}
    for point in points:
        ts_ms = math.floor(point.timestamp.timestamp() * 1000)
        start = (ts_ms // interval_ms) * interval_ms
        acc = buckets.get(start)
        if acc is None:
            buckets[start] = [point.count, 1]
        else:
            acc[0] += point.count
            acc[1] += 1

    return [
        FlowPoint(
            timestamp=datetime.datetime.fromtimestamp(start / 1000, tz=datetime.timezone.utc),
            count=_round_half_up(total / n),
        )
        for start, (total, n) in sorted(buckets.items())
    ]


def has_trend(points: list[FlowPoint]) -> bool:
    """Whether there are enough buckets to draw a trend line through."""
    return len(points) >= 2
