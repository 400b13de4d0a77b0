"""Read-side views over a snapshot: ranking and historical comparison."""

import math
from collections.abc import Sequence

from transit_monitor.schemas.stop import StopData, StopMetrics


def rank_stops(stops: Sequence[StopData], limit: int = 5) -> list[StopData]:
    """Busiest stops first. Ties keep definition order."""
    return sorted(stops, key=lambda s: s.person_count, reverse=True)[:max(0, limit)]


def _pct_change(current: int, reference: int) -> float:
    if reference == 0:
        return 0.0
    pct = (current - reference) / reference * 100
    return pct if math.isfinite(pct) else 0.0


def stop_metrics(stop: StopData) -> StopMetrics:
    return StopMetrics(
        stop_id=stop.stop_id,
        current=stop.person_count,
        vs_last_week_pct=round(_pct_change(stop.person_count, stop.historical.last_week), 1),
        vs_last_month_pct=round(_pct_change(stop.person_count, stop.historical.last_month), 1),
    )
