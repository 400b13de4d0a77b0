"""Derive the single active insight from a set of stop samples."""

from collections.abc import Sequence

from transit_monitor.schemas.snapshot import AiInsight, Severity
from transit_monitor.schemas.stop import OccupancyStatus, StopData

NORMAL_INSIGHT = AiInsight(
    id="insight-normal",
    message="Normal operations across the network.",
    suggestion="No immediate action required. The system is operating optimally.",
    severity=Severity.LOW,
)


def derive_insight(
    stops: Sequence[StopData],
    high_cutoff: int = 60,
    medium_cutoff: int = 40,
) -> AiInsight:
    """Pick the most severe insight for the current samples.

    Rules are tried in priority order and the first stop (in the given
    order) that satisfies a rule wins. Never returns None: with nothing to
    report the LOW normal-operations insight is returned.
    """
    for stop in stops:
        if stop.status == OccupancyStatus.HIGH and stop.person_count > high_cutoff:
            return AiInsight(
                id=f"insight-{stop.stop_id}",
                message=f"High demand detected at {stop.location.address}.",
                suggestion="Consider dispatching a reinforcement bus to the route serving this area.",
                severity=Severity.HIGH,
            )

    for stop in stops:
        if stop.status == OccupancyStatus.MEDIUM and stop.person_count > medium_cutoff:
            return AiInsight(
                id=f"insight-{stop.stop_id}",
                message=f"Passenger flow increasing at {stop.location.address}.",
                suggestion="Keep monitoring. The flow could reach a high level soon.",
                severity=Severity.MEDIUM,
            )

    return NORMAL_INSIGHT
