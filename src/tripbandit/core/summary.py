"""
Fold a completed trip history into a RunResult.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from .types import ArmSummary, FinalStatus, RunResult, TripRecord

if TYPE_CHECKING:
    from .policies import AllocationPolicy


def success_percentage(arrived: int, initial_budget: int) -> float:
    if initial_budget <= 0:
        return 0.0
    return arrived / float(initial_budget) * 100.0


def summarize_arms(trips: Sequence[TripRecord], n_arms: int) -> tuple[ArmSummary, ...]:
    """
    Per-arm usage and survival breakdown.
    """
    n_trips = [0] * n_arms
    units_sent = [0] * n_arms
    surviving = [0] * n_arms
    arrived = [0] * n_arms
    for trip in trips:
        n_trips[trip.arm] += 1
        units_sent[trip.arm] += trip.units_sent
        if trip.survived:
            surviving[trip.arm] += 1
            arrived[trip.arm] += trip.units_sent

    total = len(trips)
    rows = []
    for idx in range(n_arms):
        count = n_trips[idx]
        rows.append(
            ArmSummary(
                arm=idx,
                trips=count,
                units_sent=units_sent[idx],
                surviving_trips=surviving[idx],
                units_arrived=arrived[idx],
                survival_rate=surviving[idx] / count if count > 0 else 0.0,
                usage_fraction=count / total if total > 0 else 0.0,
            )
        )
    return tuple(rows)


def summarize_run(
    *,
    run_number: int,
    policy: AllocationPolicy,
    initial_budget: int,
    trips: Sequence[TripRecord],
    final_status: FinalStatus,
    n_arms: int,
    estimator_window: int | None = None,
) -> RunResult:
    params = dict(policy.params())
    if estimator_window is not None:
        params["estimator_window"] = int(estimator_window)
    return RunResult(
        run_number=int(run_number),
        policy_name=policy.name,
        policy_params=params,
        initial_budget=int(initial_budget),
        success_percentage=success_percentage(final_status.arrived_count, initial_budget),
        final_arrived_count=final_status.arrived_count,
        final_lost_count=final_status.lost_count,
        policy_label=policy.label,
        trips=tuple(trips),
        arm_summaries=summarize_arms(trips, n_arms),
    )


__all__ = ["success_percentage", "summarize_arms", "summarize_run"]
