from __future__ import annotations

import numpy as np
import pytest

from tripbandit.analysis import arm_counts, arm_usage_test, compare_runs
from tripbandit.core.types import RunResult, TripRecord


def _result(label: str, success: float, run_number: int = 1, trips: int = 0) -> RunResult:
    records = tuple(
        TripRecord(
            trip_number=n + 1,
            arm=0,
            units_requested=1,
            units_sent=1,
            survived=True,
            remaining_budget=trips - n - 1,
            arrived_count=n + 1,
            lost_count=0,
            steps_taken=n + 1,
        )
        for n in range(trips)
    )
    return RunResult(
        run_number=run_number,
        policy_name=label.lower(),
        policy_params={},
        initial_budget=1000,
        success_percentage=success,
        final_arrived_count=int(success * 10),
        final_lost_count=1000 - int(success * 10),
        policy_label=label,
        trips=records,
    )


def _trips(arms: list[int]) -> list[TripRecord]:
    return [
        TripRecord(
            trip_number=i + 1,
            arm=arm,
            units_requested=1,
            units_sent=1,
            survived=False,
            remaining_budget=len(arms) - i - 1,
            arrived_count=0,
            lost_count=i + 1,
            steps_taken=i + 1,
        )
        for i, arm in enumerate(arms)
    ]


def test_compare_runs_groups_and_orders_by_mean() -> None:
    results = [
        _result("ProbeCycle_12", 40.0, 1, trips=3),
        _result("EpsilonGreedy_e0.4_w20", 60.0, 1, trips=2),
        _result("ProbeCycle_12", 50.0, 2, trips=5),
        _result("EpsilonGreedy_e0.4_w20", 70.0, 2, trips=2),
    ]
    rows = compare_runs(results)
    assert [row.label for row in rows] == ["EpsilonGreedy_e0.4_w20", "ProbeCycle_12"]
    best, other = rows
    assert best.runs == 2
    assert best.mean_success == pytest.approx(65.0)
    assert best.std_success == pytest.approx(np.std([60.0, 70.0], ddof=1))
    assert (other.min_success, other.max_success, other.median_success) == (40.0, 50.0, 45.0)
    assert other.mean_trips == pytest.approx(4.0)


def test_compare_runs_single_run_has_zero_std() -> None:
    (row,) = compare_runs([_result("UniformRandom", 33.0)])
    assert row.std_success == 0.0


def test_arm_counts_include_unvisited_arms() -> None:
    assert arm_counts(_trips([0, 0, 2]), 4).tolist() == [2, 0, 1, 0]


def test_arm_usage_test_uniform_and_skewed() -> None:
    uniform = arm_usage_test(_trips([0, 1, 2] * 20), 3)
    assert uniform.statistic == pytest.approx(0.0)
    assert uniform.p_value == pytest.approx(1.0)

    skewed = arm_usage_test(_trips([0] * 50 + [1] * 5 + [2] * 5), 3)
    assert skewed.p_value < 0.001


def test_arm_usage_test_requires_trips() -> None:
    with pytest.raises(ValueError):
        arm_usage_test([], 3)
