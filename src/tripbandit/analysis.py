"""
Cross-run comparison of policies and arm-usage diagnostics.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from scipy import stats as spstats  # type: ignore[import-untyped]

from .core.types import RunResult, TripRecord


@dataclass(frozen=True)
class PolicyComparisonRow:
    label: str
    runs: int
    mean_success: float
    std_success: float
    median_success: float
    min_success: float
    max_success: float
    mean_trips: float


@dataclass(frozen=True)
class UsageTestResult:
    counts: np.ndarray
    statistic: float
    p_value: float


def compare_runs(results: Sequence[RunResult]) -> list[PolicyComparisonRow]:
    """
    Group runs by policy label and summarize success percentages, best mean first.
    """
    grouped: dict[str, list[RunResult]] = {}
    for result in results:
        grouped.setdefault(result.label, []).append(result)

    rows: list[PolicyComparisonRow] = []
    for label, group in grouped.items():
        success = np.asarray([r.success_percentage for r in group], dtype=float)
        trips = np.asarray([r.total_trips for r in group], dtype=float)
        rows.append(
            PolicyComparisonRow(
                label=label,
                runs=len(group),
                mean_success=float(np.mean(success)),
                std_success=float(np.std(success, ddof=1)) if success.size > 1 else 0.0,
                median_success=float(np.median(success)),
                min_success=float(np.min(success)),
                max_success=float(np.max(success)),
                mean_trips=float(np.mean(trips)),
            )
        )
    rows.sort(key=lambda row: (-row.mean_success, row.label))
    return rows


def arm_counts(trips: Sequence[TripRecord], n_arms: int) -> np.ndarray:
    arms = np.asarray([trip.arm for trip in trips], dtype=int)
    return np.bincount(arms, minlength=n_arms)[:n_arms]


def arm_usage_test(trips: Sequence[TripRecord], n_arms: int) -> UsageTestResult:
    """
    Chi-square goodness-of-fit of arm visits against a discrete uniform distribution.
    """
    if not trips:
        raise ValueError("arm_usage_test requires at least one trip.")
    counts = arm_counts(trips, n_arms)
    stat, p_value = spstats.chisquare(counts)
    return UsageTestResult(counts=counts, statistic=float(stat), p_value=float(p_value))


__all__ = [
    "PolicyComparisonRow",
    "UsageTestResult",
    "arm_counts",
    "arm_usage_test",
    "compare_runs",
]
