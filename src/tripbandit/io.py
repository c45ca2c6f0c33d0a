"""
Persistence helpers for run results and trip traces.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .core.types import ArmSummary, RunResult, TripRecord
from .exceptions import InvalidResultsError

TRIP_HEADER = [
    "trip_number",
    "arm",
    "units_requested",
    "units_sent",
    "survived",
    "remaining_budget",
    "arrived_count",
    "lost_count",
    "steps_taken",
    "reason",
]


def ensure_dir(path: str | Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.isoformat().replace("+00:00", "Z").replace(":", "-").replace(".", "-")


def run_result_to_dict(result: RunResult) -> dict[str, Any]:
    return {
        "run_number": result.run_number,
        "algo_name": result.label,
        "policy_name": result.policy_name,
        "strategy_params": dict(result.policy_params),
        "initial_budget": result.initial_budget,
        "success_percentage": result.success_percentage,
        "final_score": result.final_arrived_count,
        "morties_lost": result.final_lost_count,
        "total_trips": result.total_trips,
        "arm_summaries": [asdict(row) for row in result.arm_summaries],
        "trip_data": [trip.to_dict() for trip in result.trips],
    }


def run_result_from_dict(data: dict[str, Any]) -> RunResult:
    try:
        return RunResult(
            run_number=int(data["run_number"]),
            policy_name=str(data.get("policy_name") or data["algo_name"]),
            policy_params=dict(data.get("strategy_params") or {}),
            initial_budget=int(data.get("initial_budget", 0)),
            success_percentage=float(data["success_percentage"]),
            final_arrived_count=int(data["final_score"]),
            final_lost_count=int(data["morties_lost"]),
            policy_label=str(data["algo_name"]),
            trips=tuple(TripRecord(**trip) for trip in data.get("trip_data", [])),
            arm_summaries=tuple(ArmSummary(**row) for row in data.get("arm_summaries", [])),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidResultsError(f"Not a run result: {exc}") from exc


def write_run_result(output_dir: str | Path, result: RunResult, *, now: datetime | None = None) -> Path:
    """
    Write one run as ``<label>_Run_<n>_<timestamp>.json``. Returns the file path.
    """
    output_dir = ensure_dir(output_dir)
    path = output_dir / f"{result.label}_Run_{result.run_number}_{_timestamp(now)}.json"
    with path.open("w", encoding="utf-8") as fh:
        json.dump(run_result_to_dict(result), fh, indent=2)
    return path


def load_run_result(path: str | Path) -> RunResult:
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidResultsError(f"Could not read run result: {exc}", path=str(path)) from exc
    if not isinstance(data, dict):
        raise InvalidResultsError("Run result must be a JSON object.", path=str(path))
    try:
        return run_result_from_dict(data)
    except InvalidResultsError as exc:
        raise InvalidResultsError(exc.message, path=str(path)) from exc


def load_run_results(directory: str | Path) -> list[RunResult]:
    """
    Load every ``*.json`` run result in a directory, ordered by file name.
    """
    return [load_run_result(path) for path in sorted(Path(directory).glob("*.json"))]


def write_trip_trace(path: str | Path, trips: Iterable[TripRecord]) -> None:
    """
    Write trip records to CSV with a fixed header.
    """
    output_path = Path(path)
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=TRIP_HEADER)
        writer.writeheader()
        for trip in trips:
            data = trip.to_dict()
            writer.writerow({key: data.get(key) for key in TRIP_HEADER})


__all__ = [
    "TRIP_HEADER",
    "ensure_dir",
    "load_run_result",
    "load_run_results",
    "run_result_from_dict",
    "run_result_to_dict",
    "write_run_result",
    "write_trip_trace",
]
