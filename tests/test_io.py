from __future__ import annotations

import csv
import json
from datetime import datetime, timezone

import pytest

from tripbandit.core.orchestrator import TripOrchestrator
from tripbandit.core.policies import ProbeCyclePolicy
from tripbandit.exceptions import InvalidResultsError
from tripbandit.gateway.simulated import SimulatedEpisodeGateway
from tripbandit.io import TRIP_HEADER, load_run_result, load_run_results, write_run_result, write_trip_trace


@pytest.fixture
def result():
    gateway = SimulatedEpisodeGateway([0.9, 0.1, 0.5], initial_budget=24, rng_seed=6)
    return TripOrchestrator(gateway, n_arms=3).run(ProbeCyclePolicy(n_arms=3, trips_per_arm=12), run_number=2)


def test_write_run_result_layout(tmp_path, result) -> None:
    now = datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    path = write_run_result(tmp_path / "data", result, now=now)
    assert path.name == "ProbeCycle_12_Run_2_2025-01-02T03-04-05-678000Z.json"

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["run_number"] == 2
    assert data["algo_name"] == "ProbeCycle_12"
    assert data["strategy_params"]["trips_per_arm"] == 12
    assert data["final_score"] == result.final_arrived_count
    assert data["morties_lost"] == result.final_lost_count
    assert data["total_trips"] == 24
    assert len(data["trip_data"]) == 24
    assert data["trip_data"][0]["trip_number"] == 1
    assert [row["trips"] for row in data["arm_summaries"]] == [12, 12, 0]


def test_load_run_result_restores_fields(tmp_path, result) -> None:
    path = write_run_result(tmp_path, result)
    loaded = load_run_result(path)
    assert loaded.label == result.label
    assert loaded.success_percentage == result.success_percentage
    assert loaded.trips == result.trips
    assert loaded.arm_summaries == result.arm_summaries


def test_load_run_results_reads_directory(tmp_path, result) -> None:
    write_run_result(tmp_path, result)
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    assert len(load_run_results(tmp_path)) == 1


def test_invalid_result_files(tmp_path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidResultsError):
        load_run_result(broken)

    wrong = tmp_path / "wrong.json"
    wrong.write_text(json.dumps({"hello": "world"}), encoding="utf-8")
    with pytest.raises(InvalidResultsError) as excinfo:
        load_run_result(wrong)
    assert excinfo.value.details["path"] == str(wrong)


def test_write_trip_trace_header_and_rows(tmp_path, result) -> None:
    path = tmp_path / "trace.csv"
    write_trip_trace(path, result.trips)
    with path.open(newline="", encoding="utf-8") as fh:
        reader = csv.reader(fh)
        assert next(reader) == TRIP_HEADER
        first = next(reader)
        assert first[0] == "1"
        assert first[1] == "0"
        assert first[-1] == "cycle"
