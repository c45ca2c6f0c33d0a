from __future__ import annotations

import pytest

from tripbandit.exceptions import ConfigurationError, InvariantViolationError
from tripbandit.gateway.simulated import SimulatedEpisodeGateway


def test_deterministic_arms_track_counters() -> None:
    gateway = SimulatedEpisodeGateway([1.0, 0.0], initial_budget=10, rng_seed=0)
    assert gateway.start_episode().initial_budget == 10

    good = gateway.allocate(0, 3)
    bad = gateway.allocate(1, 2)

    assert good.survived and not bad.survived
    assert (bad.arrived_count, bad.lost_count) == (3, 2)
    assert bad.remaining_budget == 5
    assert bad.steps_taken == 2
    final = gateway.get_final_status()
    assert (final.arrived_count, final.lost_count) == (3, 2)


def test_start_episode_resets_state() -> None:
    gateway = SimulatedEpisodeGateway([1.0], initial_budget=4)
    gateway.start_episode()
    gateway.allocate(0, 4)
    gateway.start_episode()
    assert gateway.allocate(0, 1).remaining_budget == 3
    assert gateway.calls == [(0, 1)]


def test_precondition_violations_rejected() -> None:
    gateway = SimulatedEpisodeGateway([0.5, 0.5], initial_budget=2)
    gateway.start_episode()
    with pytest.raises(InvariantViolationError):
        gateway.allocate(0, 3)
    with pytest.raises(InvariantViolationError):
        gateway.allocate(2, 1)


def test_callable_survival_sees_step_index() -> None:
    seen: list[tuple[int, int]] = []

    def survival(arm: int, step: int) -> float:
        seen.append((arm, step))
        return 1.0 if step < 2 else 0.0

    gateway = SimulatedEpisodeGateway(survival, n_arms=2, initial_budget=5)
    gateway.start_episode()
    outcomes = [gateway.allocate(step % 2, 1) for step in range(4)]
    assert [o.survived for o in outcomes] == [True, True, False, False]
    assert seen == [(0, 0), (1, 1), (0, 2), (1, 3)]


def test_invalid_models_rejected() -> None:
    with pytest.raises(ConfigurationError):
        SimulatedEpisodeGateway(lambda arm, step: 0.5)
    with pytest.raises(ConfigurationError):
        SimulatedEpisodeGateway([0.5, 1.5])
    with pytest.raises(ConfigurationError):
        SimulatedEpisodeGateway([])
