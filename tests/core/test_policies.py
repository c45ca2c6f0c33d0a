from __future__ import annotations

import random

import pytest
from scipy import stats as spstats

from tripbandit.core.estimator import RollingEstimator
from tripbandit.core.policies import (
    EpsilonGreedyPolicy,
    FixedArmPolicy,
    ProbeCyclePolicy,
    UniformRandomPolicy,
    build_policy,
)
from tripbandit.exceptions import ConfigurationError, InvalidPolicyError


def _drive(policy, estimator: RollingEstimator, n: int, survived: bool = True) -> list[tuple[int, int, str]]:
    decisions = []
    for _ in range(n):
        decision = policy.decide(estimator, budget=1000)
        decisions.append((decision.arm, decision.units, decision.reason))
        estimator.record(decision.arm, survived)
        policy.observe(decision.arm, survived)
    return decisions


def test_probe_cycle_visits_each_arm_k_times_in_order() -> None:
    policy = ProbeCyclePolicy(n_arms=3, trips_per_arm=4)
    estimator = RollingEstimator(3)
    arms = [arm for arm, _, _ in _drive(policy, estimator, 24)]
    expected_cycle = [0] * 4 + [1] * 4 + [2] * 4
    assert arms == expected_cycle * 2


def test_probe_cycle_uses_fixed_units_and_resets() -> None:
    policy = ProbeCyclePolicy(n_arms=2, trips_per_arm=2, units_per_trip=2)
    estimator = RollingEstimator(2)
    first = _drive(policy, estimator, 3)
    assert all(units == 2 for _, units, _ in first)
    policy.reset()
    assert policy.decide(estimator, budget=10).arm == 0


def test_probe_cycle_generalizes_to_more_arms() -> None:
    policy = ProbeCyclePolicy(n_arms=5, trips_per_arm=1)
    arms = [arm for arm, _, _ in _drive(policy, RollingEstimator(5), 7)]
    assert arms == [0, 1, 2, 3, 4, 0, 1]


def test_epsilon_greedy_probe_phase_round_robins() -> None:
    policy = EpsilonGreedyPolicy(n_arms=3, epsilon=0.5, window_size=4, rng_seed=1)
    assert policy.probe_trip_count == 12
    decisions = _drive(policy, RollingEstimator(3, 4), 12)
    assert [arm for arm, _, _ in decisions] == [0, 1, 2] * 4
    assert all(units == 1 and reason == "probe" for _, units, reason in decisions)
    assert not policy.in_probe_phase


def test_epsilon_zero_always_exploits_best_arm() -> None:
    policy = EpsilonGreedyPolicy(n_arms=3, epsilon=0.0, window_size=5, probe_trip_count=0, rng_seed=3)
    estimator = RollingEstimator(3, 5)
    for value in [True, False, False, False]:
        estimator.record(0, value)
    for value in [True, True, False, False]:
        estimator.record(1, value)
    for value in [True, False, False]:
        estimator.record(2, value)
    for _ in range(50):
        decision = policy.decide(estimator, budget=100)
        assert (decision.arm, decision.units, decision.reason) == (1, 3, "exploit")
        policy.observe(decision.arm, True)


def test_epsilon_zero_breaks_ties_by_lowest_index() -> None:
    policy = EpsilonGreedyPolicy(n_arms=3, epsilon=0.0, probe_trip_count=0)
    estimator = RollingEstimator(3)
    estimator.record(1, True)
    estimator.record(2, True)
    assert policy.decide(estimator, budget=10).arm == 1


def test_epsilon_one_explores_uniformly_with_single_units() -> None:
    policy = EpsilonGreedyPolicy(n_arms=3, epsilon=1.0, probe_trip_count=0, rng_seed=2024)
    estimator = RollingEstimator(3)
    estimator.record(0, True)
    counts = [0, 0, 0]
    for _ in range(3000):
        decision = policy.decide(estimator, budget=100)
        assert decision.units == 1
        assert decision.reason == "explore"
        counts[decision.arm] += 1
        policy.observe(decision.arm, False)
    _, p_value = spstats.chisquare(counts)
    assert p_value > 0.001


def test_exploration_ratio_tracks_epsilon() -> None:
    policy = EpsilonGreedyPolicy(n_arms=3, epsilon=0.3, probe_trip_count=0, rng_seed=11)
    estimator = RollingEstimator(3)
    reasons = [reason for _, _, reason in _drive(policy, estimator, 5000)]
    explore_fraction = reasons.count("explore") / len(reasons)
    assert abs(explore_fraction - 0.3) < 0.03


def test_tie_break_fewest_samples_prefers_unsampled_arm() -> None:
    estimator = RollingEstimator(3, 10)
    for _ in range(5):
        estimator.record(0, False)
    for _ in range(3):
        estimator.record(2, False)

    lowest = EpsilonGreedyPolicy(n_arms=3, epsilon=0.0, probe_trip_count=0)
    fewest = EpsilonGreedyPolicy(n_arms=3, epsilon=0.0, probe_trip_count=0, tie_break="fewest_samples")
    assert lowest.decide(estimator, budget=10).arm == 0
    assert fewest.decide(estimator, budget=10).arm == 1


def test_tie_break_fewest_samples_ignores_non_maximal_arms() -> None:
    estimator = RollingEstimator(3, 10)
    estimator.record(0, True)
    estimator.record(0, True)
    policy = EpsilonGreedyPolicy(n_arms=3, epsilon=0.0, probe_trip_count=0, tie_break="fewest_samples")
    assert policy.decide(estimator, budget=10).arm == 0


def test_epsilon_greedy_replays_with_same_seed() -> None:
    def run(seed: int) -> list[tuple[int, int, str]]:
        policy = EpsilonGreedyPolicy(n_arms=3, epsilon=0.5, window_size=2, rng_seed=seed)
        return _drive(policy, RollingEstimator(3, 2), 40, survived=False)

    assert run(9) == run(9)


def test_epsilon_greedy_accepts_injected_rng() -> None:
    rng = random.Random(5)
    policy = EpsilonGreedyPolicy(n_arms=2, epsilon=1.0, probe_trip_count=0, rng=rng)
    expected = random.Random(5)
    decision = policy.decide(RollingEstimator(2), budget=5)
    expected.random()
    assert decision.arm == expected.randrange(2)


def test_epsilon_greedy_rejects_bad_parameters() -> None:
    with pytest.raises(ConfigurationError):
        EpsilonGreedyPolicy(n_arms=3, epsilon=1.5)
    with pytest.raises(ConfigurationError):
        EpsilonGreedyPolicy(n_arms=3, tie_break="random")
    with pytest.raises(ConfigurationError):
        EpsilonGreedyPolicy(n_arms=3, exploit_units=0)


def test_uniform_random_draws_within_ranges() -> None:
    policy = UniformRandomPolicy(n_arms=4, unit_choices=(1, 2, 3), rng_seed=8)
    decisions = _drive(policy, RollingEstimator(4), 500)
    assert {arm for arm, _, _ in decisions} == {0, 1, 2, 3}
    assert {units for _, units, _ in decisions} == {1, 2, 3}


def test_uniform_random_ignores_outcomes() -> None:
    a = UniformRandomPolicy(n_arms=3, rng_seed=4)
    b = UniformRandomPolicy(n_arms=3, rng_seed=4)
    assert _drive(a, RollingEstimator(3), 30, survived=True) == _drive(b, RollingEstimator(3), 30, survived=False)


def test_fixed_arm_policy() -> None:
    policy = FixedArmPolicy(n_arms=3, target_arm=2, units_per_trip=3)
    decisions = _drive(policy, RollingEstimator(3), 5)
    assert decisions == [(2, 3, "fixed")] * 5
    assert policy.label == "Baseline_P2_M3"
    with pytest.raises(ConfigurationError):
        FixedArmPolicy(n_arms=3, target_arm=3)


def test_build_policy_by_name() -> None:
    policy = build_policy("Probe_Cycle", 3, trips_per_arm=7)
    assert isinstance(policy, ProbeCyclePolicy)
    assert policy.params()["trips_per_arm"] == 7
    with pytest.raises(InvalidPolicyError):
        build_policy("thompson", 3)
    with pytest.raises(ConfigurationError):
        build_policy("fixed_arm", 3, epsilon=0.1)
