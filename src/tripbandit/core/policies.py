"""
Allocation policies: which arm to use next and how many units to send.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Any, Protocol

from ..exceptions import ConfigurationError, InvalidPolicyError
from .estimator import RollingEstimator
from .types import Decision

TIE_BREAK_MODES = ("lowest_index", "fewest_samples")


def _argmax(values: list[float]) -> int:
    best_idx = 0
    best_val = values[0]
    for idx, val in enumerate(values[1:], start=1):
        if val > best_val:
            best_idx = idx
            best_val = val
    return best_idx


def _argmax_fewest_samples(values: list[float], counts: list[int]) -> int:
    best_val = max(values)
    tied = [idx for idx, val in enumerate(values) if val == best_val]
    return min(tied, key=lambda idx: (counts[idx], idx))


def _require_positive(name: str, value: int) -> int:
    value = int(value)
    if value <= 0:
        raise ConfigurationError(f"{name} must be >= 1, got {value}.")
    return value


def _make_rng(rng: random.Random | None, rng_seed: int | None) -> random.Random:
    if rng is not None:
        return rng
    return random.Random(rng_seed)


class AllocationPolicy(Protocol):
    """
    Protocol for allocation policies.

    A policy instance is owned by one run at a time. ``reset()`` is called at
    the start of every run; ``observe()`` after every completed trip.
    """

    name: str

    @property
    def label(self) -> str: ...

    def reset(self) -> None: ...

    def decide(self, estimator: RollingEstimator, budget: int) -> Decision: ...

    def observe(self, arm_index: int, survived: bool) -> None: ...

    def params(self) -> dict[str, Any]: ...


class ProbeCyclePolicy:
    """
    Round-robin with a fixed dwell time: ``trips_per_arm`` trips on one arm,
    then advance to the next arm cyclically. Ignores estimates.
    """

    name = "probe_cycle"

    def __init__(self, n_arms: int, *, trips_per_arm: int = 12, units_per_trip: int = 1):
        self.n_arms = _require_positive("n_arms", n_arms)
        self.trips_per_arm = _require_positive("trips_per_arm", trips_per_arm)
        self.units_per_trip = _require_positive("units_per_trip", units_per_trip)
        self._current_arm = 0
        self._trips_on_arm = 0

    @property
    def label(self) -> str:
        return f"ProbeCycle_{self.trips_per_arm}"

    def reset(self) -> None:
        self._current_arm = 0
        self._trips_on_arm = 0

    def decide(self, estimator: RollingEstimator, budget: int) -> Decision:
        return Decision(arm=self._current_arm, units=self.units_per_trip, reason="cycle")

    def observe(self, arm_index: int, survived: bool) -> None:
        self._trips_on_arm += 1
        if self._trips_on_arm >= self.trips_per_arm:
            self._trips_on_arm = 0
            self._current_arm = (self._current_arm + 1) % self.n_arms

    def params(self) -> dict[str, Any]:
        return {
            "n_arms": self.n_arms,
            "trips_per_arm": self.trips_per_arm,
            "units_per_trip": self.units_per_trip,
        }


class EpsilonGreedyPolicy:
    """
    Two-phase epsilon-greedy policy over rolling-window estimates.

    Probe phase: the first ``probe_trip_count`` trips round-robin the arms in
    index order with ``probe_units`` each, regardless of estimates.

    Exploit phase: with probability ``epsilon`` a uniformly random arm gets
    ``explore_units``; otherwise the arm with the best estimate gets
    ``exploit_units``. Ties go to the lowest index, or with
    ``tie_break="fewest_samples"`` to the arm with the fewest observations
    first, so an unsampled arm beats one with an observed 0% rate.
    """

    name = "epsilon_greedy"

    def __init__(
        self,
        n_arms: int,
        *,
        epsilon: float = 0.4,
        window_size: int = 20,
        probe_trip_count: int | None = None,
        probe_units: int = 1,
        explore_units: int = 1,
        exploit_units: int = 3,
        tie_break: str = "lowest_index",
        rng_seed: int | None = None,
        rng: random.Random | None = None,
    ):
        self.n_arms = _require_positive("n_arms", n_arms)
        self.epsilon = float(epsilon)
        if not 0.0 <= self.epsilon <= 1.0:
            raise ConfigurationError(f"epsilon must be within [0, 1], got {self.epsilon}.")
        self.window_size = _require_positive("window_size", window_size)
        if probe_trip_count is None:
            probe_trip_count = self.window_size * self.n_arms
        self.probe_trip_count = int(probe_trip_count)
        if self.probe_trip_count < 0:
            raise ConfigurationError("probe_trip_count must be >= 0.")
        self.probe_units = _require_positive("probe_units", probe_units)
        self.explore_units = _require_positive("explore_units", explore_units)
        self.exploit_units = _require_positive("exploit_units", exploit_units)
        if tie_break not in TIE_BREAK_MODES:
            raise ConfigurationError(
                f"Unknown tie_break '{tie_break}'.",
                suggestion=f"Use one of: {', '.join(TIE_BREAK_MODES)}",
            )
        self.tie_break = tie_break
        self.rng_seed = rng_seed
        self._rng = _make_rng(rng, rng_seed)
        self._trip_index = 0

    @property
    def label(self) -> str:
        return f"EpsilonGreedy_e{self.epsilon:g}_w{self.window_size}"

    @property
    def in_probe_phase(self) -> bool:
        return self._trip_index < self.probe_trip_count

    def reset(self) -> None:
        self._trip_index = 0

    def decide(self, estimator: RollingEstimator, budget: int) -> Decision:
        if self.in_probe_phase:
            return Decision(arm=self._trip_index % self.n_arms, units=self.probe_units, reason="probe")
        if self._rng.random() < self.epsilon:
            return Decision(arm=self._rng.randrange(self.n_arms), units=self.explore_units, reason="explore")
        return Decision(arm=self._best_arm(estimator), units=self.exploit_units, reason="exploit")

    def observe(self, arm_index: int, survived: bool) -> None:
        self._trip_index += 1

    def params(self) -> dict[str, Any]:
        return {
            "n_arms": self.n_arms,
            "epsilon": self.epsilon,
            "window_size": self.window_size,
            "probe_trip_count": self.probe_trip_count,
            "probe_units": self.probe_units,
            "explore_units": self.explore_units,
            "exploit_units": self.exploit_units,
            "tie_break": self.tie_break,
            "rng_seed": self.rng_seed,
        }

    def _best_arm(self, estimator: RollingEstimator) -> int:
        values = [estimator.estimate(idx) for idx in range(self.n_arms)]
        if self.tie_break == "fewest_samples":
            return _argmax_fewest_samples(values, [estimator.count(idx) for idx in range(self.n_arms)])
        return _argmax(values)


class UniformRandomPolicy:
    """
    Baseline: uniformly random arm and unit count, blind to outcomes.
    """

    name = "uniform_random"

    def __init__(
        self,
        n_arms: int,
        *,
        unit_choices: Sequence[int] = (1, 2, 3),
        rng_seed: int | None = None,
        rng: random.Random | None = None,
    ):
        self.n_arms = _require_positive("n_arms", n_arms)
        if not unit_choices:
            raise ConfigurationError("unit_choices must not be empty.")
        self.unit_choices = tuple(_require_positive("unit_choices", units) for units in unit_choices)
        self.rng_seed = rng_seed
        self._rng = _make_rng(rng, rng_seed)

    @property
    def label(self) -> str:
        return "UniformRandom"

    def reset(self) -> None:
        return None

    def decide(self, estimator: RollingEstimator, budget: int) -> Decision:
        arm = self._rng.randrange(self.n_arms)
        units = self._rng.choice(self.unit_choices)
        return Decision(arm=arm, units=units, reason="random")

    def observe(self, arm_index: int, survived: bool) -> None:
        return None

    def params(self) -> dict[str, Any]:
        return {
            "n_arms": self.n_arms,
            "unit_choices": list(self.unit_choices),
            "rng_seed": self.rng_seed,
        }


class FixedArmPolicy:
    """
    Baseline: always the same arm and unit count.
    """

    name = "fixed_arm"

    def __init__(self, n_arms: int, *, target_arm: int = 0, units_per_trip: int = 1):
        self.n_arms = _require_positive("n_arms", n_arms)
        self.target_arm = int(target_arm)
        if not 0 <= self.target_arm < self.n_arms:
            raise ConfigurationError(f"target_arm must be within [0, {self.n_arms}), got {self.target_arm}.")
        self.units_per_trip = _require_positive("units_per_trip", units_per_trip)

    @property
    def label(self) -> str:
        return f"Baseline_P{self.target_arm}_M{self.units_per_trip}"

    def reset(self) -> None:
        return None

    def decide(self, estimator: RollingEstimator, budget: int) -> Decision:
        return Decision(arm=self.target_arm, units=self.units_per_trip, reason="fixed")

    def observe(self, arm_index: int, survived: bool) -> None:
        return None

    def params(self) -> dict[str, Any]:
        return {
            "n_arms": self.n_arms,
            "target_arm": self.target_arm,
            "units_per_trip": self.units_per_trip,
        }


POLICY_REGISTRY: dict[str, type] = {
    ProbeCyclePolicy.name: ProbeCyclePolicy,
    EpsilonGreedyPolicy.name: EpsilonGreedyPolicy,
    UniformRandomPolicy.name: UniformRandomPolicy,
    FixedArmPolicy.name: FixedArmPolicy,
}


def available_policy_names() -> list[str]:
    return sorted(POLICY_REGISTRY)


def build_policy(name: str, n_arms: int, **kwargs: Any) -> AllocationPolicy:
    """
    Instantiate a registered policy by name.
    """
    key = (name or "").strip().lower()
    policy_cls = POLICY_REGISTRY.get(key)
    if policy_cls is None:
        raise InvalidPolicyError(name, available_policy_names())
    try:
        return policy_cls(n_arms, **kwargs)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid parameters for policy '{key}': {exc}") from exc


__all__ = [
    "AllocationPolicy",
    "EpsilonGreedyPolicy",
    "FixedArmPolicy",
    "POLICY_REGISTRY",
    "ProbeCyclePolicy",
    "TIE_BREAK_MODES",
    "UniformRandomPolicy",
    "available_policy_names",
    "build_policy",
]
