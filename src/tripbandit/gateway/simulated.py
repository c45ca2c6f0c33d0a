"""
In-process Bernoulli episode for offline runs and tests.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence

from tripbandit.core.types import EpisodeStart, FinalStatus, Outcome
from tripbandit.exceptions import ConfigurationError, InvariantViolationError

SurvivalModel = Sequence[float] | Callable[[int, int], float]


class SimulatedEpisodeGateway:
    """
    Each trip survives as a whole group with the arm's survival probability.

    ``survival`` is either one probability per arm or a callable
    ``(arm, step) -> probability`` for non-stationary environments, where
    ``step`` counts trips already taken in the episode.
    """

    def __init__(
        self,
        survival: SurvivalModel,
        *,
        initial_budget: int = 1000,
        n_arms: int | None = None,
        rng_seed: int | None = None,
    ):
        if callable(survival):
            if n_arms is None:
                raise ConfigurationError("n_arms is required when survival is a callable.")
            self._survival_fn = survival
            self.n_arms = int(n_arms)
        else:
            probs = [float(p) for p in survival]
            if not probs:
                raise ConfigurationError("At least one survival probability is required.")
            if any(not 0.0 <= p <= 1.0 for p in probs):
                raise ConfigurationError(f"Survival probabilities must be within [0, 1], got {probs}.")
            self._survival_fn = lambda arm, step: probs[arm]
            self.n_arms = len(probs)
        if initial_budget < 0:
            raise ConfigurationError("initial_budget must be >= 0.")
        self.initial_budget = int(initial_budget)
        self._rng = random.Random(rng_seed)
        self._remaining = 0
        self._arrived = 0
        self._lost = 0
        self._steps = 0
        self.calls: list[tuple[int, int]] = []

    def start_episode(self) -> EpisodeStart:
        self._remaining = self.initial_budget
        self._arrived = 0
        self._lost = 0
        self._steps = 0
        self.calls.clear()
        return EpisodeStart(initial_budget=self._remaining)

    def allocate(self, arm: int, units: int) -> Outcome:
        if not 0 <= arm < self.n_arms:
            raise InvariantViolationError(f"Unknown arm {arm}.", arm=arm)
        if not 0 <= units <= self._remaining:
            raise InvariantViolationError(
                f"Cannot send {units} units with {self._remaining} remaining.",
                units=units,
                remaining_budget=self._remaining,
            )
        self.calls.append((arm, units))
        survived = self._rng.random() < self._survival_fn(arm, self._steps)
        self._remaining -= units
        if survived:
            self._arrived += units
        else:
            self._lost += units
        self._steps += 1
        return Outcome(
            units_sent=units,
            survived=survived,
            remaining_budget=self._remaining,
            arrived_count=self._arrived,
            lost_count=self._lost,
            steps_taken=self._steps,
        )

    def get_final_status(self) -> FinalStatus:
        return FinalStatus(arrived_count=self._arrived, lost_count=self._lost)


__all__ = ["SimulatedEpisodeGateway", "SurvivalModel"]
