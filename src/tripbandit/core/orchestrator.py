"""
Trip loop: ties a policy to gateway feedback and budget accounting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import ConfigurationError, InvariantViolationError
from .estimator import RollingEstimator
from .policies import AllocationPolicy
from .summary import summarize_run
from .types import Decision, Outcome, RunResult, TripRecord

if TYPE_CHECKING:
    from tripbandit.gateway.protocol import EpisodeGateway


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


@dataclass(frozen=True)
class EpisodeTrace:
    initial_budget: int
    trips: tuple[TripRecord, ...]
    estimator: RollingEstimator


class TripOrchestrator:
    """
    Runs one episode at a time against an EpisodeGateway.

    Each run gets a fresh RollingEstimator and a reset policy; nothing but
    the policy's RNG stream carries over between runs.
    """

    def __init__(
        self,
        gateway: EpisodeGateway,
        *,
        n_arms: int = 3,
        window_size: int = 20,
        log_every: int = 10,
    ):
        if n_arms <= 0:
            raise ValueError("n_arms must be positive.")
        self.gateway = gateway
        self.n_arms = int(n_arms)
        self.window_size = int(window_size)
        self.log_every = int(log_every)

    def run(self, policy: AllocationPolicy, *, run_number: int = 1) -> RunResult:
        """
        Start an episode, run it to budget exhaustion and summarize it.
        """
        _logger().info("Starting run %d for %s", run_number, policy.label)
        start = self.gateway.start_episode()
        trace = self.run_episode(start.initial_budget, policy)
        final = self.gateway.get_final_status()
        result = summarize_run(
            run_number=run_number,
            policy=policy,
            initial_budget=trace.initial_budget,
            trips=trace.trips,
            final_status=final,
            n_arms=self.n_arms,
            estimator_window=trace.estimator.window_size,
        )
        _logger().info(
            "Run %d complete: score %d (%.2f%%), lost %d, %d trips",
            run_number,
            result.final_arrived_count,
            result.success_percentage,
            result.final_lost_count,
            result.total_trips,
        )
        return result

    def estimator_window(self, policy: AllocationPolicy) -> int:
        """
        Window capacity used for ``policy``'s runs.

        A policy that sizes its probe phase from its own ``window_size`` gets
        an estimator with that capacity; others use the orchestrator's.
        """
        policy_arms = getattr(policy, "n_arms", None)
        if policy_arms is not None and int(policy_arms) != self.n_arms:
            raise ConfigurationError(
                f"Policy {policy.label} is built for {policy_arms} arms; the orchestrator has {self.n_arms}.",
            )
        policy_window = getattr(policy, "window_size", None)
        if policy_window is None:
            return self.window_size
        return int(policy_window)

    def run_episode(self, initial_budget: int, policy: AllocationPolicy) -> EpisodeTrace:
        budget = int(initial_budget)
        if budget < 0:
            raise InvariantViolationError("Initial budget must be non-negative.", initial_budget=budget)
        estimator = RollingEstimator(self.n_arms, self.estimator_window(policy))
        policy.reset()
        trips: list[TripRecord] = []

        while budget > 0:
            decision = policy.decide(estimator, budget)
            self._check_decision(decision)
            units = min(decision.units, budget)
            outcome = self.gateway.allocate(decision.arm, units)
            self._check_outcome(outcome, units, budget)

            budget -= outcome.units_sent
            estimator.record(decision.arm, outcome.survived)
            policy.observe(decision.arm, outcome.survived)
            record = TripRecord.from_decision(len(trips) + 1, decision, decision.units, outcome)
            trips.append(record)
            self._log_trip(record, estimator)

        _logger().info("Budget exhausted after %d trips", len(trips))
        return EpisodeTrace(initial_budget=int(initial_budget), trips=tuple(trips), estimator=estimator)

    def _check_decision(self, decision: Decision) -> None:
        if not 0 <= decision.arm < self.n_arms:
            raise InvariantViolationError(
                f"Policy chose arm {decision.arm} outside [0, {self.n_arms}).",
                arm=decision.arm,
            )
        if decision.units < 1:
            raise InvariantViolationError(f"Policy requested {decision.units} units; at least 1 is required.", units=decision.units)

    def _check_outcome(self, outcome: Outcome, units: int, budget: int) -> None:
        if outcome.units_sent < 0 or outcome.units_sent > units:
            raise InvariantViolationError(
                f"Gateway reported {outcome.units_sent} units sent for a request of {units}.",
                requested=units,
                units_sent=outcome.units_sent,
            )
        if outcome.units_sent == 0:
            raise InvariantViolationError(
                "Gateway sent no units for a positive request; the budget would never drain.",
                requested=units,
            )
        if outcome.remaining_budget < 0:
            raise InvariantViolationError(
                f"Gateway reported a negative remaining budget ({outcome.remaining_budget}).",
                remaining_budget=outcome.remaining_budget,
            )
        expected = budget - outcome.units_sent
        if outcome.remaining_budget != expected:
            raise InvariantViolationError(
                f"Gateway remaining budget {outcome.remaining_budget} does not match local accounting ({expected}).",
                remaining_budget=outcome.remaining_budget,
                expected=expected,
            )

    def _log_trip(self, record: TripRecord, estimator: RollingEstimator) -> None:
        _logger().debug(
            "Trip %d: sent %d to arm %d (%s). Survived: %s. [remaining %d, arrived %d]",
            record.trip_number,
            record.units_sent,
            record.arm,
            record.reason,
            record.survived,
            record.remaining_budget,
            record.arrived_count,
        )
        # No rates line while probing.
        if self.log_every > 0 and record.trip_number % self.log_every == 0 and record.reason != "probe":
            rates = ", ".join(f"A{idx}: {rate * 100:.1f}%" for idx, rate in enumerate(estimator.estimates()))
            _logger().info("Trip %d rates (%s) - %s", record.trip_number, record.reason, rates)


__all__ = ["EpisodeTrace", "TripOrchestrator"]
