"""
Value types shared by the policy engine, the orchestrator and the gateways.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class EpisodeStart:
    initial_budget: int


@dataclass(frozen=True)
class FinalStatus:
    arrived_count: int
    lost_count: int


@dataclass(frozen=True)
class Outcome:
    """
    Result of one allocation as reported by the gateway.

    The gateway is authoritative for every field here.
    """

    units_sent: int
    survived: bool
    remaining_budget: int
    arrived_count: int
    lost_count: int
    steps_taken: int


@dataclass(frozen=True)
class Decision:
    arm: int
    units: int
    reason: str = ""


@dataclass(frozen=True)
class TripRecord:
    trip_number: int
    arm: int
    units_requested: int
    units_sent: int
    survived: bool
    remaining_budget: int
    arrived_count: int
    lost_count: int
    steps_taken: int
    reason: str = ""

    @classmethod
    def from_decision(
        cls,
        trip_number: int,
        decision: Decision,
        units_requested: int,
        outcome: Outcome,
    ) -> TripRecord:
        return cls(
            trip_number=trip_number,
            arm=decision.arm,
            units_requested=units_requested,
            units_sent=outcome.units_sent,
            survived=outcome.survived,
            remaining_budget=outcome.remaining_budget,
            arrived_count=outcome.arrived_count,
            lost_count=outcome.lost_count,
            steps_taken=outcome.steps_taken,
            reason=decision.reason,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ArmSummary:
    arm: int
    trips: int
    units_sent: int
    surviving_trips: int
    units_arrived: int
    survival_rate: float
    usage_fraction: float


@dataclass(frozen=True)
class RunResult:
    run_number: int
    policy_name: str
    policy_params: dict[str, Any]
    initial_budget: int
    success_percentage: float
    final_arrived_count: int
    final_lost_count: int
    policy_label: str = ""
    trips: tuple[TripRecord, ...] = ()
    arm_summaries: tuple[ArmSummary, ...] = field(default_factory=tuple)

    @property
    def total_trips(self) -> int:
        return len(self.trips)

    @property
    def label(self) -> str:
        """Name plus key params, stable across runs of the same configuration."""
        return self.policy_label or self.policy_name


__all__ = [
    "ArmSummary",
    "Decision",
    "EpisodeStart",
    "FinalStatus",
    "Outcome",
    "RunResult",
    "TripRecord",
]
