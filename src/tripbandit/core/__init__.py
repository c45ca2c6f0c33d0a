"""
Decision-policy engine: estimator, policies, trip loop and run summaries.
"""

from .estimator import RollingEstimator
from .orchestrator import EpisodeTrace, TripOrchestrator
from .policies import (
    AllocationPolicy,
    EpsilonGreedyPolicy,
    FixedArmPolicy,
    ProbeCyclePolicy,
    UniformRandomPolicy,
    available_policy_names,
    build_policy,
)
from .summary import success_percentage, summarize_arms, summarize_run
from .types import ArmSummary, Decision, EpisodeStart, FinalStatus, Outcome, RunResult, TripRecord

__all__ = [
    "RollingEstimator",
    "EpisodeTrace",
    "TripOrchestrator",
    "AllocationPolicy",
    "EpsilonGreedyPolicy",
    "FixedArmPolicy",
    "ProbeCyclePolicy",
    "UniformRandomPolicy",
    "available_policy_names",
    "build_policy",
    "success_percentage",
    "summarize_arms",
    "summarize_run",
    "ArmSummary",
    "Decision",
    "EpisodeStart",
    "FinalStatus",
    "Outcome",
    "RunResult",
    "TripRecord",
]
