"""
tripbandit: sequential allocation of a shrinking unit budget across arms
with rolling-window estimates and epsilon-greedy, probe-cycle and random
policies.
"""

from .analysis import PolicyComparisonRow, UsageTestResult, arm_usage_test, compare_runs
from .config import GatewaySettings, RunConfig
from .core import (
    ArmSummary,
    Decision,
    EpisodeStart,
    EpsilonGreedyPolicy,
    FinalStatus,
    FixedArmPolicy,
    Outcome,
    ProbeCyclePolicy,
    RollingEstimator,
    RunResult,
    TripOrchestrator,
    TripRecord,
    UniformRandomPolicy,
    build_policy,
    summarize_run,
)
from .exceptions import (
    ConfigurationError,
    InvariantViolationError,
    RunAbortedError,
    TransportError,
    TripBanditError,
)
from .gateway import EpisodeGateway, HttpEpisodeGateway, SimulatedEpisodeGateway
from .io import load_run_result, write_run_result, write_trip_trace
from .runner import RetryPolicy, run_series, run_with_retry

__version__ = "0.1.0"

__all__ = [
    "PolicyComparisonRow",
    "UsageTestResult",
    "arm_usage_test",
    "compare_runs",
    "GatewaySettings",
    "RunConfig",
    "ArmSummary",
    "Decision",
    "EpisodeStart",
    "EpsilonGreedyPolicy",
    "FinalStatus",
    "FixedArmPolicy",
    "Outcome",
    "ProbeCyclePolicy",
    "RollingEstimator",
    "RunResult",
    "TripOrchestrator",
    "TripRecord",
    "UniformRandomPolicy",
    "build_policy",
    "summarize_run",
    "ConfigurationError",
    "InvariantViolationError",
    "RunAbortedError",
    "TransportError",
    "TripBanditError",
    "EpisodeGateway",
    "HttpEpisodeGateway",
    "SimulatedEpisodeGateway",
    "load_run_result",
    "write_run_result",
    "write_trip_trace",
    "RetryPolicy",
    "run_series",
    "run_with_retry",
]
