from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import asdict
from pathlib import Path

from .analysis import PolicyComparisonRow, compare_runs
from .config import GatewaySettings, RunConfig
from .core.orchestrator import TripOrchestrator
from .core.policies import available_policy_names
from .core.types import RunResult
from .exceptions import TripBanditError
from .gateway.http import HttpEpisodeGateway
from .gateway.protocol import EpisodeGateway
from .gateway.simulated import SimulatedEpisodeGateway
from .io import load_run_results, write_run_result, write_trip_trace
from .logging import configure_tripbandit_logging
from .runner import RetryPolicy, run_series


def _parse_probabilities(parser: argparse.ArgumentParser, raw: str | None) -> list[float] | None:
    if raw is None:
        return None
    try:
        probs = [float(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        parser.error(f"--simulate expects comma-separated probabilities; got '{raw}'.")
    if not probs or any(not 0.0 <= p <= 1.0 for p in probs):
        parser.error("--simulate probabilities must be within [0, 1].")
    return probs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tripbandit", description="Sequential unit allocation across arms.")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run one or more episodes with an allocation policy.")
    run.add_argument("--config", help="JSON file with run settings.")
    run.add_argument("--policy", choices=available_policy_names(), help="Allocation policy (default: epsilon_greedy).")
    run.add_argument("--runs", type=int, help="Number of runs (default: 1).")
    run.add_argument("--forever", action="store_true", help="Keep starting runs until interrupted.")
    run.add_argument("--epsilon", type=float, help="Exploration probability for epsilon_greedy.")
    run.add_argument("--window-size", type=int, help="Rolling window capacity per arm.")
    run.add_argument("--trips-per-arm", type=int, help="Dwell time for probe_cycle.")
    run.add_argument("--target-arm", type=int, help="Arm used by fixed_arm.")
    run.add_argument("--tie-break", choices=("lowest_index", "fewest_samples"), help="Tie rule for equal estimates.")
    run.add_argument("--seed", type=int, help="RNG seed for randomized policies.")
    run.add_argument("--delay", type=float, help="Seconds between runs (default: 5).")
    run.add_argument("--output-dir", help="Where run JSON files are written (default: data).")
    run.add_argument("--trace", action="store_true", help="Also write a CSV trip trace per run.")
    run.add_argument(
        "--simulate",
        metavar="P0,P1,...",
        help="Use an offline simulated episode with these per-arm survival probabilities.",
    )
    run.add_argument("--budget", type=int, default=1000, help="Initial budget for --simulate (default: 1000).")
    run.add_argument(
        "--sim-seed",
        type=int,
        help="RNG seed for the simulated episode (default: --seed + 1).",
    )
    run.add_argument("--verbose", action="store_true", help="Log every trip.")

    summarize = sub.add_parser("summarize", help="Compare saved runs by policy.")
    summarize.add_argument("results", nargs="?", default="data", help="Directory with run JSON files (default: data).")
    summarize.add_argument("--json", action="store_true", help="Print JSON instead of a table.")
    return parser


def _resolve_config(args: argparse.Namespace) -> RunConfig:
    base = RunConfig.from_file(args.config) if args.config else RunConfig()
    config = base.replace(
        policy=args.policy,
        runs=args.runs,
        epsilon=args.epsilon,
        window_size=args.window_size,
        trips_per_arm=args.trips_per_arm,
        target_arm=args.target_arm,
        tie_break=args.tie_break,
        rng_seed=args.seed,
        delay_seconds=args.delay,
        output_dir=args.output_dir,
    )
    if args.forever:
        data = config.to_dict()
        data["runs"] = None
        config = RunConfig.from_dict(data)
    return config


def _simulation_seed(args: argparse.Namespace, config: RunConfig) -> int | None:
    if args.sim_seed is not None:
        return args.sim_seed
    if config.rng_seed is None:
        return None
    return config.rng_seed + 1


def _build_gateway(args: argparse.Namespace, probs: list[float] | None, config: RunConfig) -> EpisodeGateway:
    if probs is not None:
        if len(probs) != config.arm_count:
            raise TripBanditError(f"--simulate gave {len(probs)} probabilities for {config.arm_count} arms.")
        return SimulatedEpisodeGateway(probs, initial_budget=args.budget, rng_seed=_simulation_seed(args, config))
    settings = GatewaySettings.from_env()
    return HttpEpisodeGateway(settings.api_token, base_url=settings.base_url, timeout=settings.timeout)


def _cmd_run(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    probs = _parse_probabilities(parser, args.simulate)
    config = _resolve_config(args)
    gateway = _build_gateway(args, probs, config)
    policy = config.build_policy()
    orchestrator = TripOrchestrator(
        gateway,
        n_arms=config.arm_count,
        window_size=config.window_size,
        log_every=config.log_every,
    )

    def _persist(result: RunResult) -> None:
        path = write_run_result(config.output_dir, result)
        if args.trace:
            write_trip_trace(path.with_suffix(".csv"), result.trips)
        print(f"Run {result.run_number}: score {result.final_arrived_count} ({result.success_percentage:.2f}%) -> {path}")

    run_series(
        orchestrator,
        policy,
        runs=config.runs,
        delay_seconds=config.delay_seconds,
        retry=RetryPolicy(max_attempts=config.max_attempts, backoff_seconds=config.backoff_seconds),
        on_result=_persist,
    )
    return 0


def _render_table(rows: list[PolicyComparisonRow]) -> str:
    headers = ["policy", "runs", "mean", "std", "median", "min", "max", "trips"]
    formatted = [
        {
            "policy": row.label,
            "runs": str(row.runs),
            "mean": f"{row.mean_success:.2f}",
            "std": f"{row.std_success:.2f}",
            "median": f"{row.median_success:.2f}",
            "min": f"{row.min_success:.2f}",
            "max": f"{row.max_success:.2f}",
            "trips": f"{row.mean_trips:.1f}",
        }
        for row in rows
    ]
    widths = {key: max(len(key), *(len(row[key]) for row in formatted)) for key in headers}
    lines = [
        "  ".join(key.upper().ljust(widths[key]) for key in headers),
        "  ".join("-" * widths[key] for key in headers),
    ]
    for formatted_row in formatted:
        lines.append("  ".join(formatted_row[key].ljust(widths[key]) for key in headers))
    return "\n".join(lines)


def _cmd_summarize(args: argparse.Namespace) -> int:
    results_dir = Path(args.results)
    results = load_run_results(results_dir) if results_dir.is_dir() else []
    if not results:
        print(f"No runs found under {results_dir}.")
        return 0
    rows = compare_runs(results)
    if args.json:
        print(json.dumps([asdict(row) for row in rows], indent=2))
    else:
        print(_render_table(rows))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    configure_tripbandit_logging(level=level)
    try:
        if args.command == "run":
            return _cmd_run(parser, args)
        return _cmd_summarize(args)
    except TripBanditError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130


__all__ = ["build_parser", "main"]
