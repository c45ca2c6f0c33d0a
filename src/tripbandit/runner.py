"""
Run series with bounded, whole-run retry around transient transport failures.
"""

from __future__ import annotations

import itertools
import logging
import random
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TypeVar

from .core.orchestrator import TripOrchestrator
from .core.policies import AllocationPolicy
from .core.types import RunResult
from .exceptions import ConfigurationError, RunAbortedError, TransportError

T = TypeVar("T")


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: tuple[float, ...] = (5.0, 15.0, 30.0)
    jitter: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be >= 1.")
        if any(delay < 0.0 for delay in self.backoff_seconds) or self.jitter < 0.0:
            raise ConfigurationError("backoff_seconds and jitter must be non-negative.")

    def delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        if not self.backoff_seconds:
            base = 0.0
        else:
            base = self.backoff_seconds[min(attempt - 1, len(self.backoff_seconds) - 1)]
        if self.jitter > 0.0:
            base += random.uniform(0.0, self.jitter)
        return base


def run_with_retry(fn: Callable[[], T], retry: RetryPolicy, *, run_number: int = 1) -> T:
    """
    Call ``fn`` until it succeeds, retrying only on TransportError.

    Each attempt is a complete run; nothing from a failed attempt is kept.
    """
    last_error: TransportError | None = None
    for attempt in range(1, retry.max_attempts + 1):
        try:
            return fn()
        except TransportError as exc:
            last_error = exc
            if attempt >= retry.max_attempts:
                break
            delay = retry.delay(attempt)
            _logger().warning(
                "Run %d attempt %d/%d failed: %s. Retrying in %.1fs",
                run_number,
                attempt,
                retry.max_attempts,
                exc.message,
                delay,
            )
            time.sleep(delay)

    if last_error is None:  # pragma: no cover
        raise RuntimeError(f"Run {run_number} failed without an error.")
    raise RunAbortedError(run_number, retry.max_attempts, last_error) from last_error


def _run_numbers(runs: int | None) -> Iterator[int]:
    if runs is None:
        return itertools.count(1)
    return iter(range(1, runs + 1))


def run_series(
    orchestrator: TripOrchestrator,
    policy: AllocationPolicy,
    *,
    runs: int | None = 1,
    delay_seconds: float = 5.0,
    retry: RetryPolicy | None = None,
    on_result: Callable[[RunResult], None] | None = None,
) -> list[RunResult]:
    """
    Execute runs back-to-back with a fixed pause between them.

    ``runs=None`` keeps going until interrupted. Results are handed to
    ``on_result`` as soon as each run completes.
    """
    retry = retry or RetryPolicy()
    results: list[RunResult] = []
    for run_number in _run_numbers(runs):
        if results and delay_seconds > 0.0:
            _logger().info("Waiting %.1fs before run %d", delay_seconds, run_number)
            time.sleep(delay_seconds)
        result = run_with_retry(
            lambda: orchestrator.run(policy, run_number=run_number),
            retry,
            run_number=run_number,
        )
        if on_result is not None:
            on_result(result)
        if runs is not None:
            results.append(result)
        else:
            # Unbounded series: only the latest result is kept in memory.
            results[:] = [result]
    return results


__all__ = ["RetryPolicy", "run_series", "run_with_retry"]
