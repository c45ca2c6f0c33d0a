"""
Run and gateway configuration.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .core.policies import TIE_BREAK_MODES, AllocationPolicy, available_policy_names, build_policy
from .exceptions import ConfigurationError, InvalidPolicyError, MissingConfigError
from .gateway.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECS

DEFAULT_POLICY = "epsilon_greedy"

RUN_CONFIG_KEYS = {
    "policy",
    "arm_count",
    "window_size",
    "epsilon",
    "probe_trip_count",
    "probe_units",
    "explore_units",
    "exploit_units",
    "trips_per_arm",
    "units_per_trip",
    "unit_choices",
    "target_arm",
    "tie_break",
    "rng_seed",
    "runs",
    "delay_seconds",
    "max_attempts",
    "backoff_seconds",
    "output_dir",
    "log_every",
}


def _coerce(key: str, raw: Any, kind: type, expected: str) -> Any:
    try:
        return kind(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be {expected}, got {raw!r}.") from exc


def _int_value(config: Mapping[str, Any], key: str, default: int) -> int:
    return _coerce(key, config.get(key, default), int, "an integer")


def _float_value(config: Mapping[str, Any], key: str, default: float) -> float:
    return _coerce(key, config.get(key, default), float, "a number")


def _int_tuple(config: Mapping[str, Any], key: str, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = config.get(key, default)
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise ConfigurationError(f"{key} must be a list of integers, got {raw!r}.")
    return tuple(_coerce(key, item, int, "a list of integers") for item in raw)


def _float_tuple(config: Mapping[str, Any], key: str, default: tuple[float, ...]) -> tuple[float, ...]:
    raw = config.get(key, default)
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise ConfigurationError(f"{key} must be a list of numbers, got {raw!r}.")
    return tuple(_coerce(key, item, float, "a list of numbers") for item in raw)


def _optional_int(config: Mapping[str, Any], key: str, default: int | None) -> int | None:
    raw = config.get(key, default)
    if raw is None:
        return None
    return _coerce(key, raw, int, "an integer or null")


def _positive_int(config: Mapping[str, Any], key: str, default: int) -> int:
    value = _int_value(config, key, default)
    if value < 1:
        raise ConfigurationError(f"{key} must be >= 1.")
    return value


@dataclass(frozen=True)
class RunConfig:
    """
    Everything needed to build a policy and drive a series of runs.

    Policy-specific keys are ignored by policies that do not use them.
    """

    policy: str = DEFAULT_POLICY
    arm_count: int = 3
    window_size: int = 20
    epsilon: float = 0.4
    probe_trip_count: int | None = None  # None = window_size * arm_count
    probe_units: int = 1
    explore_units: int = 1
    exploit_units: int = 3
    trips_per_arm: int = 12
    units_per_trip: int = 1
    unit_choices: tuple[int, ...] = (1, 2, 3)
    target_arm: int = 0
    tie_break: str = "lowest_index"
    rng_seed: int | None = None
    runs: int | None = 1  # None = run until interrupted
    delay_seconds: float = 5.0
    max_attempts: int = 3
    backoff_seconds: tuple[float, ...] = (5.0, 15.0, 30.0)
    output_dir: str = "data"
    log_every: int = 10

    @classmethod
    def from_dict(cls, config: Mapping[str, Any] | None) -> RunConfig:
        """
        Create a config instance from a dictionary.
        """
        if not config:
            return cls()
        unexpected = set(config) - RUN_CONFIG_KEYS
        if unexpected:
            raise ConfigurationError(
                f"Unsupported run config keys: {sorted(unexpected)}",
                suggestion=f"Supported keys: {', '.join(sorted(RUN_CONFIG_KEYS))}",
            )
        policy = str(config.get("policy", DEFAULT_POLICY)).strip().lower()
        if policy not in available_policy_names():
            raise InvalidPolicyError(policy, available_policy_names())
        epsilon = _float_value(config, "epsilon", 0.4)
        if not 0.0 <= epsilon <= 1.0:
            raise ConfigurationError("epsilon must be within [0, 1].")
        tie_break = str(config.get("tie_break", "lowest_index")).lower()
        if tie_break not in TIE_BREAK_MODES:
            raise ConfigurationError(f"tie_break must be one of {list(TIE_BREAK_MODES)}.")
        probe_trip_count = _optional_int(config, "probe_trip_count", None)
        if probe_trip_count is not None and probe_trip_count < 0:
            raise ConfigurationError("probe_trip_count must be >= 0.")
        unit_choices = _int_tuple(config, "unit_choices", (1, 2, 3))
        if not unit_choices or any(u < 1 for u in unit_choices):
            raise ConfigurationError("unit_choices must be a non-empty list of positive integers.")
        runs = _optional_int(config, "runs", 1)
        if runs is not None and runs < 1:
            raise ConfigurationError("runs must be >= 1, or null to run until interrupted.")
        delay_seconds = _float_value(config, "delay_seconds", 5.0)
        if delay_seconds < 0.0:
            raise ConfigurationError("delay_seconds must be >= 0.")
        backoff_seconds = _float_tuple(config, "backoff_seconds", (5.0, 15.0, 30.0))
        if any(x < 0.0 for x in backoff_seconds):
            raise ConfigurationError("backoff_seconds must be non-negative.")
        return cls(
            policy=policy,
            arm_count=_positive_int(config, "arm_count", 3),
            window_size=_positive_int(config, "window_size", 20),
            epsilon=epsilon,
            probe_trip_count=probe_trip_count,
            probe_units=_positive_int(config, "probe_units", 1),
            explore_units=_positive_int(config, "explore_units", 1),
            exploit_units=_positive_int(config, "exploit_units", 3),
            trips_per_arm=_positive_int(config, "trips_per_arm", 12),
            units_per_trip=_positive_int(config, "units_per_trip", 1),
            unit_choices=unit_choices,
            target_arm=_int_value(config, "target_arm", 0),
            tie_break=tie_break,
            rng_seed=_optional_int(config, "rng_seed", None),
            runs=runs,
            delay_seconds=delay_seconds,
            max_attempts=_positive_int(config, "max_attempts", 3),
            backoff_seconds=backoff_seconds,
            output_dir=str(config.get("output_dir", "data")),
            log_every=_int_value(config, "log_every", 10),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> RunConfig:
        """
        Load a config from a JSON object file.
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Config file not found: {path}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Config file {path} is not valid JSON: {exc}") from exc
        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"Config file {path} must contain a JSON object.")
        return cls.from_dict(raw)

    def replace(self, **overrides: Any) -> RunConfig:
        """
        Return a validated copy with the given keys overridden (None values are skipped).
        """
        data = self.to_dict()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return RunConfig.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the config to a JSON-serializable dictionary.
        """
        return {
            "policy": self.policy,
            "arm_count": self.arm_count,
            "window_size": self.window_size,
            "epsilon": self.epsilon,
            "probe_trip_count": self.probe_trip_count,
            "probe_units": self.probe_units,
            "explore_units": self.explore_units,
            "exploit_units": self.exploit_units,
            "trips_per_arm": self.trips_per_arm,
            "units_per_trip": self.units_per_trip,
            "unit_choices": list(self.unit_choices),
            "target_arm": self.target_arm,
            "tie_break": self.tie_break,
            "rng_seed": self.rng_seed,
            "runs": self.runs,
            "delay_seconds": self.delay_seconds,
            "max_attempts": self.max_attempts,
            "backoff_seconds": list(self.backoff_seconds),
            "output_dir": self.output_dir,
            "log_every": self.log_every,
        }

    def build_policy(self) -> AllocationPolicy:
        if self.policy == "probe_cycle":
            return build_policy(
                self.policy,
                self.arm_count,
                trips_per_arm=self.trips_per_arm,
                units_per_trip=self.units_per_trip,
            )
        if self.policy == "epsilon_greedy":
            return build_policy(
                self.policy,
                self.arm_count,
                epsilon=self.epsilon,
                window_size=self.window_size,
                probe_trip_count=self.probe_trip_count,
                probe_units=self.probe_units,
                explore_units=self.explore_units,
                exploit_units=self.exploit_units,
                tie_break=self.tie_break,
                rng_seed=self.rng_seed,
            )
        if self.policy == "uniform_random":
            return build_policy(self.policy, self.arm_count, unit_choices=self.unit_choices, rng_seed=self.rng_seed)
        if self.policy == "fixed_arm":
            return build_policy(
                self.policy,
                self.arm_count,
                target_arm=self.target_arm,
                units_per_trip=self.units_per_trip,
            )
        raise InvalidPolicyError(self.policy, available_policy_names())


@dataclass(frozen=True)
class GatewaySettings:
    api_token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECS

    @classmethod
    def from_env(cls, *, dotenv_path: str | Path | None = None) -> GatewaySettings:
        """
        Read API_TOKEN, TRIPBANDIT_BASE_URL and TRIPBANDIT_TIMEOUT, loading a .env file first.
        """
        load_dotenv(dotenv_path)
        token = os.getenv("API_TOKEN", "").strip()
        if not token:
            raise MissingConfigError("API_TOKEN", "Create a .env file with API_TOKEN=<token> or export it")
        base_url = os.getenv("TRIPBANDIT_BASE_URL", "").strip() or DEFAULT_BASE_URL
        raw_timeout = os.getenv("TRIPBANDIT_TIMEOUT", "").strip()
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECS
        except ValueError as exc:
            raise ConfigurationError(f"TRIPBANDIT_TIMEOUT must be a number, got '{raw_timeout}'.") from exc
        return cls(api_token=token, base_url=base_url, timeout=timeout)


__all__ = ["DEFAULT_POLICY", "GatewaySettings", "RUN_CONFIG_KEYS", "RunConfig"]
