"""
tripbandit exception hierarchy.

All tripbandit-specific exceptions inherit from TripBanditError so callers can
catch a single type around a run.

Example:
    try:
        result = orchestrator.run(policy)
    except TripBanditError as e:
        print(f"Run failed: {e}")
        print(f"Suggestion: {e.suggestion}")
"""

from __future__ import annotations

from typing import Any


class TripBanditError(Exception):
    """
    Base exception for all tripbandit errors.

    Attributes:
        message: Human-readable error description
        suggestion: Optional suggestion for fixing the error
        details: Optional dict with additional context
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message with suggestion."""
        msg = self.message
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TripBanditError):
    """Raised when configuration is invalid or incomplete."""

    pass


class InvalidPolicyError(ConfigurationError):
    """Raised when an unknown allocation policy is specified."""

    def __init__(self, policy: str, available: list[str] | None = None) -> None:
        available = available or ["probe_cycle", "epsilon_greedy", "uniform_random", "fixed_arm"]
        message = f"Unknown policy '{policy}'."
        suggestion = f"Available policies: {', '.join(available)}"
        super().__init__(message, suggestion, {"policy": policy, "available": available})


class MissingConfigError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(self, field: str, hint: str | None = None) -> None:
        message = f"Missing required configuration: '{field}'."
        suggestion = hint or f"Set '{field}' in your configuration"
        super().__init__(message, suggestion, {"field": field})


# =============================================================================
# Runtime Errors
# =============================================================================


class TransportError(TripBanditError):
    """Raised when the episode gateway cannot be reached or rejects a call."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        suggestion = "Check connectivity and API_TOKEN; the run can be restarted from scratch"
        super().__init__(message, suggestion, {"status_code": status_code, "body": body})


class InvariantViolationError(TripBanditError):
    """Raised when a gateway result or a policy decision breaks budget accounting."""

    def __init__(self, message: str, **details: Any) -> None:
        suggestion = "This is a contract error; the run cannot continue safely"
        super().__init__(message, suggestion, details)


class RunAbortedError(TripBanditError):
    """Raised when a run keeps failing after every retry attempt."""

    def __init__(self, run_number: int, attempts: int, last_error: Exception) -> None:
        message = f"Run {run_number} failed after {attempts} attempt(s): {last_error}"
        suggestion = "Increase max_attempts or backoff_seconds, or check the gateway status"
        super().__init__(message, suggestion, {"run_number": run_number, "attempts": attempts})


# =============================================================================
# Data/IO Errors
# =============================================================================


class DataError(TripBanditError):
    """Base class for data-related errors."""

    pass


class InvalidResultsError(DataError):
    """Raised when a stored run result is invalid or corrupted."""

    def __init__(self, message: str, path: str | None = None) -> None:
        suggestion = "The file may be truncated or not a run result. Re-run or remove it."
        super().__init__(message, suggestion, {"path": path})


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Base
    "TripBanditError",
    # Configuration
    "ConfigurationError",
    "InvalidPolicyError",
    "MissingConfigError",
    # Runtime
    "TransportError",
    "InvariantViolationError",
    "RunAbortedError",
    # Data/IO
    "DataError",
    "InvalidResultsError",
]
