from __future__ import annotations

from typing import Protocol

from tripbandit.core.types import EpisodeStart, FinalStatus, Outcome


class EpisodeGateway(Protocol):
    """
    External system that owns the episode: budget, arrivals and losses.

    Implementations raise TransportError for network or authentication
    failures. ``allocate`` requires ``0 <= units <= remaining budget``.
    """

    def start_episode(self) -> EpisodeStart: ...

    def allocate(self, arm: int, units: int) -> Outcome: ...

    def get_final_status(self) -> FinalStatus: ...


__all__ = ["EpisodeGateway"]
