"""
Episode gateways: the external system that owns budgets and outcomes.
"""

from .http import DEFAULT_BASE_URL, HttpEpisodeGateway, parse_outcome
from .protocol import EpisodeGateway
from .simulated import SimulatedEpisodeGateway

__all__ = [
    "DEFAULT_BASE_URL",
    "EpisodeGateway",
    "HttpEpisodeGateway",
    "SimulatedEpisodeGateway",
    "parse_outcome",
]
