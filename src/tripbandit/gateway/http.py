"""
REST gateway for the challenge episode API.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests

from tripbandit.core.types import EpisodeStart, FinalStatus, Outcome
from tripbandit.exceptions import TransportError

DEFAULT_BASE_URL = "https://challenge.sphinxhq.com/api"
DEFAULT_TIMEOUT_SECS = 20.0

START_PATH = "/mortys/start/"
ALLOCATE_PATH = "/mortys/portal/"
STATUS_PATH = "/mortys/status/"

# Wire field names
REMAINING_KEY = "morties_in_citadel"
ARRIVED_KEY = "morties_on_planet_jessica"
LOST_KEY = "morties_lost"
SENT_KEY = "morties_sent"
SURVIVED_KEY = "survived"
STEPS_KEY = "steps_taken"


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


def _field(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise TransportError(f"Gateway response is missing '{key}'.", body=dict(payload))
    return payload[key]


def _int_field(payload: Mapping[str, Any], key: str) -> int:
    value = _field(payload, key)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise TransportError(f"Gateway field '{key}' is not an integer: {value!r}.", body=dict(payload)) from exc


def parse_outcome(payload: Mapping[str, Any]) -> Outcome:
    return Outcome(
        units_sent=_int_field(payload, SENT_KEY),
        survived=bool(_field(payload, SURVIVED_KEY)),
        remaining_budget=_int_field(payload, REMAINING_KEY),
        arrived_count=_int_field(payload, ARRIVED_KEY),
        lost_count=_int_field(payload, LOST_KEY),
        steps_taken=_int_field(payload, STEPS_KEY),
    )


class HttpEpisodeGateway:
    """
    EpisodeGateway over HTTP with bearer-token auth.

    Every ``requests`` failure, HTTP error status or malformed body is raised
    as TransportError; nothing is retried here.
    """

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECS,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {api_token}"})

    def start_episode(self) -> EpisodeStart:
        payload = self._request("POST", START_PATH)
        _logger().info("Episode started: %s", payload)
        return EpisodeStart(initial_budget=_int_field(payload, REMAINING_KEY))

    def allocate(self, arm: int, units: int) -> Outcome:
        payload = self._request("POST", ALLOCATE_PATH, json={"planet": int(arm), "morty_count": int(units)})
        return parse_outcome(payload)

    def get_final_status(self) -> FinalStatus:
        payload = self._request("GET", STATUS_PATH)
        _logger().info("Final episode status: %s", payload)
        return FinalStatus(
            arrived_count=_int_field(payload, ARRIVED_KEY),
            lost_count=_int_field(payload, LOST_KEY),
        )

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Mapping[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise TransportError(
                f"{method} {path} returned HTTP {response.status_code}.",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} {path} returned a non-JSON body.",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        if not isinstance(payload, Mapping):
            raise TransportError(f"{method} {path} returned {type(payload).__name__}, expected an object.", body=payload)
        return payload


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT_SECS",
    "HttpEpisodeGateway",
    "parse_outcome",
]
