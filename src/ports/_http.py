"""Shared HTTP plumbing for the remote ports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Type

import requests

from contracts.errors import EngineError
from project_config import get_section

_LOGGER = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "http://localhost:3000/api"
_DEFAULT_TIMEOUT_S = 10.0
_DEFAULT_ENDPOINTS = {
    "today": "puzzle/today",
    "random": "puzzle/random",
    "check": "puzzle/check",
    "track": "puzzle/track",
}


@dataclass(frozen=True)
class ServiceConfig:
    """Base URL, timeout and endpoint paths of the puzzle backend."""

    base_url: str = _DEFAULT_BASE_URL
    timeout_s: float = _DEFAULT_TIMEOUT_S
    endpoints: Mapping[str, str] = field(default_factory=lambda: dict(_DEFAULT_ENDPOINTS))

    @classmethod
    def from_config(cls) -> "ServiceConfig":
        section = get_section("service", {})
        endpoints = dict(_DEFAULT_ENDPOINTS)
        endpoints.update(section.get("endpoints", {}))
        return cls(
            base_url=str(section.get("base_url", _DEFAULT_BASE_URL)),
            timeout_s=float(section.get("timeout_s", _DEFAULT_TIMEOUT_S)),
            endpoints=endpoints,
        )

    def url(self, path: str) -> str:
        path = self.endpoints.get(path, path)
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


def request_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    error_cls: Type[EngineError],
    timeout: float,
    payload: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    expect_body: bool = True,
) -> Any:
    """Perform one request and return the decoded JSON body.

    Transport failures, non-2xx responses and undecodable bodies are raised as
    ``error_cls`` carrying the HTTP status when one is known.
    """

    try:
        response = session.request(
            method,
            url,
            json=payload,
            params=params,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
    except requests.RequestException as exc:
        raise error_cls(f"{method} {url} failed: {exc}") from exc

    if not response.ok:
        detail = response.text.strip()
        raise error_cls(
            f"Server error: {response.status_code} {detail}".rstrip(),
            status_code=response.status_code,
        )
    if not expect_body or response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise error_cls(
            f"{method} {url} returned a non-JSON body", status_code=response.status_code
        ) from exc


__all__ = ["ServiceConfig", "request_json"]
