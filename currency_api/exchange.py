"""HTTP client for the upstream currency-rate provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

import httpx

from .errors import UpstreamError, UpstreamUnavailableError

logger = logging.getLogger("currency_api.exchange")

DEFAULT_TIMEOUT = 10.0

_SUCCESS_STATUSES = {200, 201}


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("Upstream base URL must not be empty")
    return cleaned.rstrip("/")


def _decode_body(response: httpx.Response) -> Any:
    """Return the JSON body, or the raw text when it does not parse."""

    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass(frozen=True)
class ExchangeClient:
    """Read-only wrapper around the provider's ``latest``, ``historical`` and ``currencies`` endpoints."""

    base_url: str
    api_key: str
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", _normalize_base_url(self.base_url))
        if not (self.api_key or "").strip():
            raise ValueError("Upstream API key must not be empty")

    def exchange(self, base: str, target: str) -> Dict[str, Any]:
        return self._get("latest", {"base_currency": base, "currencies": target})

    def history(self, currency: str, from_date: str, to_date: str) -> Dict[str, Any]:
        return self._get(
            "historical",
            {"currencies": currency, "date_from": from_date, "date_to": to_date},
        )

    def info(self, currency: str) -> Dict[str, Any]:
        return self._get("currencies", {"currencies": currency})

    def _get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        query = {"apikey": self.api_key, **params}

        try:
            response = httpx.get(url, params=query, timeout=self.timeout)
        except httpx.RequestError as exc:
            logger.warning("Currency provider request to /%s failed: %s", path, exc.__class__.__name__)
            raise UpstreamUnavailableError(str(exc)) from exc

        logger.info("Currency provider GET /%s -> %s", path, response.status_code)

        if response.status_code not in _SUCCESS_STATUSES:
            raise UpstreamError(_decode_body(response), upstream_status=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(
                response.text,
                upstream_status=response.status_code,
                message="Currency provider returned an invalid response",
            ) from exc

        if not isinstance(payload, dict):
            raise UpstreamError(
                payload,
                upstream_status=response.status_code,
                message="Currency provider returned an unexpected response payload",
            )
        return payload


__all__ = ["DEFAULT_TIMEOUT", "ExchangeClient"]
