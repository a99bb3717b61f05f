"""
Rate Provider Errors and HTTP Transport

Every failure surfaced by the rate client or the converter is an
ExchangeRateError. The error_type tells callers which family it belongs to:
bad input, no data, bad data from the feed, or an unavailable feed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)


class ExchangeRateError(Exception):
    """Base exception for exchange rate errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "UNKNOWN",
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}


class InvalidInputError(ExchangeRateError, ValueError):
    """A caller-supplied argument violates a precondition."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, error_type="INVALID_INPUT", details=details)


class RateNotFoundError(ExchangeRateError):
    """A valid request has no matching rate."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, error_type="NOT_FOUND", details=details)


class RateDataIntegrityError(ExchangeRateError):
    """The feed returned a rate or date that does not parse."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, error_type="DATA_INTEGRITY", details=details)


class RateTransportError(ExchangeRateError):
    """
    The feed could not be reached or answered with a failure status.

    status_code is None for network-level failures (connect errors, timeouts).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        details: dict[str, Any] | None = None
    ):
        error_type = f"HTTP_{status_code}" if status_code is not None else "NETWORK"
        super().__init__(message, error_type=error_type, details=details)
        self.status_code = status_code
        self.reason = reason


# === Transport ===

@dataclass(frozen=True)
class TransportResponse:
    """What the rate client needs from one HTTP exchange."""
    status_code: int
    text: str = ""
    reason: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class RateTransport(Protocol):
    """
    One physical GET against the feed.

    Implementations raise httpx.TransportError (or a subclass) for
    network-level failures and return every HTTP status as a response.
    """

    @property
    def base_url(self) -> str:
        ...

    async def get(self, path: str, params: dict[str, str]) -> TransportResponse:
        ...

    async def aclose(self) -> None:
        ...


class HttpxTransport:
    """RateTransport backed by a shared httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None
    ):
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def get(self, path: str, params: dict[str, str]) -> TransportResponse:
        response = await self._client.get(path, params=params)
        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            reason=response.reason_phrase,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
            logger.info("HTTP client closed")
