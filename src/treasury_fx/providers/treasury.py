"""
Treasury Rates of Exchange Client

API documentation:
https://fiscaldata.treasury.gov/datasets/treasury-reporting-rates-exchange/

Rates are published quarterly (plus amendments) as foreign currency units
per 1 USD, keyed by a "Country-Currency" label rather than an ISO code.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import date

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from treasury_fx.config import Settings, get_settings
from treasury_fx.models import RateFeedEnvelope
from treasury_fx.providers.base import (
    HttpxTransport,
    InvalidInputError,
    RateTransport,
    RateTransportError,
    TransportResponse,
)
from treasury_fx.utils import (
    build_currency_filter,
    build_date_range_filter,
    format_api_date,
    join_filters,
    subtract_months,
)

logger = logging.getLogger(__name__)

ENDPOINT = "v1/accounting/od/rates_of_exchange"
RATE_FIELDS = "record_date,country_currency_desc,exchange_rate,effective_date"
NEWEST_FIRST = "-record_date"
NEWEST_FIRST_THEN_CURRENCY = "-record_date,country_currency_desc"
MULTI_CURRENCY_PAGE_SIZE = 1000

# Statuses that are answered immediately, never retried.
NOT_FOUND = 404
BAD_REQUEST = 400

NETWORK_ERRORS = (httpx.TransportError, TimeoutError, ConnectionError)


class _RetryableStatus(Exception):
    """Raised inside an attempt so the retry policy sees a failed status."""

    def __init__(self, response: TransportResponse):
        super().__init__(f"HTTP {response.status_code} {response.reason}".rstrip())
        self.response = response


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, (_RetryableStatus, *NETWORK_ERRORS))


class TreasuryRatesClient:
    """
    Client for the Treasury Reporting Rates of Exchange dataset.

    Every request goes through a bounded retry policy: network failures and
    failure statuses other than 404/400 are retried with exponential backoff
    plus jitter. A 404 means "no rows" and comes back as an empty envelope.
    A 400 fails at once.

    The client keeps no per-call state and can be shared between
    concurrent requests.
    """

    def __init__(
        self,
        transport: RateTransport | None = None,
        settings: Settings | None = None,
        *,
        max_retries: int | None = None,
        base_delay: float | None = None,
        max_delay: float | None = None,
        jitter: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.transport = transport or HttpxTransport(
            base_url=self.settings.treasury_base_url,
            timeout=self.settings.treasury_timeout_seconds,
        )
        s = self.settings
        self.max_retries = s.treasury_max_retries if max_retries is None else max_retries
        self.base_delay = s.treasury_retry_base_delay_seconds if base_delay is None else base_delay
        self.max_delay = s.treasury_retry_max_delay_seconds if max_delay is None else max_delay
        self.jitter = s.treasury_retry_jitter_seconds if jitter is None else jitter
        self._sleep = sleep

    async def __aenter__(self) -> "TreasuryRatesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    def _retrying(self) -> AsyncRetrying:
        # A fresh controller per logical request; tenacity keeps attempt
        # state on the instance.
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=(
                wait_exponential(multiplier=self.base_delay, max=self.max_delay)
                + wait_random(0, self.jitter)
            ),
            retry=retry_if_exception(_is_transient),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Treasury API retry attempt {retry_state.attempt_number} "
            f"after {delay * 1000:.0f}ms. Outcome: {retry_state.outcome.exception()!r}"
        )

    async def _attempt(self, params: dict[str, str]) -> TransportResponse:
        response = await self.transport.get(ENDPOINT, params)
        if response.is_success or response.status_code in (NOT_FOUND, BAD_REQUEST):
            return response
        raise _RetryableStatus(response)

    async def fetch_rates(
        self,
        fields: str | None = None,
        filter: str | None = None,
        sort: str | None = None,
        page_number: int = 1,
        page_size: int | None = None,
    ) -> RateFeedEnvelope:
        """
        Issue one logical GET against the rates endpoint.

        Args:
            fields: Comma-separated column list
            filter: Comma-joined ``column:op:value`` clauses
            sort: Comma-separated columns, ``-`` prefix for descending
            page_number: 1-based page index
            page_size: Rows per page (settings default when None)

        Returns:
            Parsed envelope; empty on 404 or an unparseable body.

        Raises:
            RateTransportError: On 400, or once retries are exhausted
        """
        if page_size is None:
            page_size = self.settings.treasury_default_page_size

        params: dict[str, str] = {}
        if fields:
            params["fields"] = fields
        if filter:
            params["filter"] = filter
        if sort:
            params["sort"] = sort
        params["page[number]"] = str(page_number)
        params["page[size]"] = str(page_size)

        logger.debug(f"Treasury API request: {self.transport.base_url}/{ENDPOINT} {params}")

        retrying = self._retrying()
        try:
            response = await retrying(self._attempt, params)
        except _RetryableStatus as e:
            failed = e.response
            attempts = retrying.statistics.get("attempt_number", self.max_retries + 1)
            logger.error(
                f"Treasury API request failed with status {failed.status_code} "
                f"after {attempts} attempts: {failed.reason}"
            )
            raise RateTransportError(
                message=f"Request failed with status {failed.status_code}: {failed.reason}",
                status_code=failed.status_code,
                reason=failed.reason,
                details={"attempts": attempts, "body": failed.text[:500]}
            ) from e
        except NETWORK_ERRORS as e:
            attempts = retrying.statistics.get("attempt_number", self.max_retries + 1)
            logger.error(f"Treasury API unreachable after {attempts} attempts: {e!r}")
            raise RateTransportError(
                message=f"Request failed: {e!r}",
                details={"attempts": attempts}
            ) from e

        logger.debug(f"Treasury API response status: {response.status_code}")

        if response.status_code == NOT_FOUND:
            logger.info("No exchange rate data found (404) - returning empty response")
            return RateFeedEnvelope.empty()

        if not response.is_success:
            logger.error(
                f"Treasury API request failed with status {response.status_code}: "
                f"{response.reason}"
            )
            raise RateTransportError(
                message=f"Request failed with status {response.status_code}: {response.reason}",
                status_code=response.status_code,
                reason=response.reason,
                details={"attempts": 1, "body": response.text[:500]}
            )

        envelope = RateFeedEnvelope.from_response_text(response.text)
        logger.debug(f"Treasury API returned {len(envelope.data)} rows")
        return envelope

    async def fetch_rates_for_currency(
        self,
        currency: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> RateFeedEnvelope:
        """All rates for one currency label, newest first, bounded by record_date."""
        _require_label(currency)

        filter_ = join_filters(
            build_currency_filter([currency]),
            build_date_range_filter(start_date, end_date),
        )
        return await self.fetch_rates(fields=RATE_FIELDS, filter=filter_, sort=NEWEST_FIRST)

    async def fetch_latest_rate(self, currency: str, as_of_date: date) -> RateFeedEnvelope:
        """
        The most recent rate recorded on or before ``as_of_date``.

        Only the trailing lookback window (6 months by default) is searched,
        so an empty envelope means no usable rate exists.
        """
        _require_label(currency)

        window_start = subtract_months(as_of_date, self.settings.rate_lookback_months)
        filter_ = join_filters(
            build_currency_filter([currency]),
            f"record_date:lte:{format_api_date(as_of_date)}",
            f"record_date:gte:{format_api_date(window_start)}",
        )
        return await self.fetch_rates(
            fields=RATE_FIELDS,
            filter=filter_,
            sort=NEWEST_FIRST,
            page_size=1,
        )

    async def fetch_rates_for_multiple_currencies(
        self,
        currencies: Iterable[str],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> RateFeedEnvelope:
        """Rates for several labels, newest first then by label."""
        labels = [c for c in (currencies or []) if c and c.strip()]
        if not labels:
            raise InvalidInputError("Currency descriptions cannot be empty")

        filter_ = join_filters(
            build_currency_filter(labels, always_in=True),
            build_date_range_filter(start_date, end_date),
        )
        return await self.fetch_rates(
            fields=RATE_FIELDS,
            filter=filter_,
            sort=NEWEST_FIRST_THEN_CURRENCY,
            page_size=MULTI_CURRENCY_PAGE_SIZE,
        )


def _require_label(currency: str | None) -> None:
    if currency is None or not currency.strip():
        raise InvalidInputError(
            "Currency description cannot be null or empty",
            details={"country_currency_desc": currency}
        )
