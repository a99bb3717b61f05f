"""
Shared fixtures: programmable transports and an in-memory Treasury feed.
"""

import json
import re
from datetime import date

import pytest

from treasury_fx.config import Settings
from treasury_fx.providers import TransportResponse, TreasuryRatesClient

BASE_URL = "https://api.fiscaldata.treasury.gov/services/api/fiscal_service"

_CLAUSE = re.compile(r"(\w+):(eq|in|gte|lte|gt|lt):(\([^)]*\)|[^,]*)")


def ok(rows: list[dict] | None = None, **extra) -> TransportResponse:
    body = {"data": rows or [], "meta": {"count": len(rows or [])}, "links": {}}
    body.update(extra)
    return TransportResponse(status_code=200, text=json.dumps(body), reason="OK")


def status(code: int, reason: str = "", text: str = "") -> TransportResponse:
    return TransportResponse(status_code=code, text=text, reason=reason)


def rate_row(record_date: str, currency: str, rate: str, effective_date: str | None = None) -> dict:
    return {
        "record_date": record_date,
        "country_currency_desc": currency,
        "exchange_rate": rate,
        "effective_date": effective_date or record_date,
    }


class FakeTransport:
    """
    Replays a scripted sequence of responses or exceptions.

    The last item repeats once the script runs out.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, dict[str, str]]] = []
        self.closed = False

    @property
    def base_url(self) -> str:
        return BASE_URL

    async def get(self, path: str, params: dict[str, str]) -> TransportResponse:
        self.calls.append((path, dict(params)))
        index = min(len(self.calls), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


class FakeTreasuryFeed:
    """
    In-memory rates_of_exchange endpoint.

    Understands the filter, sort and paging parameters the client sends.
    Like the real feed it answers 200 with an empty ``data`` list when
    nothing matches.
    """

    def __init__(self, rows: list[dict]):
        self.rows = rows
        self.calls: list[dict[str, str]] = []

    @property
    def base_url(self) -> str:
        return BASE_URL

    async def get(self, path: str, params: dict[str, str]) -> TransportResponse:
        self.calls.append(dict(params))
        rows = [r for r in self.rows if self._matches(r, params.get("filter", ""))]

        for key in reversed([k for k in params.get("sort", "").split(",") if k]):
            column = key.lstrip("-")
            rows.sort(key=lambda r: r[column], reverse=key.startswith("-"))

        size = int(params["page[size]"])
        number = int(params["page[number]"])
        page = rows[(number - 1) * size: number * size]

        if "fields" in params:
            wanted = params["fields"].split(",")
            page = [{k: r.get(k) for k in wanted} for r in page]

        body = {
            "data": page,
            "meta": {
                "count": len(page),
                "total-count": len(rows),
                "total-pages": -(-len(rows) // size) if rows else 0,
            },
            "links": {"self": f"&page%5Bnumber%5D={number}&page%5Bsize%5D={size}"},
        }
        return TransportResponse(status_code=200, text=json.dumps(body), reason="OK")

    async def aclose(self) -> None:
        pass

    @staticmethod
    def _matches(row: dict, filter_: str) -> bool:
        for column, op, value in _CLAUSE.findall(filter_):
            actual = row[column]
            if op == "eq" and actual != value:
                return False
            if op == "in" and actual not in value.strip("()").split(","):
                return False
            if op == "gte" and actual < value:
                return False
            if op == "lte" and actual > value:
                return False
            if op == "gt" and actual <= value:
                return False
            if op == "lt" and actual >= value:
                return False
        return True


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def canada_rows():
    return [
        rate_row("2023-09-30", "Canada-Dollar", "1.351"),
        rate_row("2023-12-31", "Canada-Dollar", "1.326"),
        rate_row("2024-03-31", "Canada-Dollar", "1.355"),
        rate_row("2024-06-30", "Canada-Dollar", "1.368"),
        rate_row("2024-03-31", "Mexico-Peso", "16.528"),
        rate_row("2024-06-30", "Mexico-Peso", "18.342"),
        rate_row("2024-03-31", "Euro Zone-Euro", "0.925"),
    ]


@pytest.fixture
def feed(canada_rows):
    return FakeTreasuryFeed(canada_rows)


@pytest.fixture
def feed_client(feed, settings, sleep):
    return TreasuryRatesClient(transport=feed, settings=settings, sleep=sleep)


@pytest.fixture
def as_of():
    return date(2024, 5, 15)
