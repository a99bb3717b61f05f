"""
Treasury FX Data Models

Rates arrive from the Treasury feed as strings and are only ever parsed into
decimal.Decimal. Float never touches a rate or an amount.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from treasury_fx.utils import parse_api_date, parse_api_exchange_rate

logger = logging.getLogger(__name__)


def _cell_text(v: Any) -> str:
    """Text of a feed cell. Malformed cells stay visible so the accessors reject them."""
    if isinstance(v, bool):
        return str(v).lower()
    return v if isinstance(v, str) else str(v)


# === Upstream Feed (Rates of Exchange) ===

class ExchangeRateObservation(BaseModel):
    """
    One published rate of exchange.

    Field values are kept exactly as the feed sent them. Use the
    ``*_value`` accessors for parsed values.
    """
    record_date: str = Field(
        default="",
        description="Date the rate was recorded (YYYY-MM-DD)"
    )
    country_currency_desc: str = Field(
        default="",
        description="Country-currency label, e.g. 'Canada-Dollar'"
    )
    exchange_rate: str = Field(
        default="",
        description="Foreign currency units per 1 USD, as a decimal string"
    )
    effective_date: str | None = Field(
        default=None,
        description="Date the rate takes effect"
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "record_date": "2024-03-31",
                "country_currency_desc": "Canada-Dollar",
                "exchange_rate": "1.355",
                "effective_date": "2024-03-31"
            }
        }
    }

    @field_validator("record_date", "country_currency_desc", "exchange_rate", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> str:
        return "" if v is None else _cell_text(v)

    @field_validator("effective_date", mode="before")
    @classmethod
    def coerce_optional_to_str(cls, v: Any) -> str | None:
        return None if v is None else _cell_text(v)

    @property
    def record_date_value(self) -> date | None:
        return parse_api_date(self.record_date)

    @property
    def effective_date_value(self) -> date | None:
        return parse_api_date(self.effective_date)

    @property
    def exchange_rate_value(self) -> Decimal | None:
        return parse_api_exchange_rate(self.exchange_rate)


class RateFeedMeta(BaseModel):
    """Paging metadata returned alongside the data rows."""
    count: int = 0
    labels: dict[str, str] = Field(default_factory=dict)
    data_types: dict[str, str] = Field(default_factory=dict, alias="dataTypes")
    data_formats: dict[str, str] = Field(default_factory=dict, alias="dataFormats")
    total_count: int = Field(default=0, alias="total-count")
    total_pages: int = Field(default=0, alias="total-pages")

    model_config = {"frozen": True, "populate_by_name": True}


class RateFeedLinks(BaseModel):
    """Pagination links (query strings relative to the endpoint)."""
    self_link: str | None = Field(default=None, alias="self")
    first: str | None = None
    prev: str | None = None
    next: str | None = None
    last: str | None = None

    model_config = {"frozen": True, "populate_by_name": True}


class RateFeedEnvelope(BaseModel):
    """
    Paginated response wrapper.

    ``data`` is never None: an empty list means "no matching rows".
    """
    data: list[ExchangeRateObservation] = Field(default_factory=list)
    meta: RateFeedMeta = Field(default_factory=RateFeedMeta)
    links: RateFeedLinks = Field(default_factory=RateFeedLinks)

    model_config = {"frozen": True}

    @field_validator("data", mode="before")
    @classmethod
    def none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("meta", "links", mode="before")
    @classmethod
    def none_to_defaults(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def is_empty(self) -> bool:
        return not self.data

    @classmethod
    def empty(cls) -> "RateFeedEnvelope":
        return cls()

    @classmethod
    def from_response_text(cls, content: str | None) -> "RateFeedEnvelope":
        """
        Parse a response body.

        A missing, non-JSON or wrongly shaped body yields an empty envelope.
        """
        if content is None or not content.strip():
            return cls.empty()
        try:
            return cls.model_validate_json(content)
        except ValidationError as e:
            logger.warning(
                f"Unparseable rates response ({e.error_count()} errors); "
                f"treating as empty. Preview: {content[:200]!r}"
            )
            return cls.empty()


# === Conversion ===

class ConversionResult(BaseModel):
    """Outcome of converting one USD purchase amount."""
    original_amount_usd: Decimal = Field(gt=0, description="Purchase amount in USD")
    transaction_date: date
    exchange_rate: Decimal = Field(description="Rate used for the conversion")
    converted_amount: Decimal = Field(
        description="Amount in the target currency, rounded to cents"
    )
    target_currency: str = Field(description="Country-currency label requested")
    exchange_rate_date: date = Field(description="record_date of the rate used")
    is_exact_date_match: bool = Field(
        description="True when the rate was recorded on the transaction date"
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "original_amount_usd": "100.50",
                "transaction_date": "2024-03-31",
                "exchange_rate": "1.35",
                "converted_amount": "135.68",
                "target_currency": "Canada-Dollar",
                "exchange_rate_date": "2024-03-31",
                "is_exact_date_match": True
            }
        }
    }
