"""
Currency Converter - USD purchase amounts into a target currency

The rate used is the most recent Treasury rate recorded on or before the
purchase date, looked up no further back than the lookback window
(6 months by default). The converted amount is rounded to cents with ties
going away from zero: 1.235 -> 1.24, -1.235 -> -1.24.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, Overflow, localcontext

from treasury_fx.config import Settings, get_settings
from treasury_fx.models import ConversionResult, RateFeedEnvelope
from treasury_fx.providers.base import (
    InvalidInputError,
    RateDataIntegrityError,
    RateNotFoundError,
)
from treasury_fx.providers.treasury import TreasuryRatesClient
from treasury_fx.utils import subtract_months

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round half away from zero to 2 fractional digits."""
    # decimal.ROUND_HALF_UP rounds ties away from zero, unlike round().
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def convert_amount(amount: Decimal, rate: Decimal) -> Decimal:
    """
    Exact product of amount and rate, rounded once to cents.

    Precision is sized to the operands so the multiply never rounds and
    the quantize has room for every integer digit of the result.
    """
    digits = len(amount.as_tuple().digits) + len(rate.as_tuple().digits)
    with localcontext() as ctx:
        ctx.prec = digits
        product = amount * rate
        ctx.prec = max(digits, product.adjusted() + 4)
        return round_to_cents(product)


class CurrencyConverter:
    """
    Convert purchase amounts using Treasury rates of exchange.

    Retries belong to the rate client; every client failure is final here.
    """

    def __init__(self, client: TreasuryRatesClient, settings: Settings | None = None):
        self.client = client
        self.settings = settings or get_settings()

    @property
    def not_found_message(self) -> str:
        return (
            "The purchase cannot be converted to the target currency - "
            f"no exchange rate found within {self.settings.rate_lookback_months} months."
        )

    async def convert(
        self,
        transaction_date: date,
        amount_usd: Decimal,
        currency: str
    ) -> ConversionResult:
        """
        Convert ``amount_usd`` into ``currency`` as of ``transaction_date``.

        Raises:
            InvalidInputError: Non-positive amount or empty currency label
            RateNotFoundError: No rate within the lookback window
            RateDataIntegrityError: The feed sent an unparseable rate or date
            RateTransportError: The feed is unavailable (from the client)
        """
        amount_usd = _require_positive_amount(amount_usd)
        _require_currency(currency)

        envelope = await self.client.fetch_latest_rate(currency, transaction_date)

        if envelope.is_empty:
            logger.info(
                f"No {currency} rate within {self.settings.rate_lookback_months} months "
                f"before {transaction_date}"
            )
            raise RateNotFoundError(
                self.not_found_message,
                details={
                    "country_currency_desc": currency,
                    "transaction_date": transaction_date.isoformat(),
                }
            )

        observation = envelope.data[0]

        exchange_rate = observation.exchange_rate_value
        if exchange_rate is None:
            logger.error(
                f"Invalid exchange rate {observation.exchange_rate!r} for {currency} "
                f"recorded {observation.record_date!r}"
            )
            raise RateDataIntegrityError(
                "Invalid exchange rate format from upstream feed",
                details={"exchange_rate": observation.exchange_rate}
            )

        exchange_rate_date = observation.record_date_value
        if exchange_rate_date is None:
            logger.error(f"Invalid record date {observation.record_date!r} for {currency}")
            raise RateDataIntegrityError(
                "Invalid exchange rate date from upstream feed",
                details={"record_date": observation.record_date}
            )

        try:
            converted_amount = convert_amount(amount_usd, exchange_rate)
        except (InvalidOperation, Overflow) as e:
            raise InvalidInputError(
                "Amount is too large to convert",
                details={"amount_usd": str(amount_usd)}
            ) from e

        logger.info(
            f"Converted {amount_usd} USD on {transaction_date} to {converted_amount} "
            f"{currency} at {exchange_rate} (rate date {exchange_rate_date})"
        )

        return ConversionResult(
            original_amount_usd=amount_usd,
            transaction_date=transaction_date,
            exchange_rate=exchange_rate,
            converted_amount=converted_amount,
            target_currency=currency,
            exchange_rate_date=exchange_rate_date,
            is_exact_date_match=exchange_rate_date == transaction_date,
        )

    async def latest_rate(self, currency: str, transaction_date: date) -> RateFeedEnvelope:
        """Latest-rate envelope for a purchase date; never empty."""
        _require_currency(currency)
        envelope = await self.client.fetch_latest_rate(currency, transaction_date)
        if envelope.is_empty:
            raise RateNotFoundError(
                "No exchange rate found for the specified currency and date.",
                details={"country_currency_desc": currency}
            )
        return envelope

    async def rates_for_period(self, currency: str, transaction_date: date) -> RateFeedEnvelope:
        """Every rate in the lookback window ending at the purchase date, newest first."""
        _require_currency(currency)
        start_date = subtract_months(transaction_date, self.settings.rate_lookback_months)
        envelope = await self.client.fetch_rates_for_currency(
            currency, start_date=start_date, end_date=transaction_date
        )
        if envelope.is_empty:
            raise RateNotFoundError(
                "No exchange rates found for the specified currency and date range.",
                details={
                    "country_currency_desc": currency,
                    "start_date": start_date.isoformat(),
                    "end_date": transaction_date.isoformat(),
                }
            )
        return envelope


def _require_positive_amount(amount_usd) -> Decimal:
    if isinstance(amount_usd, float):
        # Float amounts would already carry binary rounding error.
        raise InvalidInputError("Amount must be a Decimal, not float")
    try:
        amount = Decimal(amount_usd)
    except (ArithmeticError, TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid amount: {amount_usd!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise InvalidInputError(
            "Amount must be a positive value",
            details={"amount_usd": str(amount_usd)}
        )
    return amount


def _require_currency(currency: str | None) -> None:
    if currency is None or not currency.strip():
        raise InvalidInputError("Currency description cannot be null or empty")
