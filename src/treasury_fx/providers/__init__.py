"""
Treasury FX Data Providers Module

Upstream: U.S. Treasury Fiscal Data "Rates of Exchange" dataset.
"""

from treasury_fx.providers.base import (
    ExchangeRateError,
    HttpxTransport,
    InvalidInputError,
    RateDataIntegrityError,
    RateNotFoundError,
    RateTransport,
    RateTransportError,
    TransportResponse,
)
from treasury_fx.providers.treasury import TreasuryRatesClient

__all__ = [
    "ExchangeRateError",
    "HttpxTransport",
    "InvalidInputError",
    "RateDataIntegrityError",
    "RateNotFoundError",
    "RateTransport",
    "RateTransportError",
    "TransportResponse",
    "TreasuryRatesClient",
]
