"""
Treasury FX API Routes

Error mapping: bad input -> 400, no rate -> 404, bad feed data or an
unavailable feed -> 500.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from treasury_fx import __version__
from treasury_fx.api.schemas import ErrorResponse, HealthResponse
from treasury_fx.computation import CurrencyConverter
from treasury_fx.config import get_settings
from treasury_fx.models import ConversionResult, RateFeedEnvelope
from treasury_fx.providers import (
    ExchangeRateError,
    InvalidInputError,
    RateDataIntegrityError,
    RateNotFoundError,
    TreasuryRatesClient,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Exchange Rates"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "No exchange rate available"},
    500: {"model": ErrorResponse, "description": "Upstream feed failure"},
}


def get_rate_client(request: Request) -> TreasuryRatesClient:
    """Shared client created by the application lifespan."""
    return request.app.state.rate_client


def get_converter(
    client: TreasuryRatesClient = Depends(get_rate_client),
) -> CurrencyConverter:
    return CurrencyConverter(client)


def _error(status_code: int, code: str, message: str, details: dict | None = None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "details": details,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing query parameters are bad input: 400, same error body."""
    errors = [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.info(f"Rejected {request.url.path}: {errors}")
    error = _error(
        status.HTTP_400_BAD_REQUEST,
        "FX_INVALID_INPUT",
        "Invalid request parameters",
        {"errors": errors}
    )
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


def _to_http_error(e: ExchangeRateError, action: str) -> HTTPException:
    if isinstance(e, InvalidInputError):
        return _error(status.HTTP_400_BAD_REQUEST, "FX_INVALID_INPUT", e.message, e.details or None)
    if isinstance(e, RateNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "FX_RATE_NOT_FOUND", e.message, e.details or None)
    if isinstance(e, RateDataIntegrityError):
        logger.error(f"Upstream data error while {action}: {e.message}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "FX_UPSTREAM_DATA_INVALID",
            e.message,
            e.details or None
        )
    logger.error(f"Upstream failure while {action}: {e.message} ({e.error_type})")
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "FX_UPSTREAM_UNAVAILABLE",
        f"An error occurred while {action}: {e.message}",
        {"error_type": e.error_type}
    )


@router.get(
    "/exchange-rates/convert",
    response_model=ConversionResult,
    summary="Convert a USD purchase amount",
    description=(
        "Converts a USD amount using the most recent Treasury rate recorded on or "
        "before the transaction date, no older than 6 months. Rounded to cents."
    ),
    responses=ERROR_RESPONSES,
)
async def convert(
    transaction_date: date = Query(description="Purchase date (YYYY-MM-DD)"),
    amount_usd: Decimal = Query(description="Purchase amount in USD, must be positive"),
    country_currency_desc: str = Query(description="Target label, e.g. 'Canada-Dollar'"),
    converter: CurrencyConverter = Depends(get_converter),
) -> ConversionResult:
    try:
        return await converter.convert(transaction_date, amount_usd, country_currency_desc)
    except ExchangeRateError as e:
        raise _to_http_error(e, "converting currency") from e


@router.get(
    "/exchange-rates/latest",
    response_model=RateFeedEnvelope,
    summary="Latest rate for a purchase date",
    description="The single most recent rate on or before the transaction date, within 6 months.",
    responses=ERROR_RESPONSES,
)
async def get_latest_exchange_rate(
    transaction_date: date = Query(description="Purchase date (YYYY-MM-DD)"),
    country_currency_desc: str = Query(description="Currency label, e.g. 'Canada-Dollar'"),
    converter: CurrencyConverter = Depends(get_converter),
) -> RateFeedEnvelope:
    try:
        return await converter.latest_rate(country_currency_desc, transaction_date)
    except ExchangeRateError as e:
        raise _to_http_error(e, "retrieving exchange rate") from e


@router.get(
    "/exchange-rates/rates",
    response_model=RateFeedEnvelope,
    summary="Rates in the lookback window",
    description="All rates from 6 months before the transaction date up to it, newest first.",
    responses=ERROR_RESPONSES,
)
async def get_exchange_rates_for_period(
    transaction_date: date = Query(description="Purchase date (YYYY-MM-DD)"),
    country_currency_desc: str = Query(description="Currency label, e.g. 'Canada-Dollar'"),
    converter: CurrencyConverter = Depends(get_converter),
) -> RateFeedEnvelope:
    try:
        return await converter.rates_for_period(country_currency_desc, transaction_date)
    except ExchangeRateError as e:
        raise _to_http_error(e, "retrieving exchange rates") from e


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Liveness check for load balancers and monitoring",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        upstream=get_settings().treasury_base_url,
    )
