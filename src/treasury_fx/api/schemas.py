"""
Treasury FX API Response Schemas

Successful conversions return models.ConversionResult and rate lookups
return models.RateFeedEnvelope directly; this module holds the rest.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response for /api/v1/health"""
    status: str = Field(description="Service health status")
    version: str = Field(description="API version")
    upstream: str = Field(description="Rates of exchange feed base URL")

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "upstream": "https://api.fiscaldata.treasury.gov/services/api/fiscal_service"
            }
        }
    }


class ErrorDetail(BaseModel):
    """Error detail information."""
    code: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details"
    )
    timestamp: datetime = Field(description="Error timestamp")


class ErrorResponse(BaseModel):
    """Error envelope used by every non-2xx response."""
    error: ErrorDetail

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": {
                    "code": "FX_RATE_NOT_FOUND",
                    "message": (
                        "The purchase cannot be converted to the target currency - "
                        "no exchange rate found within 6 months."
                    ),
                    "details": {
                        "country_currency_desc": "Canada-Dollar",
                        "transaction_date": "2024-03-31"
                    },
                    "timestamp": "2024-04-01T15:30:00Z"
                }
            }
        }
    }
