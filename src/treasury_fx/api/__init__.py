"""
Treasury FX API Module
"""

from treasury_fx.api.routes import (
    get_converter,
    get_rate_client,
    request_validation_handler,
    router,
)
from treasury_fx.api.schemas import (
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "router",
    "get_converter",
    "get_rate_client",
    "request_validation_handler",
    "ErrorResponse",
    "HealthResponse",
]
