"""
Treasury FX Main Application Entry Point
"""

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from treasury_fx import __version__
from treasury_fx.api import request_validation_handler, router
from treasury_fx.config import get_settings
from treasury_fx.providers import TreasuryRatesClient

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared rate client on startup, close it on shutdown."""
    settings = get_settings()

    logger.info(f"Starting Treasury FX v.{__version__}")

    app.state.rate_client = TreasuryRatesClient(settings=settings)
    logger.info(
        f"Rate client ready: {settings.treasury_base_url} "
        f"(timeout {settings.treasury_timeout_seconds}s, "
        f"{settings.treasury_max_retries} retries)"
    )

    yield

    logger.info("Shutting down Treasury FX")
    await app.state.rate_client.aclose()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Treasury FX",
        description="Purchase conversion using U.S. Treasury rates of exchange",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/api/v1/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Treasury FX",
            "version": __version__,
            "description": "Purchase conversion using U.S. Treasury rates of exchange",
            "docs": "/docs",
            "api": {
                "convert": "/api/v1/exchange-rates/convert",
                "latest": "/api/v1/exchange-rates/latest",
                "rates": "/api/v1/exchange-rates/rates",
                "health": "/api/v1/health"
            }
        }

    return app


# Create application instance
app = create_app()


def main():
    """Main entry point for running the server."""
    settings = get_settings()

    logger.info(f"Starting Treasury FX server on {settings.api_host}:{settings.api_port}")

    uvicorn.run(
        "treasury_fx.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
