from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from loguru import logger

from midtrans_gateway.core.settings import settings
from midtrans_gateway.db.session import engine
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing


APP_VERSION = "0.1.0"
SERVICE_NAME = "midtrans-gateway"


@asynccontextmanager
async def lifespan(app: FastAPI):
    http_client = httpx.AsyncClient(timeout=settings.midtrans_request_timeout_seconds)
    app.state.midtrans_http_client = http_client
    logger.info(
        "Midtrans gateway starting",
        sandbox=settings.midtrans_use_sandbox,
        payment_mode=settings.midtrans_payment_mode,
        default_country_code=settings.midtrans_default_country_code,
    )

    try:
        yield
    finally:
        await http_client.aclose()
        await engine.dispose()
        logger.info("Midtrans gateway stopped")


def create_app() -> FastAPI:
    """Application factory for the Midtrans gateway service."""
    configure_logging(
        service_name=SERVICE_NAME,
        environment=settings.environment,
        version=APP_VERSION,
    )

    app = FastAPI(
        title="Midtrans Gateway",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        service_name=SERVICE_NAME,
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
