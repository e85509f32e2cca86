"""
backend/app/main.py

Purpose:
    FastAPI application bootstrap: logging, CORS and request logging
    middleware, fixture routes, and provider client shutdown.

Dependencies:
    - app.routers.fixtures
    - app.services.fixture_resolution_service
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import settings
from app.middleware.logging import StructuredLoggingMiddleware, setup_logging
from app.providers.http_client import ProviderResponseError
from app.routers import fixtures
from app.services.fixture_resolution_service import fixture_resolution_service

logger = logging.getLogger("slipscan")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("slipscan backend starting (strategies: %s)", settings.RESOLUTION_STRATEGIES)
    yield
    await fixture_resolution_service.aclose()
    logger.info("slipscan backend stopped")


app = FastAPI(title="slipscan", lifespan=lifespan)

app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.BACKEND_CORS_ORIGINS.split(",") if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProviderResponseError)
async def provider_error_handler(request: Request, exc: ProviderResponseError):
    logger.error("Upstream %s error on %s: %s", exc.provider, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "upstream provider error"})


app.include_router(fixtures.router)


@app.get("/health", response_class=PlainTextResponse)
async def health():
    return "ok"
