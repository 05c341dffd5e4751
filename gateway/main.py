import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from gateway.api.responses import CORS_HEADERS, preflight_response, unexpected_error_response
from gateway.api.routes import get_rate_limiter, router
from gateway.core.config import settings
from gateway.core.logging import configure_logging

logger = logging.getLogger(__name__)

async def sweep_rate_limits(interval: float):
    """Periodically drop rate-limit records whose window has expired."""
    while True:
        await asyncio.sleep(interval)
        removed = get_rate_limiter().sweep()
        if removed:
            logger.debug("Swept %d expired rate-limit records", removed)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Start the rate-limit sweeper on startup, stop it on shutdown.
    """
    # Startup
    configure_logging()
    logger.info("Starting Web Fetch Gateway...")
    sweeper = asyncio.create_task(sweep_rate_limits(settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS))

    yield

    # Shutdown
    logger.info("Shutting down Web Fetch Gateway...")
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass

app = FastAPI(
    title="Web Fetch Gateway",
    description="Hardened single-URL fetch proxy for browser clients",
    version="1.0.0",
    lifespan=lifespan
)

@app.middleware("http")
async def cors_headers(request: Request, call_next):
    """Answer preflight requests directly and add CORS headers to everything else."""
    if request.method == "OPTIONS":
        return preflight_response()

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Details stay in the server log, never in the response body
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return unexpected_error_response()

@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "service": "Web Fetch Gateway",
        "version": "1.0.0",
        "endpoints": {
            "fetch": "POST /",
            "preflight": "OPTIONS /",
            "health": "GET /health"
        }
    }

app.include_router(router)

def run():
    uvicorn.run("gateway.main:app", host=settings.HOST, port=settings.PORT)
