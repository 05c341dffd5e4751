import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from gateway.api.responses import to_response, unexpected_error_response
from gateway.core.config import settings
from gateway.fetch.base import BaseFetcher
from gateway.fetch.executor import HttpxFetcher
from gateway.ratelimit.limiter import InMemoryRateLimiter, RateLimiter
from gateway.services.proxy import process_fetch_request

logger = logging.getLogger(__name__)

router = APIRouter()

rate_limiter = InMemoryRateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)

def get_rate_limiter() -> RateLimiter:
    return rate_limiter

def get_fetcher() -> BaseFetcher:
    return HttpxFetcher()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Web Fetch Gateway"}

@router.post("/{path:path}")
async def fetch_url(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    fetcher: BaseFetcher = Depends(get_fetcher),
) -> JSONResponse:
    """
    Fetch a single caller-supplied URL on behalf of the browser.

    Body: {"url": "https://..."}. Returns {"html", "fetchedUrl"} on success
    or {"error"} with a status describing the failure.
    """
    try:
        raw_body = await request.body()
        outcome = await process_fetch_request(request.headers, raw_body, limiter, fetcher)
        return to_response(outcome)
    except Exception:
        logger.exception("Error in web fetch gateway")
        return unexpected_error_response()
