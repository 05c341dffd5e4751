from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse, Response

from gateway.core.config import settings
from gateway.fetch.base import FailureKind, FetchFailure, FetchResult
from gateway.schemas import ErrorResponse, FetchResponse
from gateway.services.proxy import BadRequest, GatewayOutcome, RateLimited, ValidationRejected

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

MSG_BAD_REQUEST = "URL is required"
MSG_RATE_LIMITED = "Rate limit exceeded. Please try again later."
MSG_TIMEOUT = "Request timeout - the webpage took too long to respond"
MSG_TOO_LARGE = "Response too large (max {limit})"
MSG_UNEXPECTED = "An unexpected error occurred while processing your request"

def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers={**CORS_HEADERS, **(headers or {})},
    )

def preflight_response() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)

def unexpected_error_response() -> JSONResponse:
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_UNEXPECTED)

def format_size(num_bytes: int) -> str:
    """Human size for error messages: 5242880 -> "5MB", 1024 -> "1KB"."""
    if num_bytes >= 1024 * 1024 and num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)}MB"
    if num_bytes >= 1024 and num_bytes % 1024 == 0:
        return f"{num_bytes // 1024}KB"
    return f"{num_bytes} bytes"

def upstream_status(code: Optional[int]) -> int:
    """Mirror upstream client/server errors; anything else becomes 502."""
    if code is not None and 400 <= code <= 599:
        return code
    return status.HTTP_502_BAD_GATEWAY

def _failure_response(failure: FetchFailure) -> JSONResponse:
    if failure.kind is FailureKind.TIMEOUT:
        return error_response(status.HTTP_504_GATEWAY_TIMEOUT, MSG_TIMEOUT)
    if failure.kind is FailureKind.TOO_LARGE:
        limit = failure.limit if failure.limit is not None else settings.MAX_RESPONSE_BYTES
        return error_response(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            MSG_TOO_LARGE.format(limit=format_size(limit)),
        )
    if failure.kind is FailureKind.UPSTREAM_ERROR:
        return error_response(
            upstream_status(failure.status_code),
            f"Failed to fetch URL: {failure.status_text or 'Bad Gateway'}",
        )
    return unexpected_error_response()

def to_response(outcome: GatewayOutcome) -> JSONResponse:
    """Translate a gateway outcome into the JSON envelope returned to the browser."""
    if isinstance(outcome, FetchResult):
        body = FetchResponse(html=outcome.body, fetched_url=outcome.final_url)
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=body.model_dump(by_alias=True),
            headers=CORS_HEADERS,
        )

    if isinstance(outcome, FetchFailure):
        return _failure_response(outcome)

    if isinstance(outcome, RateLimited):
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            MSG_RATE_LIMITED,
            headers={
                "Retry-After": str(outcome.decision.retry_after),
                "X-RateLimit-Remaining": str(outcome.decision.remaining),
            },
        )

    if isinstance(outcome, ValidationRejected):
        return error_response(status.HTTP_400_BAD_REQUEST, outcome.reason)

    if isinstance(outcome, BadRequest):
        return error_response(status.HTTP_400_BAD_REQUEST, MSG_BAD_REQUEST)

    raise TypeError(f"Unknown gateway outcome: {outcome!r}")
