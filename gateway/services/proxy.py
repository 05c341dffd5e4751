import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Union

from pydantic import ValidationError

from gateway.fetch.base import BaseFetcher, FetchFailure, FetchResult
from gateway.fetch.validator import validate_url
from gateway.ratelimit.limiter import RateLimitDecision, RateLimiter, client_key_from_headers
from gateway.schemas import FetchRequest

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class BadRequest:
    pass

@dataclass(frozen=True)
class RateLimited:
    client_key: str
    decision: RateLimitDecision

@dataclass(frozen=True)
class ValidationRejected:
    reason: str

GatewayOutcome = Union[BadRequest, RateLimited, ValidationRejected, FetchFailure, FetchResult]

def parse_fetch_request(raw_body: bytes) -> Union[FetchRequest, BadRequest]:
    """Parse a JSON body into a FetchRequest; anything else is a BadRequest."""
    try:
        payload: Any = json.loads(raw_body) if raw_body else None
    except (ValueError, UnicodeDecodeError, RecursionError):
        return BadRequest()

    if not isinstance(payload, dict):
        return BadRequest()

    try:
        return FetchRequest.model_validate(payload)
    except ValidationError:
        return BadRequest()

async def process_fetch_request(
    headers: Mapping[str, str],
    raw_body: bytes,
    limiter: RateLimiter,
    fetcher: BaseFetcher,
) -> GatewayOutcome:
    """
    Run one request through the gateway.

    1. Rate limit by client key (counted before the body is looked at)
    2. Check the body shape
    3. Validate the target URL
    4. Fetch it, at most once
    """
    client_key = client_key_from_headers(headers)
    decision = limiter.hit(client_key)
    if not decision.allowed:
        logger.info("Rate limit exceeded for client: %s", client_key)
        return RateLimited(client_key, decision)
    logger.debug("Admitted client %s, %d requests left in window", client_key, decision.remaining)

    request = parse_fetch_request(raw_body)
    if isinstance(request, BadRequest):
        logger.info("Rejected request without a usable URL from client: %s", client_key)
        return request

    validation = validate_url(request.url)
    if not validation.valid:
        logger.info("URL validation failed for %r: %s", request.url, validation.reason)
        return ValidationRejected(validation.reason)

    logger.info("Fetching URL: %s", request.url)
    outcome = await fetcher.fetch(request.url)
    if isinstance(outcome, FetchResult):
        logger.info(
            "Fetched %s (%d bytes, %s, status %d, landed on %s)",
            outcome.final_url, outcome.size, outcome.content_type or "no content-type",
            outcome.status_code, outcome.response_url,
        )
    else:
        logger.warning(
            "Fetch of %s failed: %s (status=%s %s) %s",
            request.url, outcome.kind.value, outcome.status_code, outcome.status_text or "", outcome.detail or "",
        )
    return outcome
