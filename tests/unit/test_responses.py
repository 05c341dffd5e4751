import json

import pytest

from gateway.api.responses import CORS_HEADERS, preflight_response, to_response
from gateway.fetch.base import FailureKind, FetchFailure, FetchResult
from gateway.ratelimit.limiter import RateLimitDecision
from gateway.services.proxy import BadRequest, RateLimited, ValidationRejected

def body_of(response):
    return json.loads(response.body)

class TestResponseTranslation:
    """Unit tests for mapping gateway outcomes to HTTP responses"""

    def test_success(self):
        result = FetchResult(
            body="<html>ok</html>",
            final_url="https://example.com/a",
            response_url="https://example.com/b",
            status_code=200,
            content_type="text/html",
            size=15,
        )
        response = to_response(result)

        assert response.status_code == 200
        assert body_of(response) == {"html": "<html>ok</html>", "fetchedUrl": "https://example.com/a"}

    def test_bad_request(self):
        response = to_response(BadRequest())
        assert response.status_code == 400
        assert body_of(response) == {"error": "URL is required"}

    def test_rate_limited(self):
        decision = RateLimitDecision(allowed=False, remaining=0, retry_after=12)
        response = to_response(RateLimited("1.2.3.4", decision))

        assert response.status_code == 429
        assert body_of(response) == {"error": "Rate limit exceeded. Please try again later."}
        assert response.headers["retry-after"] == "12"
        assert response.headers["x-ratelimit-remaining"] == "0"

    def test_validation_rejected(self):
        response = to_response(ValidationRejected("Only HTTP and HTTPS protocols are allowed"))
        assert response.status_code == 400
        assert body_of(response) == {"error": "Only HTTP and HTTPS protocols are allowed"}

    def test_timeout(self):
        response = to_response(FetchFailure(FailureKind.TIMEOUT))
        assert response.status_code == 504
        assert body_of(response) == {"error": "Request timeout - the webpage took too long to respond"}

    def test_too_large(self):
        response = to_response(FetchFailure(FailureKind.TOO_LARGE))
        assert response.status_code == 413
        assert body_of(response) == {"error": "Response too large (max 5MB)"}

    @pytest.mark.parametrize("limit, expected", [
        (1024, "Response too large (max 1KB)"),
        (2 * 1024 * 1024, "Response too large (max 2MB)"),
        (1500, "Response too large (max 1500 bytes)"),
    ])
    def test_too_large_names_the_cap_that_was_hit(self, limit, expected):
        response = to_response(FetchFailure(FailureKind.TOO_LARGE, limit=limit))
        assert response.status_code == 413
        assert body_of(response) == {"error": expected}

    def test_network_error_is_generic(self):
        failure = FetchFailure(FailureKind.NETWORK_ERROR, detail="ConnectError('10.0.0.3 refused')")
        response = to_response(failure)

        assert response.status_code == 500
        assert body_of(response) == {"error": "An unexpected error occurred while processing your request"}
        assert b"10.0.0.3" not in response.body

    @pytest.mark.parametrize("upstream, expected", [
        (404, 404),
        (403, 403),
        (500, 500),
        (503, 503),
        (300, 502),
        (None, 502),
    ])
    def test_upstream_status_mapping(self, upstream, expected):
        failure = FetchFailure(FailureKind.UPSTREAM_ERROR, status_code=upstream, status_text="Not Found")
        response = to_response(failure)

        assert response.status_code == expected
        assert body_of(response) == {"error": "Failed to fetch URL: Not Found"}

    def test_every_response_has_cors_headers(self):
        outcomes = [
            BadRequest(),
            ValidationRejected("Invalid URL format"),
            FetchFailure(FailureKind.TIMEOUT),
            FetchFailure(FailureKind.UPSTREAM_ERROR, status_code=404, status_text="Not Found"),
        ]
        for outcome in outcomes:
            response = to_response(outcome)
            for name, value in CORS_HEADERS.items():
                assert response.headers[name] == value
            assert response.headers["content-type"] == "application/json"

    def test_unknown_outcome_raises(self):
        with pytest.raises(TypeError):
            to_response(object())

    def test_preflight(self):
        response = preflight_response()
        assert response.status_code == 200
        assert response.body == b""
        assert response.headers["access-control-allow-origin"] == "*"
