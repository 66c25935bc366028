"""Unit tests for rate limit headers and 429 responses."""

import json

from turnstile.models import Decision
from turnstile.responses import rate_limit_headers, rate_limited_response, rejection_body

RESET_AT = 1_700_000_060_500


def admitted():
    return Decision(admitted=True, limit=10, remaining=7, resetAt=RESET_AT)


def rejected():
    return Decision(admitted=False, limit=10, remaining=0, resetAt=RESET_AT, retryAfter=42)


class TestRateLimitHeaders:
    def test_admitted_headers(self):
        assert rate_limit_headers(admitted()) == {
            "X-RateLimit-Limit": "10",
            "X-RateLimit-Remaining": "7",
            "X-RateLimit-Reset": "1700000061",
        }

    def test_rejected_headers(self):
        headers = rate_limit_headers(rejected())

        assert headers["X-RateLimit-Remaining"] == "0"
        assert headers["Retry-After"] == "42"


class TestRejection:
    def test_body(self):
        body = rejection_body(rejected())

        assert body.model_dump(by_alias=True) == {
            "error": "Too Many Requests",
            "message": "Rate limit exceeded. Please try again in 42 seconds.",
            "retryAfter": 42,
        }

    def test_response(self):
        response = rate_limited_response(rejected())

        assert response.status_code == 429
        assert response.headers["retry-after"] == "42"
        assert response.headers["x-ratelimit-limit"] == "10"
        assert response.headers["x-ratelimit-reset"] == "1700000061"
        assert json.loads(response.body)["retryAfter"] == 42
