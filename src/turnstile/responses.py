"""Rate limit headers and the 429 response contract."""

from fastapi.responses import JSONResponse

from turnstile.models import Decision, RateLimitedBody


def rate_limit_headers(decision: Decision) -> dict[str, str]:
    """Standard ``X-RateLimit-*`` headers, plus ``Retry-After`` when rejected."""
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_at_seconds),
    }
    if not decision.admitted and decision.retry_after_seconds is not None:
        headers["Retry-After"] = str(decision.retry_after_seconds)
    return headers


def rejection_body(decision: Decision) -> RateLimitedBody:
    retry_after = decision.retry_after_seconds or 0
    return RateLimitedBody(
        message=f"Rate limit exceeded. Please try again in {retry_after} seconds.",
        retryAfter=retry_after,
    )


def rate_limited_response(decision: Decision) -> JSONResponse:
    """Build the 429 Too Many Requests response for a rejected decision."""
    return JSONResponse(
        status_code=429,
        content=rejection_body(decision).model_dump(by_alias=True),
        headers=rate_limit_headers(decision),
    )
