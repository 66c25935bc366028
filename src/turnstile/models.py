"""Domain models for Turnstile."""

import math

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_KEY_PREFIX = "rl"


class Policy(BaseModel):
    """Named fixed-window quota: at most ``limit`` admissions per window."""

    name: str = Field(..., min_length=1, max_length=100)
    limit: int = Field(..., ge=1)
    window_ms: int = Field(..., alias="windowMs", ge=1)
    key_prefix: str = Field(DEFAULT_KEY_PREFIX, alias="keyPrefix", min_length=1)

    model_config = ConfigDict(populate_by_name=True, frozen=True, serialize_by_alias=True)

    def counter_key(self, identity: str) -> str:
        """Namespace an identity so policies never share a counter."""
        return f"{self.key_prefix}:{identity}"


class CounterEntry:
    """Admissions seen for one key in its current window."""

    __slots__ = ("count", "reset_at")

    def __init__(self, count: int, reset_at: int) -> None:
        self.count = count
        self.reset_at = reset_at

    def __repr__(self) -> str:
        return f"CounterEntry(count={self.count}, reset_at={self.reset_at})"


class Decision(BaseModel):
    """Outcome of one admission check."""

    admitted: bool
    limit: int
    remaining: int
    reset_at: int = Field(..., alias="resetAt")
    retry_after_seconds: int | None = Field(None, alias="retryAfter")

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    @property
    def reset_at_seconds(self) -> int:
        """Window end in epoch seconds, rounded up."""
        return math.ceil(self.reset_at / 1000)


class EvaluateRequest(BaseModel):
    """Request to check admission for an identity under a named policy."""

    identity: str = Field("", max_length=512)
    policy: str = Field(..., min_length=1)


class RateLimitedBody(BaseModel):
    """JSON body returned with a 429."""

    error: str = "Too Many Requests"
    message: str
    retry_after: int = Field(..., alias="retryAfter")

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)
