"""Exception types for Turnstile.

A rejected admission is a normal ``Decision``, not an exception. The types
below cover configuration faults and the HTTP layer only.
"""

from turnstile.models import Decision


class PolicyConfigurationError(ValueError):
    """A policy has a non-positive limit or window. Raised at startup."""


class UnknownPolicyError(KeyError):
    """A caller asked for a policy name that is not in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown rate limit policy: {self.name}"


class RateLimitExceeded(Exception):
    """Raised by HTTP guards to short-circuit a request with a 429."""

    def __init__(self, decision: Decision, policy: str) -> None:
        super().__init__(f"Rate limit exceeded for policy {policy}")
        self.decision = decision
        self.policy = policy
