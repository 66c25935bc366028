"""Named rate limit policies.

The catalog is built once at startup and is read-only afterwards. Any invalid
limit or window fails the build, so a misconfigured process never serves.
"""

from collections.abc import Iterator, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from turnstile.config import PolicyOverride
from turnstile.errors import PolicyConfigurationError, UnknownPolicyError
from turnstile.models import Policy

logger = structlog.get_logger()

MINUTE_MS = 60 * 1000

GENERAL = "general"
SEARCH = "search"
BOOKING = "booking"
PROMO_VALIDATE = "promo_validate"
AUTH = "auth"
B2B = "b2b"
TRACKING = "tracking"

DEFAULT_POLICIES: dict[str, dict[str, Any]] = {
    # General API traffic
    GENERAL: {"limit": 100, "windowMs": MINUTE_MS, "keyPrefix": "general"},
    # Public search
    SEARCH: {"limit": 60, "windowMs": MINUTE_MS, "keyPrefix": "search"},
    # Booking creation
    BOOKING: {"limit": 10, "windowMs": MINUTE_MS, "keyPrefix": "booking"},
    PROMO_VALIDATE: {"limit": 30, "windowMs": MINUTE_MS, "keyPrefix": "promo"},
    # Login, registration, guest conversion
    AUTH: {"limit": 5, "windowMs": MINUTE_MS, "keyPrefix": "auth"},
    # Partner and agency API
    B2B: {"limit": 200, "windowMs": MINUTE_MS, "keyPrefix": "b2b"},
    # Live location updates, per booking
    TRACKING: {"limit": 30, "windowMs": MINUTE_MS, "keyPrefix": "tracking"},
}


class PolicyCatalog(Mapping[str, Policy]):
    """Read-only mapping of policy name to ``Policy``."""

    def __init__(self, policies: Mapping[str, Policy]) -> None:
        self._policies = dict(policies)

    def __getitem__(self, name: str) -> Policy:
        try:
            return self._policies[name]
        except KeyError:
            raise UnknownPolicyError(name) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    def get_policy(self, name: str) -> Policy:
        """Look up a policy, raising ``UnknownPolicyError`` when absent."""
        return self[name]


def build_catalog(overrides: Mapping[str, PolicyOverride] | None = None) -> PolicyCatalog:
    """
    Merge the default policies with per-name overrides and validate them.

    Overrides may change any field of an existing policy or add a new policy,
    in which case ``limit`` and ``windowMs`` are required.

    Raises:
        PolicyConfigurationError: if any resulting policy is invalid or two
            policies share a key prefix.
    """
    raw = {name: dict(values) for name, values in DEFAULT_POLICIES.items()}

    for name, override in (overrides or {}).items():
        values = override.model_dump(by_alias=True, exclude_none=True)
        raw.setdefault(name, {"keyPrefix": name}).update(values)

    policies: dict[str, Policy] = {}
    for name, values in raw.items():
        try:
            policies[name] = Policy(name=name, **values)
        except ValidationError as e:
            logger.error("invalid_policy", policy=name, errors=e.errors(include_url=False))
            raise PolicyConfigurationError(f"Invalid rate limit policy '{name}': {e}") from e

    owners: dict[str, str] = {}
    for name, policy in policies.items():
        other = owners.setdefault(policy.key_prefix, name)
        if other != name:
            logger.error("duplicate_key_prefix", prefix=policy.key_prefix, policies=[other, name])
            raise PolicyConfigurationError(
                f"Policies '{other}' and '{name}' share key prefix '{policy.key_prefix}'"
            )

    logger.info("policy_catalog_built", policies=sorted(policies))
    return PolicyCatalog(policies)
