"""FastAPI dependency that applies a named policy to an endpoint.

Usage::

    @router.post("/bookings", dependencies=[Depends(RateLimit(BOOKING))])
    async def create_booking(...): ...

Admitted responses carry the ``X-RateLimit-*`` headers. Rejected requests
raise ``RateLimitExceeded``, rendered as a 429 by the app's handler.
"""

from fastapi import Request, Response

from turnstile.controller import AdmissionController
from turnstile.errors import RateLimitExceeded
from turnstile.identity import IdentityResolver, client_ip
from turnstile.models import Decision
from turnstile.policies import PolicyCatalog
from turnstile.responses import rate_limit_headers


class RateLimit:
    """Guard an endpoint with the policy named ``policy_name``."""

    def __init__(self, policy_name: str, identity: IdentityResolver = client_ip) -> None:
        self.policy_name = policy_name
        self.identity = identity

    async def __call__(self, request: Request, response: Response) -> Decision:
        controller: AdmissionController = request.app.state.controller
        catalog: PolicyCatalog = request.app.state.catalog

        policy = catalog.get_policy(self.policy_name)
        decision = controller.check_admission(self.identity(request), policy)

        if not decision.admitted:
            raise RateLimitExceeded(decision, policy.name)

        response.headers.update(rate_limit_headers(decision))
        return decision
