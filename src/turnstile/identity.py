"""Caller identity resolvers.

An identity resolver turns a request into the string that scopes a rate limit
counter. Guards accept any ``IdentityResolver`` so endpoints can key on IP,
API key or IP plus route.

Resolvers return an empty string when the request carries nothing to key on.
The controller maps that to its configured fallback identity, so every
anonymous caller shares one bucket.
"""

from collections.abc import Callable

from starlette.requests import Request

IdentityResolver = Callable[[Request], str]


def client_ip(request: Request) -> str:
    """First hop of ``X-Forwarded-For``, else ``X-Real-IP``, else empty."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return ""


def ip_and_path(request: Request) -> str:
    """Scope a counter to one client on one route."""
    ip = client_ip(request)
    if not ip:
        return ""
    return f"{ip}:{request.url.path}"


def header_or_ip(header_name: str) -> IdentityResolver:
    """Build a resolver keyed on a header such as an API key, falling back to IP."""

    def resolve(request: Request) -> str:
        value = request.headers.get(header_name)
        if value and value.strip():
            return value.strip()
        return client_ip(request)

    return resolve
