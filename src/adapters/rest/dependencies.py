"""
Shared FastAPI dependencies.

- get_factory(): returns the initialized ServiceFactory (set at startup).
- client_ip(): caller address used for rate limiting and logs.
- enforce_rate_limit(): per-IP request budget, 429 when exceeded.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from domain.exceptions import RateLimitExceeded
from factory import ServiceFactory

RATE_LIMIT_DETAIL = "Too many requests. Please slow down."

# Module-level reference set by app lifespan
_factory: ServiceFactory | None = None


def set_factory(factory: ServiceFactory | None) -> None:
    global _factory
    _factory = factory


def get_factory() -> ServiceFactory:
    if _factory is None:
        raise RuntimeError("ServiceFactory not initialized.")
    return _factory


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(
    request: Request,
    factory: ServiceFactory = Depends(get_factory),
) -> str:
    """Count this request against the caller's window. Returns the caller IP."""
    ip = client_ip(request)
    try:
        await factory.create_rate_limiter().hit(ip)
    except RateLimitExceeded as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMIT_DETAIL,
            headers={"Retry-After": str(exc.retry_after)},
        )
    return ip
