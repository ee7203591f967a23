"""HTTP middleware: per-client rate limiting."""

import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..app import Application


def client_key(request: Request) -> str:
    """Client identity: first X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def add_rate_limit_middleware(fastapi_app: FastAPI, app: Application) -> None:
    """Reject over-quota clients with 429 and annotate allowed responses."""

    @fastapi_app.middleware("http")
    async def rate_limit(request: Request, call_next):
        decision = await app.rate_limiter.check(client_key(request))

        if not decision.allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Too many requests",
                    "retry_after": decision.retry_after,
                },
                headers={"Retry-After": str(decision.retry_after)},
            )

        response = await call_next(request)

        if decision.enforced:
            response.headers["X-RateLimit-Limit"] = str(decision.limit)
            response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
            response.headers["X-RateLimit-Reset"] = str(math.ceil(decision.reset_at))
        return response
