import time

from fastapi import Header, HTTPException, Request
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_429_TOO_MANY_REQUESTS

from .config import settings
from .cache import counters

def require_api_key(x_api_key: str | None = Header(default=None, alias="x-api-key")):
    """
    Header-based API key check for the estimation routes.
    Unset API_KEY means open access (local dev).
    """
    if not settings.API_KEY:
        return
    if x_api_key != settings.API_KEY:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid API key")

def rate_limit(request: Request):
    """
    Fixed-window limiter keyed by API key (if present) and client IP.
    Model calls are slow and billed, so the default budget is small.
    """
    limit = max(1, settings.RATE_LIMIT_RPM)
    window = max(1, settings.RATE_LIMIT_WINDOW_SECONDS)
    client_ip = request.client.host if request.client else "unknown"
    api_key = request.headers.get("x-api-key") or "anon"
    bucket = int(time.time() // window)
    count = counters.incr(f"rate:{api_key}:{client_ip}:{bucket}")
    if count > limit:
        raise HTTPException(
            status_code=HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(window)},
        )
