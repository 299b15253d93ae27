"""
rate_limit.py — Global rate limiter instance.

Uses slowapi (a Starlette-compatible wrapper around the `limits` library).
Requests are keyed by client IP address.

Usage in routes:
    from fastapi import Request
    from channel_ingest.core.rate_limit import limiter

    @router.post("/channel")
    @limiter.limit(lambda: settings.youtube_rate_limit)
    async def my_endpoint(request: Request, payload: MyRequest):
        ...

Wired into the app in main.py via app.state.limiter and the
RateLimitExceeded exception handler.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Key requests by client IP.
limiter = Limiter(key_func=get_remote_address)
