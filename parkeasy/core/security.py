from fastapi import HTTPException, Request
from starlette.status import HTTP_429_TOO_MANY_REQUESTS
from datetime import datetime, timezone

def rate_limit(request: Request):
    """
    Basic RPM limiter.
    Uses the app's counter cache (Redis or in-process).
    Keyed by client IP and the current minute.
    """
    state = request.app.state
    rpm = max(1, state.settings.RATE_LIMIT_RPM)
    client_ip = request.client.host if request.client else "unknown"
    minute_bucket = datetime.now(timezone.utc).strftime("%Y%m%d%H%M")
    key = f"rate:{client_ip}:{minute_bucket}"

    if state.rate_cache.incr(key) > rpm:
        raise HTTPException(status_code=HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")
