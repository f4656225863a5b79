from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from .config import EVENT_RATE_LIMIT, rate_limits_disabled
from .exceptions import ProblemDetail


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        if parts:
            return parts[-1]
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


limiter = Limiter(key_func=client_ip)


def event_rate_limit() -> str:
    if rate_limits_disabled():
        return "1000/second"
    return EVENT_RATE_LIMIT


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else ""
    problem = ProblemDetail(
        title="Too Many Requests",
        detail=(
            f"rate limit exceeded: {detail}"
            if detail
            else "rate limit exceeded: please wait before submitting another event."
        ),
        status=429,
        instance=request.url.path,
        code="rate_limit_exceeded",
    )
    return JSONResponse(
        status_code=429,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )
