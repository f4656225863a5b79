import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from .config import API_PREFIX, cors_settings
from .exceptions import DomainException, ProblemDetail
from .rate_limit import limiter, rate_limit_handler
from .routers import matches
from .utils.sentry import init_sentry

logger = logging.getLogger(__name__)

SENTRY_ENABLED = init_sentry()
ALLOWED_ORIGINS, ALLOW_CREDENTIALS = cors_settings()

app = FastAPI(
    title="Courtside Live Tennis Scoring API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "X-Admin-Token"],
)

logger.info("API_PREFIX=%r origins=%s", API_PREFIX, ",".join(ALLOWED_ORIGINS))


def _problem_response(
    problem: ProblemDetail, headers: Optional[dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(),
        media_type="application/problem+json",
        headers=headers,
    )


# -----------------------------------------------------------------------------
# Error handling
# -----------------------------------------------------------------------------
@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    return _problem_response(exc.to_problem(instance=request.url.path))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    problem = ProblemDetail(
        title=detail,
        detail=detail,
        status=exc.status_code,
        instance=request.url.path,
        code=getattr(exc, "code", f"http_{exc.status_code}"),
    )
    return _problem_response(problem, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid request")
    problem = ProblemDetail(
        title="Invalid request",
        detail=f"{location}: {message}" if location else message,
        status=422,
        instance=request.url.path,
        code="validation_error",
    )
    return _problem_response(problem)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    problem = ProblemDetail(
        title="Internal Server Error",
        status=500,
        detail=str(exc),
        code="internal_server_error",
    )
    return _problem_response(problem)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
def healthz():
    return {"status": "ok"}


# Unprefixed copy for reverse proxies and uptime checks.
app.add_api_route("/healthz", healthz, methods=["GET"], tags=["health"])

api_router = APIRouter(prefix=API_PREFIX)
api_router.add_api_route("/healthz", healthz, methods=["GET"], tags=["health"])

v0_router = APIRouter(prefix="/v0")
v0_router.include_router(matches.router)
api_router.include_router(v0_router)

app.include_router(api_router)
