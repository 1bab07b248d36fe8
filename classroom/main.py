import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from .config import settings
from .domain.entities import Role
from .domain.errors import RoleMismatch, Unauthenticated
from .infrastructure.db import engine
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    guard_denials_total,
    http_requests_total,
    http_request_duration_seconds
)
from .interfaces.http.authz import get_role_groups
from .interfaces.http.ratelimit import limiter
from .interfaces.http.routers import accounts as accounts_router
from .interfaces.http.routers import dashboard as dashboard_router
from .interfaces.http.routers import pages as pages_router

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="Classroom Service", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    # Метрики
    duration = time.time() - start_time
    status_code = response.status_code
    route = request.scope.get("route")
    endpoint = getattr(route, "path", path)
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


def _to_sign_in(request: Request, role: Role, reason: str) -> RedirectResponse:
    guard_denials_total.labels(role=role.value, reason=reason).inc()
    logger.info("guard_denied", path=request.url.path, role=role.value, reason=reason)
    return RedirectResponse(role.sign_in_path, status_code=303)


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return _to_sign_in(request, exc.role, "unauthenticated")


@app.exception_handler(RoleMismatch)
async def role_mismatch_handler(request: Request, exc: RoleMismatch):
    # не фатально: просим войти под нужной ролью
    return _to_sign_in(request, exc.required, "role_mismatch")


@app.on_event("startup")
def on_startup():
    logger.info("Starting classroom service", version="0.1.0")
    groups = get_role_groups()
    logger.info("Role groups loaded", groups={n: [r.value for r in groups.get(n).roles] for n in groups.names()})
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(pages_router.router)
for role in Role:
    app.include_router(accounts_router.build_router(role))
app.include_router(dashboard_router.router)
