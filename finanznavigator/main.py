"""
main.py — Finanz-Navigator FastAPI application entry point.

Start with: uvicorn finanznavigator.main:app --reload --port 8000
"""
import logging
import os
import subprocess
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finanznavigator.config import settings
from finanznavigator.profile.schemas import ErrorDetail
from finanznavigator.session_store import error_response

# ---------------------------------------------------------------------------
# Logging: configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


def _run_migrations() -> None:
    package_dir = os.path.dirname(os.path.abspath(__file__))
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        cwd=package_dir,
    )
    if result.returncode != 0:
        logger.error("Alembic migration failed:\n%s", result.stderr)
        raise RuntimeError(f"Alembic migration failed: {result.stderr}")
    logger.info("Alembic: %s", result.stdout.strip() or "No pending migrations")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: leads-table migrations (unless RUN_MIGRATIONS=false), Redis session pool.
    Shutdown: close the pool, dispose the database engine.
    """
    if settings.run_migrations:
        _run_migrations()

    from finanznavigator.cache import create_redis_pool
    app.state.redis = await create_redis_pool()

    logger.info("Finanz-Navigator v%s starting up", settings.app_version)
    yield

    await app.state.redis.aclose()

    from finanznavigator.database import async_engine
    await async_engine.dispose()
    logger.info("Finanz-Navigator shut down")


app = FastAPI(
    title="Finanz-Navigator API",
    version=settings.app_version,
    description=(
        "Household financial self-assessment: five domain scores, pension, financing "
        "and income-shock deep dives, and an unlockable PDF report."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Exception handlers: everything leaves in the {"error": {...}} envelope
# ---------------------------------------------------------------------------

# Status codes this API raises or FastAPI routing produces
_HTTP_ERROR_CODES = {
    403: "FORBIDDEN",            # report still locked
    404: "NOT_FOUND",            # unknown session, unknown section, unknown route
    405: "METHOD_NOT_ALLOWED",
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Path and body validation errors, all violations at once."""
    details = [
        ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"] if loc != "body") or None,
            issue=error["msg"],
        )
        for error in exc.errors()
    ]
    return error_response(422, "VALIDATION_ERROR", "Request validation failed", details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = _HTTP_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    return error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    DEBUG=true  → exception type and message in details (dev only).
    DEBUG=false → generic message; traceback only in the server log.
    """
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=True,
    )
    details = []
    message = "An unexpected error occurred"
    if settings.debug:
        details = [ErrorDetail(issue=f"{type(exc).__name__}: {exc}")]
        message += " (debug details included)"
    return error_response(500, "INTERNAL_ERROR", message, details)


@app.get("/api/health", tags=["System"])
async def health_check() -> dict:
    return {
        "status": "ok",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


from finanznavigator.calculators.routes import router as modules_router  # noqa: E402
from finanznavigator.profile.routes import router as profile_router  # noqa: E402
from finanznavigator.report.routes import router as report_router  # noqa: E402

app.include_router(profile_router)
app.include_router(modules_router)
app.include_router(report_router)
