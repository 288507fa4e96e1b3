"""
session_store.py — request-scoped profile loading and saving shared by all routers.

Lookup order: Redis session cache first, durable leads row as fallback.
Every save refreshes the cache; the leads row is upserted only when the
autosave rule (profile.service.should_persist) says so.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

import redis.asyncio as aioredis
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from finanznavigator.cache import get_cached_profile, set_cached_profile
from finanznavigator.profile.schemas import ErrorBody, ErrorDetail, ErrorResponse, Profile
from finanznavigator.profile.service import should_persist
from finanznavigator.store import get_lead_profile, upsert_lead

logger = logging.getLogger(__name__)


def get_redis(request: Request) -> aioredis.Redis:
    """FastAPI dependency — the pool created in the lifespan."""
    return request.app.state.redis


async def load_profile(redis: aioredis.Redis, db: AsyncSession, session_id: str) -> Profile:
    """Raises HTTPException(404) when neither the cache nor the leads table knows the session."""
    profile = await get_cached_profile(redis, session_id)
    if profile is not None:
        return profile

    profile = await get_lead_profile(db, session_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")

    logger.info("Session restored from leads table session_id=%s", session_id)
    await set_cached_profile(redis, profile)
    return profile


async def save_profile(redis: aioredis.Redis, db: AsyncSession, profile: Profile) -> None:
    await set_cached_profile(redis, profile)
    if should_persist(profile):
        await upsert_lead(db, profile)

# ---------------------------------------------------------------------------
# Error envelope helpers
# ---------------------------------------------------------------------------

def error_response(
    status_code: int, code: str, message: str, details: Optional[list[ErrorDetail]] = None
) -> JSONResponse:
    """Every error the API returns goes through this {"error": {...}} envelope."""
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details or []))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def make_validation_error_response(violations_json: str, message: str) -> JSONResponse:
    """Parse JSON-encoded business-rule violations and return the standard 422 envelope."""
    try:
        violations: list[dict] = json.loads(violations_json)
    except (json.JSONDecodeError, ValueError):
        violations = [{"field": None, "issue": violations_json}]
    details = [ErrorDetail(field=v.get("field"), issue=v["issue"]) for v in violations]
    return error_response(422, "VALIDATION_ERROR", message, details)


def pydantic_error_response(exc: ValidationError, message: str, prefix: str = "") -> JSONResponse:
    """Same envelope for structural errors raised while merging a payload into a model."""
    details = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        if prefix:
            field = f"{prefix}.{field}" if field else prefix
        details.append(ErrorDetail(field=field or None, issue=error["msg"]))
    return error_response(422, "VALIDATION_ERROR", message, details)
