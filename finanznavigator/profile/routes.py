"""
Profile HTTP routes — POST /api/profile,
                      GET /api/profile/{session_id},
                      PATCH /api/profile/{session_id}/{section},
                      POST /api/profile/{session_id}/complete,
                      POST /api/profile/{session_id}/reset,
                      PUT /api/profile/{session_id}/lead

No authentication: the session id is the capability.
PII protection: lead data is never logged, only session ids.
"""
from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from finanznavigator.cache import delete_cached_profile
from finanznavigator.database import get_db
from finanznavigator.profile.schemas import INPUT_SECTIONS, Lead
from finanznavigator.profile.service import (
    capture_lead,
    finish_intake,
    new_profile,
    reset_profile,
    update_section,
)
from finanznavigator.profile.validator import validate_intake, validate_lead
from finanznavigator.scoring.engine import calculate_scores
from finanznavigator.session_store import (
    get_redis,
    load_profile,
    make_validation_error_response,
    pydantic_error_response,
    save_profile,
)

router = APIRouter(prefix="/api", tags=["profile"])
logger = logging.getLogger(__name__)


@router.post("/profile")
async def create_profile(
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Start a new wizard session."""
    profile = new_profile()
    await save_profile(redis, db, profile)
    return JSONResponse(status_code=201, content=profile.model_dump(mode="json"))


@router.get("/profile/{session_id}")
async def get_profile(
    session_id: str,
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    profile = await load_profile(redis, db, session_id)
    return JSONResponse(status_code=200, content=profile.model_dump(mode="json"))


@router.patch("/profile/{session_id}/{section}")
async def patch_section(
    session_id: str,
    section: str,
    updates: dict[str, Any] = Body(...),
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Merge answers into one input section. meta, scores, recommended_modules and
    module_results are not writable here; the lead goes through PUT .../lead.

    A finished profile is re-scored right away so scores never go stale.
    """
    if section not in INPUT_SECTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown profile section '{section}'")

    profile = await load_profile(redis, db, session_id)
    try:
        profile = update_section(profile, section, updates)
    except ValidationError as exc:
        return pydantic_error_response(exc, "Profile validation failed", prefix=section)

    if profile.meta.is_finished:
        profile = calculate_scores(profile)

    await save_profile(redis, db, profile)
    logger.info("Section updated session_id=%s section=%s", session_id, section)
    return JSONResponse(status_code=200, content=profile.model_dump(mode="json"))


@router.post("/profile/{session_id}/complete")
async def complete_intake(
    session_id: str,
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Validate the basic check, compute scores and routing, mark the profile finished."""
    profile = await load_profile(redis, db, session_id)
    try:
        validate_intake(profile)
    except ValueError as exc:
        return make_validation_error_response(str(exc), "Intake validation failed")

    profile = finish_intake(profile)
    await save_profile(redis, db, profile)
    return JSONResponse(status_code=200, content=profile.model_dump(mode="json"))


@router.post("/profile/{session_id}/reset")
async def reset_session(
    session_id: str,
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Drop the session and start over under a new session id."""
    old = await load_profile(redis, db, session_id)
    profile = reset_profile(old)
    await delete_cached_profile(redis, session_id)
    await save_profile(redis, db, profile)
    return JSONResponse(status_code=201, content=profile.model_dump(mode="json"))


@router.put("/profile/{session_id}/lead")
async def submit_lead(
    session_id: str,
    lead: Lead,
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Report unlock form. With consent and an e-mail the autosave rule fires,
    so the lead row is written in the same request.
    """
    try:
        validate_lead(lead)
    except ValueError as exc:
        return make_validation_error_response(str(exc), "Lead validation failed")

    profile = await load_profile(redis, db, session_id)
    profile = capture_lead(profile, lead)
    await save_profile(redis, db, profile)
    logger.info("Lead captured session_id=%s is_finished=%s", session_id, profile.meta.is_finished)
    return JSONResponse(status_code=200, content=profile.model_dump(mode="json"))
