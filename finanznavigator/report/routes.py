"""
Report HTTP routes — GET /api/report/{session_id},
                     GET /api/export/{session_id}

Both answer 403 until the report is unlocked (intake finished, lead name and e-mail given).
"""
from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from finanznavigator.database import get_db
from finanznavigator.profile.schemas import Profile
from finanznavigator.report.pdf_generator import generate_financial_report
from finanznavigator.scoring.report import build_report, is_unlocked
from finanznavigator.session_store import get_redis, load_profile

router = APIRouter(prefix="/api", tags=["report"])
logger = logging.getLogger(__name__)


def _require_unlocked(profile: Profile) -> None:
    if not is_unlocked(profile):
        raise HTTPException(
            status_code=403,
            detail="Report is locked. Finish the basic check and submit the lead form first.",
        )


@router.get("/report/{session_id}")
async def get_report(
    session_id: str,
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    profile = await load_profile(redis, db, session_id)
    _require_unlocked(profile)

    report = build_report(profile)
    logger.info(
        "Report returned session_id=%s recommendations=%d",
        session_id,
        len(report.recommendations),
    )
    return JSONResponse(status_code=200, content=report.model_dump(mode="json"))


@router.get("/export/{session_id}")
async def export_pdf(
    session_id: str,
    redis: aioredis.Redis = Depends(get_redis),
    db: AsyncSession = Depends(get_db),
) -> StreamingResponse:
    """Generate and download the formatted PDF report."""
    profile = await load_profile(redis, db, session_id)
    _require_unlocked(profile)

    buffer = generate_financial_report(profile, build_report(profile))
    filename = f"finanznavigator_report_{session_id[:8]}.pdf"
    logger.info("PDF exported session_id=%s filename=%s", session_id, filename)

    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
