"""
store.py — Data access facade for Finanz-Navigator.

All routes use these functions; nothing else touches SQLAlchemy directly.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM-only queries
  - Logs only session_id — never names, e-mail addresses or amounts
  - Returns domain Pydantic objects (not ORM instances)
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finanznavigator.models.lead import LeadORM
from finanznavigator.profile.schemas import Profile
from finanznavigator.profile.service import to_persistence_row

logger = logging.getLogger(__name__)


async def upsert_lead(db: AsyncSession, profile: Profile) -> None:
    """
    Insert or update the leads row for profile.meta.session_id.
    Uses flush() (not commit()) — the get_db() dependency handles commit.
    """
    row = to_persistence_row(profile)
    existing = await db.execute(
        select(LeadORM).where(LeadORM.session_id == profile.meta.session_id)
    )
    orm = existing.scalar_one_or_none()

    if orm is None:
        orm = LeadORM(**row)
        db.add(orm)
        action = "inserted"
    else:
        for column, value in row.items():
            if column in ("session_id", "created_at"):
                continue
            setattr(orm, column, value)
        action = "updated"

    await db.flush()
    logger.info(
        "Lead row %s session_id=%s is_finished=%s",
        action,
        profile.meta.session_id,
        profile.meta.is_finished,
    )


async def get_lead_profile(db: AsyncSession, session_id: str) -> Optional[Profile]:
    """
    Restore a Profile from its persisted leads row.
    Returns None if the session was never persisted (caller raises 404).
    """
    result = await db.execute(
        select(LeadORM).where(LeadORM.session_id == session_id)
    )
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return Profile.model_validate(orm.profile_data)
