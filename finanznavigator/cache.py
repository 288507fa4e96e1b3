"""
cache.py — Redis session cache for Finanz-Navigator.

Namespace conventions:
  session:{session_id}   → Profile JSON   TTL 24h (86400s)

Design:
  - Uses redis.asyncio (async client, part of redis-py 5.x)
  - Pool created once in lifespan, stored on app.state.redis
  - Helper functions take the client as a param — no module-level global state
  - Logs only session_id (not profile values) — no PII in logs
"""
import logging
from typing import Optional

import redis.asyncio as aioredis

from finanznavigator.config import settings
from finanznavigator.profile.schemas import Profile

logger = logging.getLogger(__name__)

SESSION_TTL: int = settings.session_ttl_seconds
SESSION_PREFIX = "session"


def make_session_key(session_id: str) -> str:
    """Build Redis key for a session profile: session:{session_id}"""
    return f"{SESSION_PREFIX}:{session_id}"


async def create_redis_pool() -> aioredis.Redis:
    """
    Create and return an async Redis connection pool.
    Called once in FastAPI lifespan startup — stored on app.state.redis.
    Verifies connectivity with PING before returning.
    """
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    await client.ping()
    logger.info("Redis connection pool established at %s", settings.redis_url)
    return client


async def get_cached_profile(client: aioredis.Redis, session_id: str) -> Optional[Profile]:
    """Return the cached Profile, or None if the session expired or never existed."""
    raw = await client.get(make_session_key(session_id))
    if raw is None:
        return None
    return Profile.model_validate_json(raw)


async def set_cached_profile(client: aioredis.Redis, profile: Profile) -> None:
    """
    Store the Profile with TTL 24h. Overwrites and resets the TTL on every write.
    Durable persistence is the caller's job (store.upsert_lead).
    """
    session_id = profile.meta.session_id
    await client.setex(make_session_key(session_id), SESSION_TTL, profile.model_dump_json())
    logger.debug("Session cached session_id=%s ttl=%ds", session_id, SESSION_TTL)


async def delete_cached_profile(client: aioredis.Redis, session_id: str) -> None:
    await client.delete(make_session_key(session_id))
    logger.info("Session evicted session_id=%s", session_id)
