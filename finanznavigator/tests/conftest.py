"""
Test configuration for Finanz-Navigator tests.

sys.path is configured so 'from finanznavigator...' resolves when pytest is run
from the project root or from inside the package.

External services are replaced by in-test doubles:
  - Redis      → FakeRedis (dict-backed get / setex / delete)
  - PostgreSQL → get_db overridden with a MagicMock session; store functions
                 patched with AsyncMock where a test needs them
"""
import sys
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

_package_dir = Path(__file__).parent.parent        # .../finanznavigator/
_project_root = _package_dir.parent

if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))


class FakeRedis:
    """The three redis.asyncio calls cache.py makes, backed by a dict."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key: str) -> None:
        self.store.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store_mocks():
    """Patch durable persistence: no lead rows exist, upserts are recorded."""
    with patch(
        "finanznavigator.session_store.upsert_lead", new_callable=AsyncMock
    ) as upsert, patch(
        "finanznavigator.session_store.get_lead_profile", new_callable=AsyncMock, return_value=None
    ) as get_lead:
        yield {"upsert_lead": upsert, "get_lead_profile": get_lead}


@pytest_asyncio.fixture
async def client(fake_redis: FakeRedis, store_mocks):
    """Async httpx client using ASGI transport — no live server, Redis or database needed."""
    from httpx import ASGITransport, AsyncClient

    from finanznavigator.database import get_db
    from finanznavigator.main import app
    from finanznavigator.session_store import get_redis

    async def _fake_db():
        yield MagicMock()

    app.dependency_overrides[get_db] = _fake_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
