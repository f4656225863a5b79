import asyncio
import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Settings are read at import time, so they must be in place before the
# first courtside import. An externally provided DATABASE_URL (e.g. a CI
# Postgres) wins over the in-memory default.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3030")
os.environ.setdefault("ALLOW_CREDENTIALS", "false")
os.environ.setdefault("DISABLE_RATE_LIMITS", "true")

from courtside import db, models  # noqa: E402,F401  # models registers the match table
from courtside.cache import match_view_cache  # noqa: E402


@pytest.fixture(scope="session")
def session_loop():
    """Event loop for sync fixtures that need to run async DB code."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True, scope="session")
def database(session_loop):
    """Start from a fresh engine and dispose of it once the run is over."""

    url = os.environ["DATABASE_URL"]
    if url.startswith("sqlite") and ":memory:" not in url:
        path = url.split("///")[-1]
        if os.path.exists(path):
            os.remove(path)

    db.engine = None
    db.AsyncSessionLocal = None
    yield db.get_engine()
    if db.engine is not None:
        session_loop.run_until_complete(db.engine.dispose())
    db.engine = None
    db.AsyncSessionLocal = None


async def _recreate_tables(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(db.Base.metadata.drop_all)
        await conn.run_sync(db.Base.metadata.create_all)


@pytest.fixture(autouse=True)
def clean_state(database, session_loop):
    """Empty match table and viewer cache for every test."""

    session_loop.run_until_complete(_recreate_tables(database))
    session_loop.run_until_complete(match_view_cache.clear())
    yield
