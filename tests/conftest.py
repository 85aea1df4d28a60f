"""Shared test fixtures."""
import asyncio
import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway database before any app module builds its engine
_TEST_DIR = Path(tempfile.mkdtemp(prefix="branch-appointments-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR / 'app.db'}"
os.environ["SMTP_HOST"] = ""
os.environ["BRANCH_TIMEZONE"] = "UTC"

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from app.core.db import build_engine, build_session_maker, engine as app_engine, init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.catalog import Branch, Topic  # noqa: E402
from app.services.catalog_service import Catalog, default_catalog  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def catalog() -> Catalog:
    """B1 supports T1 and T2; B2 supports T2 and T3."""
    return Catalog(
        topics=[
            Topic(id="T1", name="Personal Loans"),
            Topic(id="T2", name="Credit Cards"),
            Topic(id="T3", name="Business Banking"),
        ],
        branches=[
            Branch(id="B1", name="Downtown", address="1 Main St", supported_topic_ids=["T1", "T2"]),
            Branch(id="B2", name="Westside", address="2 West Ave", supported_topic_ids=["T2", "T3"]),
        ],
    )


async def _reset_app_db() -> None:
    async with app_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)


@pytest.fixture
def client():
    asyncio.run(_reset_app_db())
    app.state.catalog = default_catalog()
    with TestClient(app) as c:
        yield c
