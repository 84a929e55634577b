"""
Shared fixtures for functional tests.
Uses httpx.AsyncClient against the real FastAPI app with an in-memory SQLite DB.
"""
from uuid import uuid4

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from library_catalog.db.models import Base
from library_catalog.db import session as db_session_module
from library_catalog.main import app


# ─── DB override ────────────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite engine for functional testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(test_session_factory):
    """Provide an httpx.AsyncClient with DB overridden to use the test DB."""

    async def override_get_db():
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[db_session_module.get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Record helpers ─────────────────────────────────────────────

@pytest_asyncio.fixture
async def new_book(client: AsyncClient):
    """Return a coroutine that creates a book through the API and returns its JSON."""

    async def _create(**fields):
        payload = {"book_title": f"Book {uuid4().hex[:6]}", **fields}
        resp = await client.post("/api/v1/books", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest_asyncio.fixture
async def new_member(client: AsyncClient):
    """Return a coroutine that registers a member through the API and returns its JSON."""

    async def _create(**fields):
        suffix = uuid4().hex[:6]
        payload = {
            "member_code": f"M-{suffix}",
            "member_name": f"Member {suffix}",
            "email": f"member-{suffix}@test.com",
            **fields,
        }
        resp = await client.post("/api/v1/members", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest_asyncio.fixture
async def new_copy(client: AsyncClient, new_book):
    """Create a book with one copy and return (book, copy) JSON."""
    book = await new_book()
    resp = await client.post(f"/api/v1/books/{book['id']}/copies", json={"quantity": 1})
    assert resp.status_code == 201, resp.text
    return book, resp.json()["copies"][0]
