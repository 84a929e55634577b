"""
Shared fixtures for unit tests.
Uses an in-memory SQLite database for fast isolated testing.
"""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from library_catalog.db.models import (
    Base, Author, Genre, Book, Copy, CopyStatus, Member, Borrowing,
)


@pytest_asyncio.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
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
async def db_session(async_engine) -> AsyncSession:
    """Provide a transactional database session for each test."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


# ─── Helper factories ───────────────────────────────────────────


@pytest.fixture
def make_author():
    """Factory fixture to create Author instances."""
    def _make(name: str = "Test Author") -> Author:
        return Author(name=name)
    return _make


@pytest.fixture
def make_genre():
    """Factory fixture to create Genre instances."""
    def _make(name: str = None) -> Genre:
        return Genre(name=name or f"Genre {uuid4().hex[:6]}")
    return _make


@pytest.fixture
def make_book():
    """Factory fixture to create Book instances."""
    def _make(
        book_title: str = "Test Book",
        isbn: str = None,
        publication_year: int = 2020,
        description: str = "A test book",
        id: int = None,
        deleted_at: datetime = None,
    ) -> Book:
        return Book(
            id=id,
            book_title=book_title,
            isbn=isbn,
            publication_year=publication_year,
            description=description,
            deleted_at=deleted_at,
        )
    return _make


@pytest.fixture
def make_copy():
    """Factory fixture to create Copy instances."""
    def _make(
        book_id: int,
        copy_code: str = None,
        status: CopyStatus = CopyStatus.AVAILABLE,
        deleted_at: datetime = None,
    ) -> Copy:
        return Copy(
            book_id=book_id,
            copy_code=copy_code or f"TEST-{uuid4().hex[:10]}",
            status=status,
            deleted_at=deleted_at,
        )
    return _make


@pytest.fixture
def make_member():
    """Factory fixture to create Member instances."""
    def _make(
        member_code: str = None,
        member_name: str = "Test Member",
        email: str = None,
        phone: str = "555-0100",
        address: str = "1 Test Street",
        deleted_at: datetime = None,
    ) -> Member:
        suffix = uuid4().hex[:8]
        return Member(
            member_code=member_code or f"M-{suffix}",
            member_name=member_name,
            email=email or f"member-{suffix}@test.com",
            phone=phone,
            address=address,
            deleted_at=deleted_at,
        )
    return _make


@pytest.fixture
def make_borrowing():
    """Factory fixture to create Borrowing instances."""
    def _make(
        copy_id: int,
        member_id: int,
        borrowed_at: datetime = None,
        due_date: datetime = None,
        returned_at: datetime = None,
    ) -> Borrowing:
        now = datetime.now(timezone.utc)
        return Borrowing(
            copy_id=copy_id,
            member_id=member_id,
            borrowed_at=borrowed_at or now,
            due_date=due_date or now + timedelta(days=14),
            returned_at=returned_at,
        )
    return _make


@pytest_asyncio.fixture
async def borrowed_copy(db_session, make_book, make_copy, make_member, make_borrowing):
    """A book with one copy that is out on an unreturned borrowing."""
    book = make_book(book_title="On Loan")
    member = make_member()
    db_session.add_all([book, member])
    await db_session.flush()

    copy = make_copy(book_id=book.id, status=CopyStatus.BORROWED)
    db_session.add(copy)
    await db_session.flush()

    borrowing = make_borrowing(copy_id=copy.id, member_id=member.id)
    db_session.add(borrowing)
    await db_session.flush()

    return {"book": book, "copy": copy, "member": member, "borrowing": borrowing}
