from datetime import datetime, timedelta
from typing import Optional, List, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_catalog.core.config import settings
from library_catalog.core.exceptions import ValidationError, NotFoundError, ConflictError
from library_catalog.core.logging import get_logger
from library_catalog.db.models import Book, Borrowing, Copy, CopyStatus, Member, as_utc, utcnow
from library_catalog.services.book import get_active_book
from library_catalog.services.common import flush_or_conflict
from library_catalog.services.copy import get_copy_by_id
from library_catalog.services.member import get_member_by_id

logger = get_logger("services.borrowing")


async def borrow_copy(
    db: AsyncSession,
    copy_id: int,
    member_id: int,
    due_date: Optional[datetime] = None,
) -> Borrowing:
    """Check a copy out to a member and mark the copy Borrowed."""
    copy = await get_copy_by_id(db, copy_id)
    if not copy or not await get_active_book(db, copy.book_id):
        raise NotFoundError("Copy not found")
    if not await get_member_by_id(db, member_id):
        raise NotFoundError("Member not found")

    now = utcnow()
    if due_date is None:
        due_date = now + timedelta(days=settings.DEFAULT_LOAN_DAYS)
    elif as_utc(due_date) <= now:
        raise ValidationError("Due date must be in the future")

    # Conditional flip so two borrowers cannot both take the same copy
    result = await db.execute(
        update(Copy)
        .where(Copy.id == copy_id, Copy.status == CopyStatus.AVAILABLE)
        .values(status=CopyStatus.BORROWED, updated_at=now)
    )
    if result.rowcount == 0:
        raise ConflictError("Copy is not available")

    borrowing = Borrowing(
        copy_id=copy_id,
        member_id=member_id,
        borrowed_at=now,
        due_date=due_date,
    )
    db.add(borrowing)
    await flush_or_conflict(db, "Copy could not be borrowed")
    await db.refresh(borrowing)

    logger.info(
        f"Copy borrowed: borrowing={borrowing.id} copy={copy_id} member={member_id} "
        f"due={borrowing.due_date.isoformat()}"
    )
    return borrowing


async def get_borrowing_by_id(db: AsyncSession, borrowing_id: int) -> Optional[Borrowing]:
    """Get a single borrowing by ID."""
    result = await db.execute(select(Borrowing).where(Borrowing.id == borrowing_id))
    return result.scalar_one_or_none()


async def return_borrowing(db: AsyncSession, borrowing_id: int) -> Borrowing:
    """Record the return of a borrowed copy and make the copy Available again."""
    borrowing = await get_borrowing_by_id(db, borrowing_id)
    if not borrowing:
        raise NotFoundError("Borrowing not found")
    if borrowing.returned_at is not None:
        raise ConflictError("Borrowing already returned")

    now = utcnow()
    borrowing.returned_at = now
    borrowing.updated_at = now
    await db.execute(
        update(Copy)
        .where(Copy.id == borrowing.copy_id)
        .values(status=CopyStatus.AVAILABLE, updated_at=now)
    )
    await flush_or_conflict(db, "Borrowing could not be returned")
    await db.refresh(borrowing)

    logger.info(f"Copy returned: borrowing={borrowing_id} copy={borrowing.copy_id}")
    return borrowing


async def get_copy_history(
    db: AsyncSession, copy_id: int
) -> Tuple[Copy, Optional[str], List[Tuple[Borrowing, str]]]:
    """Borrowings of one copy, most recent first, each paired with the member name.

    The book title is looked up even if the book has been soft-deleted.
    """
    copy = await get_copy_by_id(db, copy_id)
    if not copy:
        raise NotFoundError("Copy not found")

    title_result = await db.execute(select(Book.book_title).where(Book.id == copy.book_id))
    book_title = title_result.scalar_one_or_none()

    result = await db.execute(
        select(Borrowing, Member.member_name)
        .join(Member, Member.id == Borrowing.member_id)
        .where(Borrowing.copy_id == copy_id)
        .order_by(Borrowing.borrowed_at.desc(), Borrowing.id.desc())
    )
    entries = [(row[0], row[1]) for row in result.all()]

    return copy, book_title, entries
