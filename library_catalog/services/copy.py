from typing import Optional, List, Tuple, Dict

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_catalog.core.config import settings
from library_catalog.core.exceptions import ValidationError, NotFoundError
from library_catalog.core.logging import get_logger
from library_catalog.db.models import Book, Copy, CopyStatus
from library_catalog.services.book import get_active_book
from library_catalog.services.common import flush_or_conflict

logger = get_logger("services.copy")


def format_copy_code(book_id: int, sequence: int) -> str:
    return f"BOOK-{book_id:03d}-{sequence:03d}"


async def _reserve_sequence(db: AsyncSession, book_id: int, quantity: int) -> Optional[int]:
    """Bump the book's copy counter and return its new value.

    The UPDATE locks the book row until the transaction ends, so concurrent
    callers for the same book get disjoint ranges.
    """
    result = await db.execute(
        update(Book)
        .where(Book.id == book_id, Book.deleted_at.is_(None))
        .values(copy_sequence=Book.copy_sequence + quantity)
        .returning(Book.copy_sequence)
    )
    return result.scalar_one_or_none()


async def add_copies(db: AsyncSession, book_id: int, quantity: int = 1) -> List[Copy]:
    """Create ``quantity`` available copies continuing the book's code sequence."""
    max_quantity = settings.MAX_COPIES_PER_REQUEST
    if quantity < 1 or quantity > max_quantity:
        raise ValidationError(f"Quantity must be between 1 and {max_quantity}")

    last_sequence = await _reserve_sequence(db, book_id, quantity)
    if last_sequence is None:
        raise NotFoundError("Book not found")

    first_sequence = last_sequence - quantity + 1
    copies = [
        Copy(
            copy_code=format_copy_code(book_id, sequence),
            book_id=book_id,
            status=CopyStatus.AVAILABLE,
        )
        for sequence in range(first_sequence, last_sequence + 1)
    ]
    db.add_all(copies)
    await flush_or_conflict(db, "Copy code already exists")

    logger.info(
        f"Copies added: book={book_id} quantity={quantity} "
        f"codes={copies[0].copy_code}..{copies[-1].copy_code}"
    )
    return copies


def summarize_copies(copies: List[Copy]) -> Dict[str, int]:
    available = sum(1 for c in copies if c.status == CopyStatus.AVAILABLE)
    borrowed = sum(1 for c in copies if c.status == CopyStatus.BORROWED)
    return {"total": len(copies), "available": available, "borrowed": borrowed}


async def get_book_copies(db: AsyncSession, book_id: int) -> Tuple[Book, List[Copy]]:
    """Return a non-deleted book and its non-deleted copies."""
    book = await get_active_book(db, book_id)
    if not book:
        raise NotFoundError("Book not found")

    result = await db.execute(
        select(Copy)
        .where(Copy.book_id == book_id, Copy.deleted_at.is_(None))
        .order_by(Copy.id.asc())
    )
    return book, list(result.scalars().all())


async def get_copy_by_id(db: AsyncSession, copy_id: int) -> Optional[Copy]:
    """Get a single non-deleted copy by ID."""
    result = await db.execute(
        select(Copy).where(Copy.id == copy_id, Copy.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()
