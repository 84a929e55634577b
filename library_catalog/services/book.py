from typing import Optional, List, Tuple

from sqlalchemy import select, func, case, delete, insert, Table
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import with_expression

from library_catalog.core.exceptions import ValidationError, NotFoundError, ConflictError
from library_catalog.core.logging import get_logger
from library_catalog.db.models import (
    Author,
    Book,
    Borrowing,
    Copy,
    CopyStatus,
    Genre,
    book_authors,
    book_genres,
    utcnow,
)
from library_catalog.services.common import flush_or_conflict

logger = get_logger("services.book")

MIN_PUBLICATION_YEAR = 1000
DUPLICATE_ISBN_MESSAGE = "A book with this ISBN already exists"


# ─── Query building ─────────────────────────────────────────────


def _copy_stats():
    """Per-book counts over non-deleted copies."""
    return (
        select(
            Copy.book_id.label("book_id"),
            func.count(Copy.id).label("copy_count"),
            func.count(case((Copy.status == CopyStatus.AVAILABLE, Copy.id))).label(
                "available_copies"
            ),
        )
        .where(Copy.deleted_at.is_(None))
        .group_by(Copy.book_id)
        .subquery("copy_stats")
    )


def _select_books_with_details():
    stats = _copy_stats()
    return (
        select(Book)
        .outerjoin(stats, stats.c.book_id == Book.id)
        .options(
            with_expression(Book.copy_count, func.coalesce(stats.c.copy_count, 0)),
            with_expression(
                Book.available_copies, func.coalesce(stats.c.available_copies, 0)
            ),
        )
        .execution_options(populate_existing=True)
    )


def _linked_name_contains(link_table: Table, link_column, target, value: str):
    """EXISTS over a join table: any linked name containing ``value``."""
    return (
        select(link_table.c.book_id)
        .join(target, target.id == link_column)
        .where(
            link_table.c.book_id == Book.id,
            target.name.icontains(value, autoescape=True),
        )
        .exists()
    )


def build_book_filters(
    title: Optional[str] = None,
    author: Optional[str] = None,
    isbn: Optional[str] = None,
    genre: Optional[str] = None,
    year: Optional[int] = None,
) -> list:
    """Return the AND-ed predicates for a catalog search. Deleted books never match."""
    conditions = [Book.deleted_at.is_(None)]

    if title:
        conditions.append(Book.book_title.icontains(title, autoescape=True))
    if author:
        conditions.append(
            _linked_name_contains(book_authors, book_authors.c.author_id, Author, author)
        )
    if isbn:
        conditions.append(Book.isbn.icontains(isbn, autoescape=True))
    if genre:
        conditions.append(
            _linked_name_contains(book_genres, book_genres.c.genre_id, Genre, genre)
        )
    if year is not None:
        conditions.append(Book.publication_year == year)

    return conditions


async def get_books(
    db: AsyncSession,
    page: int = 1,
    size: int = 10,
    title: Optional[str] = None,
    author: Optional[str] = None,
    isbn: Optional[str] = None,
    genre: Optional[str] = None,
    year: Optional[int] = None,
) -> Tuple[List[Book], int]:
    """List non-deleted books matching the filters, ordered by title.

    The total comes from a separate COUNT over the same predicates so that
    joined rows never inflate it.
    """
    conditions = build_book_filters(
        title=title, author=author, isbn=isbn, genre=genre, year=year
    )

    query = (
        _select_books_with_details()
        .where(*conditions)
        .order_by(Book.book_title.asc(), Book.id.asc())
        .offset((page - 1) * size)
        .limit(size)
    )
    count_query = select(func.count()).select_from(Book).where(*conditions)

    result = await db.execute(query)
    books = list(result.scalars().all())

    total_result = await db.execute(count_query)
    total = total_result.scalar()

    return books, total


async def get_book_details(db: AsyncSession, book_id: int) -> Optional[Book]:
    """Get a non-deleted book with authors, genres and copy counts."""
    result = await db.execute(
        _select_books_with_details().where(Book.id == book_id, Book.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def get_active_book(db: AsyncSession, book_id: int) -> Optional[Book]:
    """Get a non-deleted book without enrichment."""
    result = await db.execute(
        select(Book).where(Book.id == book_id, Book.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


# ─── Validation helpers ─────────────────────────────────────────


def _validate_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("Book title is required")
    return title.strip()


def _validate_year(year: Optional[int]) -> Optional[int]:
    if year is None:
        return None
    current_year = utcnow().year
    if year < MIN_PUBLICATION_YEAR or year > current_year:
        raise ValidationError(
            f"Publication year must be between {MIN_PUBLICATION_YEAR} and {current_year}"
        )
    return year


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


async def _ensure_isbn_available(
    db: AsyncSession, isbn: str, exclude_id: Optional[int] = None
) -> None:
    query = select(Book.id).where(Book.isbn == isbn, Book.deleted_at.is_(None))
    if exclude_id is not None:
        query = query.where(Book.id != exclude_id)
    result = await db.execute(query.limit(1))
    if result.first() is not None:
        raise ConflictError(DUPLICATE_ISBN_MESSAGE)


async def _resolve_ids(db: AsyncSession, model, ids: List[int], label: str) -> List[int]:
    """De-duplicate ``ids`` and check that every one of them exists."""
    unique_ids = list(dict.fromkeys(ids))
    if not unique_ids:
        return []

    result = await db.execute(select(model.id).where(model.id.in_(unique_ids)))
    found = set(result.scalars().all())
    missing = [i for i in unique_ids if i not in found]
    if missing:
        raise ValidationError(f"Unknown {label} ids: {missing}")
    return unique_ids


async def _replace_links(
    db: AsyncSession, link_table: Table, column: str, book_id: int, ids: List[int]
) -> None:
    await db.execute(delete(link_table).where(link_table.c.book_id == book_id))
    if ids:
        await db.execute(
            insert(link_table), [{"book_id": book_id, column: target_id} for target_id in ids]
        )


# ─── Mutations ──────────────────────────────────────────────────


async def create_book(db: AsyncSession, data: dict) -> Book:
    """Create a book and its author/genre links."""
    title = _validate_title(data.get("book_title"))
    year = _validate_year(data.get("publication_year"))
    isbn = _blank_to_none(data.get("isbn"))
    if isbn:
        await _ensure_isbn_available(db, isbn)

    author_ids = await _resolve_ids(db, Author, data.get("author_ids") or [], "author")
    genre_ids = await _resolve_ids(db, Genre, data.get("genre_ids") or [], "genre")

    book = Book(
        book_title=title,
        isbn=isbn,
        publication_year=year,
        description=_blank_to_none(data.get("description")),
    )
    db.add(book)
    await flush_or_conflict(db, DUPLICATE_ISBN_MESSAGE)

    if author_ids:
        await _replace_links(db, book_authors, "author_id", book.id, author_ids)
    if genre_ids:
        await _replace_links(db, book_genres, "genre_id", book.id, genre_ids)

    logger.info(f"Book created: id={book.id} title='{book.book_title}'")
    return await get_book_details(db, book.id)


async def update_book(db: AsyncSession, book_id: int, data: dict) -> Optional[Book]:
    """Apply a partial update. Returns None when the book is missing or deleted.

    ``author_ids``/``genre_ids`` given as a list replace every existing link;
    an empty list clears them. Absent or null leaves links untouched.
    """
    if not data:
        raise ValidationError("At least one field must be provided")

    book = await get_active_book(db, book_id)
    if not book:
        return None

    changes = {}
    if "book_title" in data:
        changes["book_title"] = _validate_title(data["book_title"])
    if "publication_year" in data:
        changes["publication_year"] = _validate_year(data["publication_year"])
    if "isbn" in data:
        isbn = _blank_to_none(data["isbn"])
        if isbn:
            await _ensure_isbn_available(db, isbn, exclude_id=book_id)
        changes["isbn"] = isbn
    if "description" in data:
        changes["description"] = _blank_to_none(data["description"])

    author_ids = data.get("author_ids")
    if author_ids is not None:
        author_ids = await _resolve_ids(db, Author, author_ids, "author")
    genre_ids = data.get("genre_ids")
    if genre_ids is not None:
        genre_ids = await _resolve_ids(db, Genre, genre_ids, "genre")

    for key, value in changes.items():
        setattr(book, key, value)
    book.updated_at = utcnow()
    await flush_or_conflict(db, DUPLICATE_ISBN_MESSAGE)

    if author_ids is not None:
        await _replace_links(db, book_authors, "author_id", book_id, author_ids)
    if genre_ids is not None:
        await _replace_links(db, book_genres, "genre_id", book_id, genre_ids)

    logger.info(f"Book updated: id={book_id} fields={sorted(data)}")
    return await get_book_details(db, book_id)


async def has_active_borrowings(db: AsyncSession, book_id: int) -> bool:
    """True if any copy of the book has a borrowing that was never returned."""
    result = await db.execute(
        select(Borrowing.id)
        .join(Copy, Copy.id == Borrowing.copy_id)
        .where(Copy.book_id == book_id, Borrowing.returned_at.is_(None))
        .limit(1)
    )
    return result.first() is not None


async def delete_book(db: AsyncSession, book_id: int) -> None:
    """Soft-delete a book. Copies and borrowing history are kept."""
    book = await get_active_book(db, book_id)
    if not book:
        raise NotFoundError("Book not found")

    if await has_active_borrowings(db, book_id):
        logger.warning(f"Book delete blocked by active borrows: id={book_id}")
        raise ConflictError("Cannot delete book with active borrows")

    now = utcnow()
    book.deleted_at = now
    book.updated_at = now
    await flush_or_conflict(db, "Book could not be deleted")

    logger.info(f"Book deleted: id={book_id}")
