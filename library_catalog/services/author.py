from typing import Optional, List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from library_catalog.core.exceptions import ValidationError
from library_catalog.core.logging import get_logger
from library_catalog.db.models import Author
from library_catalog.services.common import flush_or_conflict

logger = get_logger("services.author")


async def create_author(db: AsyncSession, name: Optional[str]) -> Author:
    """Create a new author."""
    if name is None or not name.strip():
        raise ValidationError("Author name is required")

    author = Author(name=name.strip())
    db.add(author)
    await flush_or_conflict(db, "Author could not be created")
    await db.refresh(author)

    logger.info(f"Author created: id={author.id} name='{author.name}'")
    return author


async def get_authors(
    db: AsyncSession,
    page: int = 1,
    size: int = 10,
    search: Optional[str] = None,
) -> Tuple[List[Author], int]:
    """List authors by name."""
    query = select(Author)
    count_query = select(func.count()).select_from(Author)

    if search:
        search_filter = Author.name.icontains(search, autoescape=True)
        query = query.where(search_filter)
        count_query = count_query.where(search_filter)

    query = query.order_by(Author.name.asc(), Author.id.asc())
    query = query.offset((page - 1) * size).limit(size)

    result = await db.execute(query)
    authors = list(result.scalars().all())

    total_result = await db.execute(count_query)
    total = total_result.scalar()

    return authors, total
