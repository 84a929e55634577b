from typing import Optional, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from library_catalog.core.exceptions import ValidationError, ConflictError
from library_catalog.core.logging import get_logger
from library_catalog.db.models import Genre
from library_catalog.services.common import flush_or_conflict

logger = get_logger("services.genre")

DUPLICATE_GENRE_MESSAGE = "A genre with this name already exists"


async def create_genre(db: AsyncSession, name: Optional[str]) -> Genre:
    """Create a new genre. Names are unique, compared case-insensitively."""
    if name is None or not name.strip():
        raise ValidationError("Genre name is required")
    name = name.strip()

    result = await db.execute(
        select(Genre.id).where(func.lower(Genre.name) == name.lower()).limit(1)
    )
    if result.first() is not None:
        raise ConflictError(DUPLICATE_GENRE_MESSAGE)

    genre = Genre(name=name)
    db.add(genre)
    await flush_or_conflict(db, DUPLICATE_GENRE_MESSAGE)
    await db.refresh(genre)

    logger.info(f"Genre created: id={genre.id} name='{genre.name}'")
    return genre


async def get_genres(db: AsyncSession) -> List[Genre]:
    """List every genre by name."""
    result = await db.execute(select(Genre).order_by(Genre.name.asc()))
    return list(result.scalars().all())
