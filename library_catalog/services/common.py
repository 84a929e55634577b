import math

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from library_catalog.core.exceptions import ConflictError, InternalError
from library_catalog.core.logging import get_logger

logger = get_logger("services.common")


async def flush_or_conflict(db: AsyncSession, conflict_message: str) -> None:
    """Flush pending writes, mapping store-level integrity violations to ConflictError."""
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.warning(f"Integrity violation on flush: {exc.orig}")
        raise ConflictError(conflict_message) from exc
    except DBAPIError as exc:
        logger.error(f"Store failure on flush: {exc.orig}", exc_info=True)
        raise InternalError() from exc


def calculate_pages(total: int, size: int) -> int:
    return math.ceil(total / size) if size > 0 else 0
