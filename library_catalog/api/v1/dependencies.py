from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from library_catalog.core.config import settings
from library_catalog.db.session import get_db
from library_catalog.schemas.common import MAX_DB_INT

DbSession = Annotated[AsyncSession, Depends(get_db)]

# Record ids in the URL; larger values cannot exist in an INTEGER column
RecordIdPath = Annotated[int, Path(ge=1, le=MAX_DB_INT)]


@dataclass
class PageParams:
    page: int
    size: int


def get_page_params(
    page: int = Query(1, ge=1, le=MAX_DB_INT),
    page_size: Optional[int] = Query(
        None, ge=1, le=settings.MAX_PAGE_SIZE, alias="pageSize"
    ),
    limit: Optional[int] = Query(
        None, ge=1, le=settings.MAX_PAGE_SIZE,
        description="Older name for `pageSize`; ignored when `pageSize` is given.",
    ),
) -> PageParams:
    """Shared ``page``/``pageSize`` query parameters."""
    size = page_size or limit or settings.DEFAULT_PAGE_SIZE
    return PageParams(page=page, size=size)


Pagination = Annotated[PageParams, Depends(get_page_params)]
