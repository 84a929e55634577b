from fastapi import APIRouter, status

from library_catalog.api.v1.dependencies import DbSession, Pagination
from library_catalog.api.v1.errors import service_errors
from library_catalog.schemas.author import AuthorCreate, AuthorDetailResponse, AuthorListResponse
from library_catalog.schemas.common import Paging
from library_catalog.services.author import create_author, get_authors
from library_catalog.services.common import calculate_pages

router = APIRouter(prefix="/authors", tags=["Authors"])


@router.get("", response_model=AuthorListResponse, summary="List authors")
async def list_authors(db: DbSession, paging: Pagination, search: str | None = None):
    """List authors by name."""
    authors, total = await get_authors(db, page=paging.page, size=paging.size, search=search)
    return AuthorListResponse(
        data=authors,
        paging=Paging(
            page=paging.page, page_size=paging.size, total=total,
            pages=calculate_pages(total, paging.size),
        ),
    )


@router.post(
    "",
    response_model=AuthorDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an author",
    responses={400: {"description": "Missing name"}},
)
async def create_author_endpoint(data: AuthorCreate, db: DbSession):
    """Create an author."""
    with service_errors():
        return await create_author(db, data.name)
