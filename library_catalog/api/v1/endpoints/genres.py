from fastapi import APIRouter, status

from library_catalog.api.v1.dependencies import DbSession
from library_catalog.api.v1.errors import service_errors
from library_catalog.schemas.genre import GenreCreate, GenreResponse, GenreListResponse
from library_catalog.services.genre import create_genre, get_genres

router = APIRouter(prefix="/genres", tags=["Genres"])


@router.get("", response_model=GenreListResponse, summary="List genres")
async def list_genres(db: DbSession):
    """List every genre."""
    return GenreListResponse(data=await get_genres(db))


@router.post(
    "",
    response_model=GenreResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a genre",
    responses={
        400: {"description": "Missing name"},
        409: {"description": "Genre already exists"},
    },
)
async def create_genre_endpoint(data: GenreCreate, db: DbSession):
    """Create a genre."""
    with service_errors():
        return await create_genre(db, data.name)
