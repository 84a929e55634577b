from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from library_catalog.schemas.author import AuthorResponse
from library_catalog.schemas.common import Paging, RecordId
from library_catalog.schemas.copy import CopyResponse
from library_catalog.schemas.genre import GenreResponse


# Title and year rules live in the service so that violations surface as 400s.
class BookCreate(BaseModel):
    book_title: Optional[str] = None
    isbn: Optional[str] = None
    publication_year: Optional[int] = None
    description: Optional[str] = None
    author_ids: Optional[List[RecordId]] = None
    genre_ids: Optional[List[RecordId]] = None


class BookUpdate(BaseModel):
    book_title: Optional[str] = None
    isbn: Optional[str] = None
    publication_year: Optional[int] = None
    description: Optional[str] = None
    author_ids: Optional[List[RecordId]] = None
    genre_ids: Optional[List[RecordId]] = None


class BookResponse(BaseModel):
    id: int
    book_title: str
    isbn: Optional[str]
    publication_year: Optional[int]
    description: Optional[str]
    authors: List[AuthorResponse] = []
    genres: List[GenreResponse] = []
    copy_count: int = 0
    available_copies: int = 0
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookDetailResponse(BookResponse):
    copies: List[CopyResponse] = []


class BookListResponse(BaseModel):
    data: List[BookResponse]
    paging: Paging
