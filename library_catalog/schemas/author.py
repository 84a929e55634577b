from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from library_catalog.schemas.common import Paging


class AuthorCreate(BaseModel):
    name: Optional[str] = None


class AuthorResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class AuthorDetailResponse(AuthorResponse):
    created_at: datetime


class AuthorListResponse(BaseModel):
    data: List[AuthorDetailResponse]
    paging: Paging
