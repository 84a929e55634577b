from datetime import datetime
from typing import List
from pydantic import BaseModel

from library_catalog.db.models import CopyStatus


class CopyCreate(BaseModel):
    quantity: int = 1


class CopyResponse(BaseModel):
    id: int
    copy_code: str
    book_id: int
    status: CopyStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CopyAddResponse(BaseModel):
    message: str
    copies: List[CopyResponse]


class CopySummary(BaseModel):
    total: int
    available: int
    borrowed: int


class BookCopiesResponse(BaseModel):
    book_id: int
    book_title: str
    summary: CopySummary
    copies: List[CopyResponse]
