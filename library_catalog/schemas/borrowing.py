from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from library_catalog.db.models import CopyStatus
from library_catalog.schemas.common import RecordId


class BorrowingCreate(BaseModel):
    copy_id: RecordId
    member_id: RecordId
    due_date: Optional[datetime] = None


class BorrowingResponse(BaseModel):
    id: int
    copy_id: int
    member_id: int
    borrowed_at: datetime
    due_date: datetime
    returned_at: Optional[datetime]
    is_overdue: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BorrowingHistoryEntry(BorrowingResponse):
    book_title: Optional[str] = None
    copy_code: str
    member_name: str


class CopyHistoryResponse(BaseModel):
    copy_id: int
    copy_code: str
    book_id: int
    book_title: str
    current_status: CopyStatus
    total_borrows: int
    history: List[BorrowingHistoryEntry]
